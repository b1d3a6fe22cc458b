from typing import Optional

from pydantic import BaseModel, Field

from .user import UserSummary


class FavoriteBook(BaseModel):
    id: str
    title: Optional[str] = None
    cover_URL: Optional[str] = None
    total_pages: Optional[int] = None
    category_name: Optional[str] = None
    author_name: Optional[str] = None


class FavoriteRead(BaseModel):
    id: str
    user: Optional[UserSummary] = None
    book: Optional[FavoriteBook] = None
    added_at: Optional[str] = None


class ReviewBook(BaseModel):
    id: str
    title: Optional[str] = None
    cover_URL: Optional[str] = None
    author_name: Optional[str] = None


class ReviewRead(BaseModel):
    id: str
    rating: int = Field(..., ge=1, le=5)
    q1_answer: Optional[str] = None
    q2_answer: Optional[str] = None
    q3_answer: Optional[str] = None
    user: Optional[UserSummary] = None
    book: Optional[ReviewBook] = None


class FeedbackCreate(BaseModel):
    message: str = Field(..., min_length=1)
    rating: Optional[int] = Field(None, ge=1, le=5)
    user_id: Optional[str] = None


class FeedbackRead(BaseModel):
    id: str
    message: str
    rating: Optional[int] = None
    created_at: Optional[str] = None


class DashboardStats(BaseModel):
    totalUsers: int = 0
    totalBooks: int = 0
    totalAuthors: int = 0
    totalCategories: int = 0
    totalChapters: int = 0
    totalReviews: int = 0
    totalFavorites: int = 0
    averageRating: float = 0
