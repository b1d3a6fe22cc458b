from typing import Optional

from pydantic import BaseModel, Field


class AuthorCreate(BaseModel):
    name: str = Field(..., min_length=1)
    bio: Optional[str] = None
    book_num: int = Field(0, ge=0)
    image_url: Optional[str] = None
    Category_Id: Optional[str] = None
    user_id: Optional[str] = None


class AuthorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    bio: Optional[str] = None
    book_num: Optional[int] = Field(None, ge=0)
    image_url: Optional[str] = None
    Category_Id: Optional[str] = None


class AuthorProfileUpdate(BaseModel):
    """Fields an author may edit on their own record."""
    name: Optional[str] = Field(None, min_length=1)
    bio: Optional[str] = None
    image_url: Optional[str] = None


class AuthorRead(BaseModel):
    id: str
    name: Optional[str] = None
    bio: Optional[str] = None
    book_num: int = 0
    image_url: Optional[str] = None
    Category_Id: Optional[str] = None
    user_id: Optional[str] = None
