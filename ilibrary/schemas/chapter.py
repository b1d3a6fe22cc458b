import uuid
from typing import List, Optional, Union

from pydantic import BaseModel, Field

# stored upstream as a jsonb list of text segments; older rows hold a plain string
ChapterContent = Union[str, List[str]]


class ChapterCreate(BaseModel):
    title: str = Field(..., min_length=1, description="Chapter title is required")
    content: Optional[ChapterContent] = None
    chapter_num: int = Field(..., ge=1, description="Chapter number must be at least 1")
    book_id: uuid.UUID


class ChapterUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    content: Optional[ChapterContent] = None
    chapter_num: Optional[int] = Field(None, ge=1)
    book_id: Optional[uuid.UUID] = None


class ChapterRead(BaseModel):
    id: str
    title: Optional[str] = None
    content: Optional[ChapterContent] = None
    chapter_num: Optional[int] = None
    book_id: Optional[str] = None
    Create_at: Optional[str] = None


class ChapterPage(BaseModel):
    chapters: List[ChapterRead]
    total: int
    page: int
    limit: int
