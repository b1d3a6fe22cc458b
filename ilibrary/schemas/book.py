from typing import Optional, Union

from pydantic import BaseModel, Field


class BookCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    ISBN: Optional[Union[str, int]] = None
    cover_URL: Optional[str] = None
    publication_date: Optional[str] = Field(None, description="YYYY-MM-DD")
    author_id: Optional[str] = None
    category_id: Optional[str] = None
    parts_num: Optional[int] = Field(None, ge=0)
    total_pages: Optional[int] = Field(None, ge=0)


class BookUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    ISBN: Optional[Union[str, int]] = None
    cover_URL: Optional[str] = None
    publication_date: Optional[str] = Field(None, description="YYYY-MM-DD")
    author_id: Optional[str] = None
    category_id: Optional[str] = None
    parts_num: Optional[int] = Field(None, ge=0)
    total_pages: Optional[int] = Field(None, ge=0)


class BookRead(BaseModel):
    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    ISBN: Optional[str] = None
    cover_URL: Optional[str] = None
    publication_date: Optional[str] = None
    author_id: Optional[str] = None
    category_id: Optional[str] = None
    # 챕터 테이블에서 집계한 값
    parts_num: int = 0
    chapter_num: int = 0
    total_pages: Optional[int] = None
    most_view: int = 0
