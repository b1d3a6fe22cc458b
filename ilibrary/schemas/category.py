from typing import Optional

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)


class CategoryRead(BaseModel):
    id: str
    name: Optional[str] = None
