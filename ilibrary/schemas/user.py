from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

AssignableRole = Literal["user", "me", "author", "admin"]
Locale = Literal["en", "ar", "fr"]


class UserCreate(BaseModel):
    displayName: str = Field(..., min_length=1, description="Display name is required")
    email: EmailStr
    phoneNumber: Optional[str] = None
    defaultRole: AssignableRole = "user"
    emailVerified: bool = False
    disabled: bool = False
    locale: Locale = "en"
    # accepted for form compatibility, never forwarded upstream
    password: Optional[str] = None


class UserUpdate(BaseModel):
    displayName: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    phoneNumber: Optional[str] = None
    defaultRole: Optional[AssignableRole] = None
    emailVerified: Optional[bool] = None
    disabled: Optional[bool] = None
    locale: Optional[Locale] = None
    password: Optional[str] = None


class UserRead(BaseModel):
    id: str
    displayName: Optional[str] = None
    email: Optional[str] = None
    emailVerified: bool = False
    phoneNumber: Optional[str] = None
    disabled: bool = False
    defaultRole: Optional[str] = None
    isAnonymous: bool = False
    locale: Optional[str] = None
    avatarUrl: Optional[str] = None
    metadata: Optional[Any] = None
    lastSeen: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class UserSummary(BaseModel):
    id: str
    displayName: Optional[str] = None
    email: Optional[str] = None
    avatarUrl: Optional[str] = None
