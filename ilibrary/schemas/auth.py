from typing import List, Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SessionUser(BaseModel):
    id: str
    email: str
    roles: List[str]
    dashboard: str
    authorId: Optional[str] = None


class LoginUser(BaseModel):
    id: str
    email: str
    displayName: Optional[str] = None
    avatarUrl: Optional[str] = None
    defaultRole: Optional[str] = None
    roles: List[str] = []
    authorId: Optional[str] = None


class LoginResponse(BaseModel):
    user: LoginUser
    dashboardType: str
    redirectTo: str


class SessionResponse(BaseModel):
    user: SessionUser


class UploadResponse(BaseModel):
    url: str
