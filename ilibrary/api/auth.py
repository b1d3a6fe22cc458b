import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from ..core.auth import SESSION_KEY, get_current_author, get_session_user
from ..core.config import get_settings
from ..core.security import verify_password
from ..schemas.auth import LoginRequest, LoginResponse, SessionResponse
from ..schemas.author import AuthorProfileUpdate, AuthorRead
from ..schemas.error import MessageResponse
from ..services.access import Dashboard, decide_access, roles_for_user
from ..services.hasura import GraphQLError
from ..services.ownership import ensure_author_for_user, resolve_author
from ..services.storage import GraphQLStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

INVALID_CREDENTIALS = "البريد الإلكتروني أو كلمة المرور غير صحيحة"
ACCESS_DENIED = "غير مصرح لك بالدخول - ليس لديك صلاحيات كافية"


@router.post("/login", response_model=LoginResponse, summary="로그인 (세션 쿠키 발급)")
def login(data: LoginRequest, request: Request, storage: GraphQLStorage = Depends(get_storage)):
    settings = get_settings()
    email = data.email.strip()
    try:
        user = storage.get_user_by_email(email)
    except GraphQLError:
        logger.exception("Login lookup failed for %s", email)
        raise HTTPException(status_code=500, detail="Login failed")

    if not user or not verify_password(data.password, user.get("passwordHash")):
        logger.info("Rejected login for %s", email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)
    if user.get("disabled"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled")

    decision = decide_access(
        roles_for_user(user),
        user.get("email") or email,
        email_heuristic=settings.author_email_heuristic,
    )
    if not decision.allowed:
        logger.info("Access denied for %s with roles %s", email, decision.roles)
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"detail": ACCESS_DENIED, "accessDenied": True},
        )

    author_id = None
    if decision.needs_author:
        try:
            author = ensure_author_for_user(storage, user)
        except GraphQLError:
            logger.exception("Could not find/create author for %s", email)
            author = None
        author_id = author["id"] if author else None

    session_user = {
        "id": str(user["id"]),
        "email": user.get("email") or email,
        "roles": decision.roles,
        "dashboard": decision.dashboard.value,
        "authorId": author_id,
    }
    request.session.clear()
    request.session[SESSION_KEY] = session_user
    logger.info("Login successful for %s (dashboard=%s, authorId=%s)", email, decision.dashboard.value, author_id)

    public_user = {k: v for k, v in user.items() if k != "passwordHash"}
    return {
        "user": {**public_user, "roles": decision.roles, "authorId": author_id},
        "dashboardType": decision.dashboard.value,
        "redirectTo": "/author-dashboard" if decision.dashboard == Dashboard.author else "/",
    }


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request):
    request.session.clear()
    return {"message": "Logged out"}


@router.get("/session", response_model=SessionResponse)
def session(user: Dict[str, Any] = Depends(get_session_user)):
    return {"user": user}


@router.get("/auth/me", response_model=SessionResponse)
def me(user: Dict[str, Any] = Depends(get_session_user)):
    return {"user": user}


@router.get("/auth/author-profile", response_model=AuthorRead, summary="내 작가 프로필")
def get_author_profile(author: Dict[str, Any] = Depends(get_current_author)):
    return author


@router.put("/auth/author-profile", response_model=AuthorRead, summary="내 작가 프로필 수정")
def update_author_profile(
    payload: AuthorProfileUpdate,
    author: Dict[str, Any] = Depends(get_current_author),
    storage: GraphQLStorage = Depends(get_storage),
):
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        return author
    try:
        storage.update_author(author["id"], changes)
        refreshed = resolve_author(storage, author["user_id"])
    except GraphQLError:
        logger.exception("Failed to update author profile %s", author["id"])
        raise HTTPException(status_code=500, detail="Failed to update author profile")
    if not refreshed:
        raise HTTPException(status_code=404, detail="Author not found")
    return refreshed
