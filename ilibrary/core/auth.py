import logging
from typing import Any, Dict, List, Optional

from fastapi import Depends, HTTPException, Request, status

from ..services.access import Dashboard
from ..services.hasura import GraphQLError
from ..services.ownership import resolve_author
from ..services.storage import GraphQLStorage, get_storage

logger = logging.getLogger(__name__)

SESSION_KEY = "user"


def get_session_user(request: Request) -> Dict[str, Any]:
    user = request.session.get(SESSION_KEY)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user


def get_admin_user(user: Dict[str, Any] = Depends(get_session_user)) -> Dict[str, Any]:
    if user.get("dashboard") != Dashboard.admin.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin only")
    return user


def is_author_session(user: Dict[str, Any]) -> bool:
    return user.get("dashboard") == Dashboard.author.value


def get_current_author(
    user: Dict[str, Any] = Depends(get_session_user),
    storage: GraphQLStorage = Depends(get_storage),
) -> Dict[str, Any]:
    if not is_author_session(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Author only")
    try:
        author = resolve_author(storage, user["id"])
    except GraphQLError:
        logger.exception("author lookup failed for user %s", user.get("id"))
        raise HTTPException(status_code=500, detail="Failed to fetch author")
    if not author:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Author not found")
    return author


def get_owned_book_ids(
    user: Dict[str, Any] = Depends(get_session_user),
    storage: GraphQLStorage = Depends(get_storage),
) -> Optional[List[str]]:
    """None for admin sessions (no restriction); the author's book ids otherwise.

    An author without an author record or without books gets ``[]``, which
    downstream listings treat as "nothing visible", never as "everything".
    """
    if not is_author_session(user):
        return None
    try:
        author = resolve_author(storage, user["id"])
        if not author:
            return []
        return [b["id"] for b in storage.get_books_by_author(author["id"])]
    except GraphQLError:
        logger.exception("book ownership lookup failed for user %s", user.get("id"))
        raise HTTPException(status_code=500, detail="Failed to fetch author books")
