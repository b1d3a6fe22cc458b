import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from ..core.auth import get_admin_user, get_owned_book_ids, get_session_user, is_author_session
from ..schemas.book import BookCreate, BookRead, BookUpdate
from ..schemas.chapter import ChapterRead
from ..schemas.error import MessageResponse
from ..services.hasura import GraphQLError
from ..services.ownership import resolve_author
from ..services.storage import GraphQLStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/books", tags=["books"])

FORBIDDEN_BOOK = "ليس لديك صلاحية للوصول إلى هذا الكتاب"


def _check_book_access(book_id: str, owned: Optional[List[str]]) -> None:
    if owned is not None and book_id not in owned:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN_BOOK)


@router.get("", response_model=List[BookRead], summary="도서 목록 (작가 세션은 본인 도서만)")
def list_books(
    user: Dict[str, Any] = Depends(get_session_user),
    storage: GraphQLStorage = Depends(get_storage),
):
    try:
        if is_author_session(user):
            author = resolve_author(storage, user["id"])
            return storage.get_books_by_author(author["id"]) if author else []
        return storage.get_books()
    except GraphQLError:
        logger.exception("Failed to fetch books")
        raise HTTPException(status_code=500, detail="Failed to fetch books")


@router.get("/{book_id}", response_model=BookRead)
def get_book(
    book_id: str,
    owned: Optional[List[str]] = Depends(get_owned_book_ids),
    storage: GraphQLStorage = Depends(get_storage),
):
    _check_book_access(book_id, owned)
    try:
        book = storage.get_book(book_id)
    except GraphQLError:
        logger.exception("Failed to fetch book %s", book_id)
        raise HTTPException(status_code=500, detail="Failed to fetch book")
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return book


@router.get("/{book_id}/chapters", response_model=List[ChapterRead])
def list_book_chapters(
    book_id: str,
    owned: Optional[List[str]] = Depends(get_owned_book_ids),
    storage: GraphQLStorage = Depends(get_storage),
):
    _check_book_access(book_id, owned)
    try:
        return storage.get_chapters_by_book(book_id)
    except GraphQLError:
        logger.exception("Failed to fetch chapters for book %s", book_id)
        raise HTTPException(status_code=500, detail="Failed to fetch chapters for book")


@router.post("", response_model=BookRead, status_code=status.HTTP_201_CREATED)
def create_book(
    payload: BookCreate,
    user: Dict[str, Any] = Depends(get_session_user),
    storage: GraphQLStorage = Depends(get_storage),
):
    data = payload.model_dump()
    try:
        if is_author_session(user):
            # 작가 세션은 항상 본인 author_id로 등록
            author = resolve_author(storage, user["id"])
            if not author:
                raise HTTPException(status_code=404, detail="Author not found")
            data["author_id"] = author["id"]
        return storage.create_book(data)
    except GraphQLError:
        logger.exception("Failed to create book")
        raise HTTPException(status_code=500, detail="Failed to create book")


@router.put("/{book_id}", response_model=BookRead, dependencies=[Depends(get_admin_user)])
def update_book(book_id: str, payload: BookUpdate, storage: GraphQLStorage = Depends(get_storage)):
    try:
        book = storage.update_book(book_id, payload.model_dump(exclude_unset=True))
    except GraphQLError:
        logger.exception("Failed to update book %s", book_id)
        raise HTTPException(status_code=500, detail="Failed to update book")
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return book


@router.delete("/{book_id}", response_model=MessageResponse, dependencies=[Depends(get_admin_user)])
def delete_book(book_id: str, storage: GraphQLStorage = Depends(get_storage)):
    try:
        book = storage.delete_book(book_id)
    except GraphQLError:
        logger.exception("Failed to delete book %s", book_id)
        raise HTTPException(status_code=500, detail="Failed to delete book")
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return {"message": "Book deleted successfully"}
