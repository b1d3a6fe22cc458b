import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from ..core.auth import get_current_author
from ..schemas.book import BookCreate, BookRead, BookUpdate
from ..schemas.error import MessageResponse
from ..services.hasura import GraphQLError
from ..services.storage import GraphQLStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/author/books", tags=["author"])

NOT_YOUR_BOOK = "ليس لديك صلاحية لتعديل هذا الكتاب"


def _owned_book(storage: GraphQLStorage, book_id: str, author: Dict[str, Any]) -> Dict[str, Any]:
    try:
        book = storage.get_book(book_id)
    except GraphQLError:
        logger.exception("Failed to fetch book %s", book_id)
        raise HTTPException(status_code=500, detail="Failed to fetch book")
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    if book.get("author_id") != author["id"]:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NOT_YOUR_BOOK)
    return book


@router.get("", response_model=List[BookRead], summary="내 도서 목록")
def list_my_books(
    author: Dict[str, Any] = Depends(get_current_author),
    storage: GraphQLStorage = Depends(get_storage),
):
    try:
        return storage.get_books_by_author(author["id"])
    except GraphQLError:
        logger.exception("Failed to fetch books for author %s", author["id"])
        raise HTTPException(status_code=500, detail="Failed to fetch books")


@router.post("", response_model=BookRead, status_code=status.HTTP_201_CREATED)
def create_my_book(
    payload: BookCreate,
    author: Dict[str, Any] = Depends(get_current_author),
    storage: GraphQLStorage = Depends(get_storage),
):
    data = payload.model_dump()
    data["author_id"] = author["id"]
    try:
        return storage.create_book(data)
    except GraphQLError:
        logger.exception("Failed to create book for author %s", author["id"])
        raise HTTPException(status_code=500, detail="Failed to create book")


@router.put("/{book_id}", response_model=BookRead)
def update_my_book(
    book_id: str,
    payload: BookUpdate,
    author: Dict[str, Any] = Depends(get_current_author),
    storage: GraphQLStorage = Depends(get_storage),
):
    _owned_book(storage, book_id, author)
    changes = payload.model_dump(exclude_unset=True, exclude={"author_id"})
    try:
        book = storage.update_book(book_id, changes)
    except GraphQLError:
        logger.exception("Failed to update book %s", book_id)
        raise HTTPException(status_code=500, detail="Failed to update book")
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return book


@router.delete("/{book_id}", response_model=MessageResponse)
def delete_my_book(
    book_id: str,
    author: Dict[str, Any] = Depends(get_current_author),
    storage: GraphQLStorage = Depends(get_storage),
):
    _owned_book(storage, book_id, author)
    try:
        storage.delete_book(book_id)
    except GraphQLError:
        logger.exception("Failed to delete book %s", book_id)
        raise HTTPException(status_code=500, detail="Failed to delete book")
    return {"message": "Book deleted successfully"}
