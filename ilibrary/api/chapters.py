import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..core.auth import get_owned_book_ids
from ..schemas.chapter import ChapterCreate, ChapterPage, ChapterRead, ChapterUpdate
from ..schemas.error import MessageResponse
from ..services.hasura import GraphQLError
from ..services.storage import GraphQLStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chapters", tags=["chapters"])

NO_CHAPTER_PERMISSION = "ليس لديك صلاحية لإضافة فصل لهذا الكتاب"


def _check_owned(book_id: Optional[str], owned: Optional[List[str]]) -> None:
    if owned is not None and (book_id is None or str(book_id) not in owned):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NO_CHAPTER_PERMISSION)


def _load_chapter(storage: GraphQLStorage, chapter_id: str) -> dict:
    try:
        chapter = storage.get_chapter(chapter_id)
    except GraphQLError:
        logger.exception("Failed to fetch chapter %s", chapter_id)
        raise HTTPException(status_code=500, detail="Failed to fetch chapter")
    if not chapter:
        raise HTTPException(status_code=404, detail="Chapter not found")
    return chapter


@router.get("", response_model=ChapterPage, summary="챕터 목록 (페이지네이션/검색)")
def list_chapters(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str = Query("", description="제목 부분 일치 (대소문자 무시)"),
    owned: Optional[List[str]] = Depends(get_owned_book_ids),
    storage: GraphQLStorage = Depends(get_storage),
):
    result = storage.get_chapters(owned, page=page, limit=limit, search=search.strip())
    return {**result, "page": page, "limit": limit}


@router.get("/{chapter_id}", response_model=ChapterRead)
def get_chapter(
    chapter_id: str,
    owned: Optional[List[str]] = Depends(get_owned_book_ids),
    storage: GraphQLStorage = Depends(get_storage),
):
    chapter = _load_chapter(storage, chapter_id)
    _check_owned(chapter.get("book_id"), owned)
    return chapter


@router.post("", response_model=ChapterRead, status_code=status.HTTP_201_CREATED)
def create_chapter(
    payload: ChapterCreate,
    owned: Optional[List[str]] = Depends(get_owned_book_ids),
    storage: GraphQLStorage = Depends(get_storage),
):
    data = payload.model_dump(mode="json")
    _check_owned(data["book_id"], owned)
    try:
        return storage.create_chapter(data)
    except GraphQLError:
        logger.exception("Failed to create chapter")
        raise HTTPException(status_code=500, detail="Failed to create chapter")


@router.put("/{chapter_id}", response_model=ChapterRead)
def update_chapter(
    chapter_id: str,
    payload: ChapterUpdate,
    owned: Optional[List[str]] = Depends(get_owned_book_ids),
    storage: GraphQLStorage = Depends(get_storage),
):
    existing = _load_chapter(storage, chapter_id)
    _check_owned(existing.get("book_id"), owned)
    changes = payload.model_dump(mode="json", exclude_unset=True)
    if "book_id" in changes:
        _check_owned(changes["book_id"], owned)
    try:
        chapter = storage.update_chapter(chapter_id, changes)
    except GraphQLError:
        logger.exception("Failed to update chapter %s", chapter_id)
        raise HTTPException(status_code=500, detail="Failed to update chapter")
    if not chapter:
        raise HTTPException(status_code=404, detail="Chapter not found")
    return chapter


@router.delete("/{chapter_id}", response_model=MessageResponse)
def delete_chapter(
    chapter_id: str,
    owned: Optional[List[str]] = Depends(get_owned_book_ids),
    storage: GraphQLStorage = Depends(get_storage),
):
    existing = _load_chapter(storage, chapter_id)
    _check_owned(existing.get("book_id"), owned)
    try:
        storage.delete_chapter(chapter_id)
    except GraphQLError:
        logger.exception("Failed to delete chapter %s", chapter_id)
        raise HTTPException(status_code=500, detail="Failed to delete chapter")
    return {"message": "Chapter deleted successfully"}
