import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ..core.auth import get_admin_user
from ..schemas.author import AuthorCreate, AuthorRead, AuthorUpdate
from ..schemas.error import MessageResponse
from ..services.hasura import GraphQLError
from ..services.storage import GraphQLStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/authors", tags=["authors"], dependencies=[Depends(get_admin_user)])


@router.get("", response_model=List[AuthorRead])
def list_authors(storage: GraphQLStorage = Depends(get_storage)):
    try:
        return storage.get_authors()
    except GraphQLError:
        logger.exception("Failed to fetch authors")
        raise HTTPException(status_code=500, detail="Failed to fetch authors")


@router.get("/{author_id}", response_model=AuthorRead)
def get_author(author_id: str, storage: GraphQLStorage = Depends(get_storage)):
    try:
        author = storage.get_author(author_id)
    except GraphQLError:
        logger.exception("Failed to fetch author %s", author_id)
        raise HTTPException(status_code=500, detail="Failed to fetch author")
    if not author:
        raise HTTPException(status_code=404, detail="Author not found")
    return author


@router.post("", response_model=AuthorRead, status_code=status.HTTP_201_CREATED)
def create_author(payload: AuthorCreate, storage: GraphQLStorage = Depends(get_storage)):
    try:
        return storage.create_author(payload.model_dump())
    except GraphQLError:
        logger.exception("Failed to create author")
        raise HTTPException(status_code=500, detail="Failed to create author")


@router.put("/{author_id}", response_model=AuthorRead)
def update_author(author_id: str, payload: AuthorUpdate, storage: GraphQLStorage = Depends(get_storage)):
    try:
        author = storage.update_author(author_id, payload.model_dump(exclude_unset=True))
    except GraphQLError:
        logger.exception("Failed to update author %s", author_id)
        raise HTTPException(status_code=500, detail="Failed to update author")
    if not author:
        raise HTTPException(status_code=404, detail="Author not found")
    return author


@router.delete("/{author_id}", response_model=MessageResponse)
def delete_author(author_id: str, storage: GraphQLStorage = Depends(get_storage)):
    try:
        author = storage.delete_author(author_id)
    except GraphQLError:
        logger.exception("Failed to delete author %s", author_id)
        raise HTTPException(status_code=500, detail="Failed to delete author")
    if not author:
        raise HTTPException(status_code=404, detail="Author not found")
    return {"message": "Author deleted successfully"}
