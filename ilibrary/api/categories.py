import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ..core.auth import get_admin_user, get_session_user
from ..schemas.category import CategoryCreate, CategoryRead, CategoryUpdate
from ..schemas.error import MessageResponse
from ..services.hasura import GraphQLError
from ..services.storage import GraphQLStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories", tags=["categories"])


# 작가 화면에서도 카테고리 목록은 필요함
@router.get("", response_model=List[CategoryRead], dependencies=[Depends(get_session_user)])
def list_categories(storage: GraphQLStorage = Depends(get_storage)):
    try:
        return storage.get_categories()
    except GraphQLError:
        logger.exception("Failed to fetch categories")
        raise HTTPException(status_code=500, detail="Failed to fetch categories")


@router.get("/{category_id}", response_model=CategoryRead, dependencies=[Depends(get_session_user)])
def get_category(category_id: str, storage: GraphQLStorage = Depends(get_storage)):
    try:
        category = storage.get_category(category_id)
    except GraphQLError:
        logger.exception("Failed to fetch category %s", category_id)
        raise HTTPException(status_code=500, detail="Failed to fetch category")
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.post("", response_model=CategoryRead, status_code=status.HTTP_201_CREATED, dependencies=[Depends(get_admin_user)])
def create_category(payload: CategoryCreate, storage: GraphQLStorage = Depends(get_storage)):
    try:
        return storage.create_category(payload.model_dump())
    except GraphQLError:
        logger.exception("Failed to create category")
        raise HTTPException(status_code=500, detail="Failed to create category")


@router.put("/{category_id}", response_model=CategoryRead, dependencies=[Depends(get_admin_user)])
def update_category(category_id: str, payload: CategoryUpdate, storage: GraphQLStorage = Depends(get_storage)):
    if payload.name is None:
        raise HTTPException(status_code=400, detail="Category name is required")
    try:
        category = storage.update_category(category_id, payload.model_dump())
    except GraphQLError:
        logger.exception("Failed to update category %s", category_id)
        raise HTTPException(status_code=500, detail="Failed to update category")
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.delete("/{category_id}", response_model=MessageResponse, dependencies=[Depends(get_admin_user)])
def delete_category(category_id: str, storage: GraphQLStorage = Depends(get_storage)):
    try:
        category = storage.delete_category(category_id)
    except GraphQLError:
        logger.exception("Failed to delete category %s", category_id)
        raise HTTPException(status_code=500, detail="Failed to delete category")
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"message": "Category deleted successfully"}
