import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from ..core.auth import get_admin_user
from ..schemas.error import MessageResponse
from ..schemas.user import UserCreate, UserRead, UserUpdate
from ..services.hasura import GraphQLError
from ..services.storage import GraphQLStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(get_admin_user)])


@router.get("", response_model=List[UserRead])
def list_users(storage: GraphQLStorage = Depends(get_storage)):
    try:
        return storage.get_users()
    except GraphQLError:
        logger.exception("Failed to fetch users")
        raise HTTPException(status_code=500, detail="Failed to fetch users")


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: str, storage: GraphQLStorage = Depends(get_storage)):
    try:
        user = storage.get_user(user_id)
    except GraphQLError:
        logger.exception("Failed to fetch user %s", user_id)
        raise HTTPException(status_code=500, detail="Failed to fetch user")
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, storage: GraphQLStorage = Depends(get_storage)):
    try:
        return storage.create_user(payload.model_dump(exclude={"password"}))
    except GraphQLError:
        logger.exception("Failed to create user")
        raise HTTPException(status_code=500, detail="Failed to create user")


@router.put("/{user_id}", response_model=UserRead)
def update_user(user_id: str, payload: UserUpdate, storage: GraphQLStorage = Depends(get_storage)):
    changes: Dict[str, Any] = payload.model_dump(exclude_unset=True, exclude={"password"})
    try:
        user = storage.update_user(user_id, changes)
    except GraphQLError:
        logger.exception("Failed to update user %s", user_id)
        raise HTTPException(status_code=500, detail="Failed to update user")
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(user_id: str, storage: GraphQLStorage = Depends(get_storage)):
    try:
        user = storage.delete_user(user_id)
    except GraphQLError:
        logger.exception("Failed to delete user %s", user_id)
        raise HTTPException(status_code=500, detail="Failed to delete user")
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"message": "User deleted successfully"}
