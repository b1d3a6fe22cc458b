import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..core.auth import get_admin_user
from ..schemas.error import MessageResponse
from ..schemas.library import FavoriteRead
from ..services.hasura import GraphQLError
from ..services.storage import GraphQLStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/favorites", tags=["favorites"], dependencies=[Depends(get_admin_user)])


@router.get("", response_model=List[FavoriteRead])
def list_favorites(storage: GraphQLStorage = Depends(get_storage)):
    try:
        return storage.get_favorites()
    except GraphQLError:
        logger.exception("Failed to get favorites")
        raise HTTPException(status_code=500, detail="Failed to get favorites")


@router.delete("/{favorite_id}", response_model=MessageResponse)
def delete_favorite(favorite_id: str, storage: GraphQLStorage = Depends(get_storage)):
    try:
        deleted = storage.delete_favorite(favorite_id)
    except GraphQLError:
        logger.exception("Failed to delete favorite %s", favorite_id)
        raise HTTPException(status_code=500, detail="Failed to delete favorite")
    if not deleted:
        raise HTTPException(status_code=404, detail="Favorite not found")
    return {"message": "Favorite deleted successfully"}
