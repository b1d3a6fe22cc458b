import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..core.auth import get_admin_user
from ..schemas.library import ReviewRead
from ..services.hasura import GraphQLError
from ..services.storage import GraphQLStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["reviews"], dependencies=[Depends(get_admin_user)])


@router.get("", response_model=List[ReviewRead])
def list_reviews(storage: GraphQLStorage = Depends(get_storage)):
    try:
        return storage.get_reviews()
    except GraphQLError:
        logger.exception("Failed to get reviews")
        raise HTTPException(status_code=500, detail="Failed to get reviews")
