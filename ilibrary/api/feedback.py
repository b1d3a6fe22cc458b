import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status

from ..core.auth import get_session_user
from ..schemas.library import FeedbackCreate, FeedbackRead
from ..services.hasura import GraphQLError
from ..services.storage import GraphQLStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/feedback", tags=["feedback"])


@router.post("", response_model=FeedbackRead, status_code=status.HTTP_201_CREATED)
def send_feedback(
    payload: FeedbackCreate,
    user: Dict[str, Any] = Depends(get_session_user),
    storage: GraphQLStorage = Depends(get_storage),
):
    data = payload.model_dump()
    data["user_id"] = data.get("user_id") or user["id"]
    try:
        return storage.create_feedback(data)
    except GraphQLError:
        logger.exception("Failed to create feedback")
        raise HTTPException(status_code=500, detail="Failed to send feedback")
