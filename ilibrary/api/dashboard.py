import logging

from fastapi import APIRouter, Depends, HTTPException

from ..core.auth import get_admin_user
from ..schemas.library import DashboardStats
from ..services.hasura import GraphQLError
from ..services.storage import GraphQLStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dashboard"], dependencies=[Depends(get_admin_user)])


@router.get("/dashboard-stats", response_model=DashboardStats)
def dashboard_stats(storage: GraphQLStorage = Depends(get_storage)):
    try:
        return storage.get_dashboard_stats()
    except GraphQLError:
        logger.exception("Failed to fetch dashboard stats")
        raise HTTPException(status_code=500, detail="Failed to fetch dashboard stats")
