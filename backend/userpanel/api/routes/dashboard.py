import logging
from datetime import datetime, timedelta, timezone
from fastapi import APIRouter, Depends

from userpanel.api.deps import get_store
from userpanel.api.errors import StoreError
from userpanel.api.schemas import DashboardStats, SuccessResponse
from userpanel.db.database import Database, StoreOperationError
from userpanel.db.repositories import UserRepository, LoginAttemptRepository, AlertRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=SuccessResponse[DashboardStats])
async def get_dashboard(db: Database = Depends(get_store)):
    """User counters and login activity over the last 24 hours"""
    since = (datetime.now(timezone.utc) - timedelta(hours=24)).isoformat()

    try:
        user_counts = await UserRepository(db).flag_counts()
        attempt_counts = await LoginAttemptRepository(db).outcome_counts_since(since)
        unread_alerts = await AlertRepository(db).unread_count()
    except StoreOperationError as e:
        logger.error(f"Store error building dashboard: {e}")
        raise StoreError("Erro ao gerar dashboard", str(e))

    stats = DashboardStats(**user_counts, **attempt_counts, unread_alerts=unread_alerts)
    return SuccessResponse[DashboardStats](message="Dashboard atualizado", data=stats)
