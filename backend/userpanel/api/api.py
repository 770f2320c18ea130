from fastapi import APIRouter, Depends

from userpanel.api.routes import (
    users_router,
    login_attempts_router,
    devices_router,
    alerts_router,
    dashboard_router
)
from userpanel.api.schemas import ErrorResponse
from userpanel.auth import require_session_token
from userpanel.core.config import settings

# Every proxied route requires the session token
api_router = APIRouter(
    prefix=settings.API_PREFIX,
    dependencies=[Depends(require_session_token)],
    responses={
        401: {"model": ErrorResponse, "description": "Missing or rejected session token"},
        503: {"model": ErrorResponse, "description": "Store not configured"}
    }
)

api_router.include_router(users_router)
api_router.include_router(login_attempts_router)
api_router.include_router(devices_router)
api_router.include_router(alerts_router)
api_router.include_router(dashboard_router)
