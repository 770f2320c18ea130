import time
from datetime import datetime, timezone
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from userpanel.api.schemas import HealthResponse
from userpanel.core.config import settings
from userpanel.db.database import get_db, get_init_error, StoreOperationError

router = APIRouter(tags=["health"])

_started_at = time.monotonic()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Store connectivity probe; no session token required"""
    health = HealthResponse(
        status="starting",
        uptime=round(time.monotonic() - _started_at, 3),
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment={
            "databaseUrl": bool(settings.DATABASE_URL),
            "portalUrl": bool(settings.PORTAL_URL),
            "debug": settings.DEBUG
        },
        store="checking"
    )

    db = get_db()
    if db is None:
        health.status = "unhealthy"
        health.store = f"not configured: {get_init_error()}" if get_init_error() else "not configured"
        return JSONResponse(status_code=503, content=health.model_dump())

    try:
        await db.select("users", columns=["id"], limit=1)
        health.status = "healthy"
        health.store = "connected"
        status_code = 200
    except StoreOperationError as e:
        health.status = "unhealthy"
        health.store = f"error: {e}"
        status_code = 503

    return JSONResponse(status_code=status_code, content=health.model_dump())
