import logging
from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from userpanel.api.deps import get_login_attempt_repository
from userpanel.api.errors import MissingFieldsError, StoreError
from userpanel.api.schemas import (
    LoginAttemptCreate,
    LoginAttemptResponse,
    ListResponse,
    SuccessResponse
)
from userpanel.db.database import StoreOperationError
from userpanel.db.repositories import LoginAttemptRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/login-attempts", tags=["login-attempts"])


@router.get("", response_model=ListResponse[LoginAttemptResponse])
async def list_login_attempts(
    username: Optional[str] = Query(None, description="Only attempts for this username"),
    limit: int = Query(100, ge=1, le=1000),
    repo: LoginAttemptRepository = Depends(get_login_attempt_repository)
):
    """Most recent login attempts"""
    try:
        attempts = await repo.list(username=username or None, limit=limit)
    except StoreOperationError as e:
        logger.error(f"Store error listing login attempts: {e}")
        raise StoreError("Erro ao buscar tentativas de login", str(e))

    data = [LoginAttemptResponse(**a.to_dict()) for a in attempts]
    return ListResponse[LoginAttemptResponse](data=data, total=len(data))


@router.post("", response_model=SuccessResponse[LoginAttemptResponse], status_code=status.HTTP_201_CREATED)
async def record_login_attempt(
    payload: LoginAttemptCreate,
    repo: LoginAttemptRepository = Depends(get_login_attempt_repository)
):
    """Append a login attempt reported by the portal"""
    if not payload.username or not payload.username.strip():
        raise MissingFieldsError(["username"])

    try:
        attempt = await repo.create(
            username=payload.username.strip(),
            ip_address=payload.ip_address,
            device_token=payload.device_token,
            success=payload.success,
            failure_reason=payload.failure_reason
        )
    except StoreOperationError as e:
        logger.error(f"Store error recording login attempt: {e}")
        raise StoreError("Erro ao registrar tentativa de login", str(e))

    return SuccessResponse[LoginAttemptResponse](
        message="Tentativa registrada",
        data=LoginAttemptResponse(**attempt.to_dict())
    )
