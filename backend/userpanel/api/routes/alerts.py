import logging
from fastapi import APIRouter, Depends, Path, Query, status

from userpanel.api.deps import get_alert_repository
from userpanel.api.errors import MissingFieldsError, RecordNotFoundError, StoreError
from userpanel.api.schemas import (
    AlertCreate,
    AlertResponse,
    ListResponse,
    SuccessResponse,
    MessageResponse
)
from userpanel.db.database import StoreOperationError
from userpanel.db.repositories import AlertRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.get("", response_model=ListResponse[AlertResponse])
async def list_alerts(
    unread: bool = Query(False, description="Only unread alerts"),
    limit: int = Query(50, ge=1, le=500),
    repo: AlertRepository = Depends(get_alert_repository)
):
    """Security alerts, newest first"""
    try:
        alerts = await repo.list(unread_only=unread, limit=limit)
    except StoreOperationError as e:
        logger.error(f"Store error listing alerts: {e}")
        raise StoreError("Erro ao buscar alertas", str(e))

    data = [AlertResponse(**a.to_dict()) for a in alerts]
    return ListResponse[AlertResponse](data=data, total=len(data))


@router.post("", response_model=SuccessResponse[AlertResponse], status_code=status.HTTP_201_CREATED)
async def create_alert(
    payload: AlertCreate,
    repo: AlertRepository = Depends(get_alert_repository)
):
    """Store an alert raised by an external detector"""
    if payload.alert_type is None:
        raise MissingFieldsError(["alert_type"])

    try:
        alert = await repo.create(
            alert_type=payload.alert_type.value,
            severity=payload.severity.value,
            ip_address=payload.ip_address,
            username=payload.username,
            message=payload.message,
            details=payload.details
        )
    except StoreOperationError as e:
        logger.error(f"Store error creating alert: {e}")
        raise StoreError("Erro ao criar alerta", str(e))

    logger.info(f"Alert {alert.id} stored: {alert.alert_type} ({alert.severity})")
    return SuccessResponse[AlertResponse](
        message="Alerta criado com sucesso",
        data=AlertResponse(**alert.to_dict())
    )


@router.patch("/{alert_id}/mark-read", response_model=SuccessResponse[AlertResponse])
async def mark_alert_read(
    alert_id: int = Path(..., description="Alert ID"),
    repo: AlertRepository = Depends(get_alert_repository)
):
    """Acknowledge an alert"""
    try:
        alert = await repo.mark_read(alert_id)
    except StoreOperationError as e:
        logger.error(f"Store error marking alert {alert_id} read: {e}")
        raise StoreError("Erro ao marcar alerta como lido", str(e))

    if not alert:
        raise RecordNotFoundError("Alerta não encontrado")

    return SuccessResponse[AlertResponse](
        message="Alerta marcado como lido",
        data=AlertResponse(**alert.to_dict())
    )


@router.delete("/{alert_id}", response_model=MessageResponse)
async def delete_alert(
    alert_id: int = Path(..., description="Alert ID"),
    repo: AlertRepository = Depends(get_alert_repository)
):
    """Dismiss an alert"""
    try:
        await repo.delete(alert_id)
    except StoreOperationError as e:
        logger.error(f"Store error deleting alert {alert_id}: {e}")
        raise StoreError("Erro ao remover alerta", str(e))

    return MessageResponse(message="Alerta removido com sucesso")
