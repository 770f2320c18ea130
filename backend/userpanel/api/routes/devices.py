import logging
from fastapi import APIRouter, Depends, Path, Query
from typing import Optional

from userpanel.api.deps import get_device_repository
from userpanel.api.errors import StoreError
from userpanel.api.schemas import DeviceResponse, ListResponse, MessageResponse
from userpanel.db.database import StoreOperationError
from userpanel.db.repositories import DeviceRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/authorized-devices", tags=["authorized-devices"])


@router.get("", response_model=ListResponse[DeviceResponse])
async def list_devices(
    username: Optional[str] = Query(None, description="Only devices for this username"),
    repo: DeviceRepository = Depends(get_device_repository)
):
    """Authorized devices, newest first"""
    try:
        devices = await repo.list(username=username or None)
    except StoreOperationError as e:
        logger.error(f"Store error listing devices: {e}")
        raise StoreError("Erro ao buscar dispositivos", str(e))

    data = [DeviceResponse(**d.to_dict()) for d in devices]
    return ListResponse[DeviceResponse](data=data, total=len(data))


@router.delete("/{device_id}", response_model=MessageResponse)
async def revoke_device(
    device_id: int = Path(..., description="Device ID"),
    repo: DeviceRepository = Depends(get_device_repository)
):
    """Revoke a device authorization"""
    try:
        await repo.delete(device_id)
    except StoreOperationError as e:
        logger.error(f"Store error removing device {device_id}: {e}")
        raise StoreError("Erro ao remover dispositivo", str(e))

    return MessageResponse(message="Dispositivo removido com sucesso")
