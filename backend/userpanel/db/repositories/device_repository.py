from typing import List, Optional

from userpanel.db.database import Database
from userpanel.models import AuthorizedDevice

TABLE = "authorized_devices"


class DeviceRepository:
    """Repository for the authorized_devices table"""

    def __init__(self, db: Database):
        self.db = db

    async def list(self, username: Optional[str] = None) -> List[AuthorizedDevice]:
        eq = {"username": username} if username else None
        rows = await self.db.select(TABLE, eq=eq, order_by="timestamp")
        return [AuthorizedDevice.from_dict(row) for row in rows]

    async def delete(self, device_id: int) -> bool:
        return await self.db.delete(TABLE, {"id": device_id}) > 0
