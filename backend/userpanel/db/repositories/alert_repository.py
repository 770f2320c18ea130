import json
from typing import List, Optional, Dict, Any

from userpanel.db.database import Database
from userpanel.models import SecurityAlert, utc_now

TABLE = "security_alerts"


class AlertRepository:
    """Repository for the security_alerts table"""

    def __init__(self, db: Database):
        self.db = db

    async def list(self, unread_only: bool = False, limit: int = 50) -> List[SecurityAlert]:
        eq = {"is_read": False} if unread_only else None
        rows = await self.db.select(TABLE, eq=eq, order_by="created_at", limit=limit)
        return [SecurityAlert.from_dict(row) for row in rows]

    async def create(
        self,
        alert_type: str,
        severity: str,
        ip_address: Optional[str] = None,
        username: Optional[str] = None,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> SecurityAlert:
        row = await self.db.insert(TABLE, {
            "alert_type": alert_type,
            "severity": severity,
            "ip_address": ip_address,
            "username": username,
            "message": message,
            "details": json.dumps(details) if details is not None else None,
            "is_read": False,
            "created_at": utc_now(),
        })
        return SecurityAlert.from_dict(row)

    async def mark_read(self, alert_id: int) -> Optional[SecurityAlert]:
        rows = await self.db.update(
            TABLE, {"is_read": True, "read_at": utc_now()}, {"id": alert_id}
        )
        return SecurityAlert.from_dict(rows[0]) if rows else None

    async def delete(self, alert_id: int) -> bool:
        return await self.db.delete(TABLE, {"id": alert_id}) > 0

    async def unread_count(self) -> int:
        return await self.db.count(TABLE, {"is_read": False})
