from typing import List, Optional, Dict

from userpanel.db.database import Database
from userpanel.models import LoginAttempt, utc_now

TABLE = "login_attempts"


class LoginAttemptRepository:
    """Repository for the append-only login_attempts table"""

    def __init__(self, db: Database):
        self.db = db

    async def list(self, username: Optional[str] = None, limit: int = 100) -> List[LoginAttempt]:
        eq = {"username": username} if username else None
        rows = await self.db.select(TABLE, eq=eq, order_by="timestamp", limit=limit)
        return [LoginAttempt.from_dict(row) for row in rows]

    async def create(
        self,
        username: str,
        ip_address: Optional[str],
        device_token: Optional[str],
        success: bool,
        failure_reason: Optional[str] = None
    ) -> LoginAttempt:
        row = await self.db.insert(TABLE, {
            "username": username,
            "ip_address": ip_address,
            "device_token": device_token,
            "success": success,
            "failure_reason": failure_reason,
            "timestamp": utc_now(),
        })
        return LoginAttempt.from_dict(row)

    async def outcome_counts_since(self, since: str) -> Dict[str, int]:
        """Attempt totals with timestamp >= since"""
        rows = await self.db.select(TABLE, columns=["success"], gte={"timestamp": since})
        return {
            "login_attempts_24h": len(rows),
            "successful_logins_24h": sum(1 for r in rows if r["success"]),
            "failed_logins_24h": sum(1 for r in rows if not r["success"]),
        }
