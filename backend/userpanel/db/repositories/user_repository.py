from typing import List, Optional, Dict, Any

from userpanel.db.database import Database
from userpanel.models import User, utc_now

TABLE = "users"


class UserRepository:
    """Repository for the users table"""

    def __init__(self, db: Database):
        self.db = db

    async def list(self) -> List[User]:
        """All users, newest first"""
        rows = await self.db.select(TABLE, order_by="created_at")
        return [User.from_dict(row) for row in rows]

    async def get_by_id(self, user_id: int) -> Optional[User]:
        row = await self.db.select_one(TABLE, {"id": user_id})
        return User.from_dict(row) if row else None

    async def get_by_username(self, username: str) -> Optional[User]:
        """Lookup by username; the column collates case-insensitively"""
        row = await self.db.select_one(TABLE, {"username": username})
        return User.from_dict(row) if row else None

    async def username_taken(self, username: str, exclude_id: Optional[int] = None) -> bool:
        """Whether another user already holds this username"""
        existing = await self.get_by_username(username)
        if not existing:
            return False
        return exclude_id is None or existing.id != exclude_id

    async def create(
        self,
        username: str,
        password_hash: str,
        name: str,
        is_admin: bool = False
    ) -> User:
        """Create a new user; new users start active"""
        now = utc_now()
        row = await self.db.insert(TABLE, {
            "username": username.lower(),
            "password": password_hash,
            "name": name,
            "is_admin": is_admin,
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        })
        return User.from_dict(row)

    async def update(self, user_id: int, values: Dict[str, Any]) -> Optional[User]:
        """Apply the given column values; None when the user does not exist"""
        values = dict(values)
        if "username" in values and values["username"] is not None:
            values["username"] = values["username"].lower()
        values["updated_at"] = utc_now()
        rows = await self.db.update(TABLE, values, {"id": user_id})
        return User.from_dict(rows[0]) if rows else None

    async def delete(self, user_id: int) -> bool:
        return await self.db.delete(TABLE, {"id": user_id}) > 0

    async def flag_counts(self) -> Dict[str, int]:
        """Totals for the dashboard"""
        rows = await self.db.select(TABLE, columns=["is_active", "is_admin"])
        return {
            "total_users": len(rows),
            "active_users": sum(1 for r in rows if r["is_active"]),
            "inactive_users": sum(1 for r in rows if not r["is_active"]),
            "admin_users": sum(1 for r in rows if r["is_admin"]),
        }
