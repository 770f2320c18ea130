from dataclasses import dataclass
from typing import Optional, Dict, Any

from .base import BaseModel

SECRET_FIELDS = ("password",)


@dataclass
class User(BaseModel):
    """Panel user as stored; `password` holds the bcrypt hash"""
    id: Optional[int] = None
    username: str = ""
    name: str = ""
    password: Optional[str] = None
    is_admin: bool = False
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    BOOLEAN_FIELDS = ("is_admin", "is_active")

    def to_public_dict(self) -> Dict[str, Any]:
        """Dictionary safe to send to clients (no secret fields)"""
        return strip_secrets(self.to_dict())


def strip_secrets(record: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a user record without its secret fields"""
    return {k: v for k, v in record.items() if k not in SECRET_FIELDS}
