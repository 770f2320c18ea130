from dataclasses import dataclass
from typing import Optional

from .base import BaseModel


@dataclass
class LoginAttempt(BaseModel):
    """Append-only login attempt record"""
    id: Optional[int] = None
    username: str = ""
    ip_address: Optional[str] = None
    device_token: Optional[str] = None
    success: bool = False
    failure_reason: Optional[str] = None
    timestamp: Optional[str] = None

    BOOLEAN_FIELDS = ("success",)
