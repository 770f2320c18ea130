from dataclasses import dataclass
from typing import Optional

from .base import BaseModel


@dataclass
class AuthorizedDevice(BaseModel):
    """Device a user was authorized from; can be revoked, never edited"""
    id: Optional[int] = None
    username: str = ""
    ip_address: Optional[str] = None
    device_name: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: Optional[str] = None
