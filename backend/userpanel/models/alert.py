import json
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any

from .base import BaseModel


class AlertType(str, Enum):
    UNAUTHORIZED_ACCESS = "unauthorized_access"
    AFTER_HOURS_ACCESS = "after_hours_access"
    REPEATED_FAILURE = "repeated_failure"
    SUSPICIOUS_ACTIVITY = "suspicious_activity"


class AlertSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class SecurityAlert(BaseModel):
    """Security alert raised by an external detector"""
    id: Optional[int] = None
    alert_type: str = AlertType.SUSPICIOUS_ACTIVITY.value
    severity: str = AlertSeverity.MEDIUM.value
    ip_address: Optional[str] = None
    username: Optional[str] = None
    message: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    is_read: bool = False
    created_at: Optional[str] = None
    read_at: Optional[str] = None

    BOOLEAN_FIELDS = ("is_read",)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        alert = super().from_dict(data)
        # details is stored as a JSON string
        if isinstance(alert.details, str):
            alert.details = json.loads(alert.details) if alert.details else None
        return alert
