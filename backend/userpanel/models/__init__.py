from .base import BaseModel, utc_now
from .user import User, strip_secrets
from .login_attempt import LoginAttempt
from .device import AuthorizedDevice
from .alert import SecurityAlert, AlertType, AlertSeverity

__all__ = [
    "BaseModel",
    "utc_now",
    "User",
    "strip_secrets",
    "LoginAttempt",
    "AuthorizedDevice",
    "SecurityAlert",
    "AlertType",
    "AlertSeverity"
]
