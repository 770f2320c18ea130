from .user_repository import UserRepository
from .login_attempt_repository import LoginAttemptRepository
from .device_repository import DeviceRepository
from .alert_repository import AlertRepository

__all__ = [
    "UserRepository",
    "LoginAttemptRepository",
    "DeviceRepository",
    "AlertRepository"
]
