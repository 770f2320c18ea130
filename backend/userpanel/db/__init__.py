from .database import (
    Database,
    get_db,
    init_db,
    close_db,
    StoreOperationError,
    DuplicateRecordError
)
from .repositories import (
    UserRepository,
    LoginAttemptRepository,
    DeviceRepository,
    AlertRepository
)

__all__ = [
    "Database",
    "get_db",
    "init_db",
    "close_db",
    "StoreOperationError",
    "DuplicateRecordError",
    "UserRepository",
    "LoginAttemptRepository",
    "DeviceRepository",
    "AlertRepository"
]
