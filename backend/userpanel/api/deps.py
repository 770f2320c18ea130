from fastapi import Depends

from userpanel.core.config import settings
from userpanel.db.database import Database, get_db
from userpanel.db.repositories import (
    UserRepository,
    LoginAttemptRepository,
    DeviceRepository,
    AlertRepository
)
from userpanel.api.errors import StoreUnavailableError


def store_debug_info() -> dict:
    """Which store settings are present, for 503 diagnostics"""
    return {
        "databaseUrl": bool(settings.DATABASE_URL),
        "databasePath": settings.database_path is not None,
    }


def get_store() -> Database:
    """Current store, or 503 when it failed to initialize"""
    db = get_db()
    if db is None:
        raise StoreUnavailableError(store_debug_info())
    return db


def get_user_repository(db: Database = Depends(get_store)) -> UserRepository:
    return UserRepository(db)


def get_login_attempt_repository(db: Database = Depends(get_store)) -> LoginAttemptRepository:
    return LoginAttemptRepository(db)


def get_device_repository(db: Database = Depends(get_store)) -> DeviceRepository:
    return DeviceRepository(db)


def get_alert_repository(db: Database = Depends(get_store)) -> AlertRepository:
    return AlertRepository(db)
