from .users import (
    UserCreate,
    UserUpdate,
    PasswordReset,
    UserPublic
)
from .activity import (
    LoginAttemptCreate,
    LoginAttemptResponse,
    DeviceResponse,
    AlertCreate,
    AlertResponse,
    DashboardStats
)
from .common import (
    SuccessResponse,
    ListResponse,
    MessageResponse,
    ErrorResponse,
    HealthResponse
)

__all__ = [
    # User schemas
    "UserCreate",
    "UserUpdate",
    "PasswordReset",
    "UserPublic",

    # Activity schemas
    "LoginAttemptCreate",
    "LoginAttemptResponse",
    "DeviceResponse",
    "AlertCreate",
    "AlertResponse",
    "DashboardStats",

    # Common schemas
    "SuccessResponse",
    "ListResponse",
    "MessageResponse",
    "ErrorResponse",
    "HealthResponse"
]
