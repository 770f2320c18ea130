from .users import router as users_router
from .login_attempts import router as login_attempts_router
from .devices import router as devices_router
from .alerts import router as alerts_router
from .dashboard import router as dashboard_router
from .health import router as health_router

__all__ = [
    "users_router",
    "login_attempts_router",
    "devices_router",
    "alerts_router",
    "dashboard_router",
    "health_router"
]
