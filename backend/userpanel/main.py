import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager

from userpanel.core.config import settings
from userpanel.api.api import api_router
from userpanel.api.routes import health_router
from userpanel.api.errors import (
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler
)
from userpanel.db.database import init_db, close_db

logger = logging.getLogger(__name__)

ENDPOINTS = [
    ("GET", "/health", "Status"),
    ("GET", "/api/users", "Listar usuários"),
    ("POST", "/api/users", "Criar usuário"),
    ("PUT", "/api/users/:id", "Atualizar usuário"),
    ("DELETE", "/api/users/:id", "Deletar usuário"),
    ("PATCH", "/api/users/:id/toggle-status", "Ativar/Desativar"),
    ("PATCH", "/api/users/:id/reset-password", "Resetar senha"),
    ("GET", "/api/login-attempts", "Tentativas de login"),
    ("GET", "/api/authorized-devices", "Dispositivos autorizados"),
    ("GET", "/api/alerts", "Alertas de segurança"),
    ("GET", "/api/dashboard", "Dashboard"),
]


def log_startup_banner():
    logger.info("=" * 47)
    logger.info(f"{settings.APP_NAME} v{settings.VERSION}")
    logger.info(f"Store: {settings.database_path or 'NOT CONFIGURED'}")
    logger.info(f"Portal: {settings.PORTAL_URL}")
    logger.info("Endpoints:")
    for method, path, description in ENDPOINTS:
        logger.info(f"  {method:<6} {path:<30} - {description}")
    logger.info("=" * 47)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup; a store that fails to open leaves the API in 503 mode
    await init_db()
    log_startup_banner()

    yield

    # Shutdown
    await close_db()


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Log every request as METHOD path"""
    async def dispatch(self, request: Request, call_next):
        logger.info(f"{request.method} {request.url.path}")
        return await call_next(request)


app = FastAPI(
    title="User Administration Panel API",
    description="Session-gated proxy over the users, login attempts, devices and alerts tables",
    version=settings.VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)
app.add_middleware(RequestLogMiddleware)

# Add exception handlers
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# Include API routes
app.include_router(health_router)
app.include_router(api_router)
