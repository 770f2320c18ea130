from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Optional, List
import logging

logger = logging.getLogger(__name__)


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with structured error response"""
    logger.warning(f"HTTP {exc.status_code}: {exc.detail} - {request.url.path}")

    content = {
        "success": False,
        "error": exc.detail,
        "message": getattr(exc, "message", None) or exc.detail,
        "status_code": exc.status_code,
        "path": str(request.url.path)
    }
    content.update(getattr(exc, "extra", None) or {})

    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with detailed error information"""
    logger.warning(f"Validation error: {exc.errors()} - {request.url.path}")

    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": "Validation error",
            "message": "Validation error",
            "status_code": 422,
            "errors": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
                for err in exc.errors()
            ],
            "path": str(request.url.path)
        }
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions"""
    logger.error(f"Unexpected error: {str(exc)} - {request.url.path}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "message": str(exc),
            "status_code": 500,
            "path": str(request.url.path)
        }
    )


# Custom exception classes
class PanelHTTPException(HTTPException):
    """HTTPException carrying a diagnostic message and extra body fields"""

    def __init__(
        self,
        status_code: int,
        error: str,
        message: Optional[str] = None,
        extra: Optional[dict] = None,
        headers: Optional[dict] = None
    ):
        super().__init__(status_code=status_code, detail=error, headers=headers)
        self.message = message
        self.extra = extra or {}


class MissingFieldsError(PanelHTTPException):
    def __init__(self, required: List[str], error: str = "Campos obrigatórios faltando"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error=error,
            extra={"required": required}
        )


class UnauthorizedError(PanelHTTPException):
    def __init__(self, error: str = "Não autenticado"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error=error,
            message="Sessão ausente ou expirada"
        )


class RecordNotFoundError(PanelHTTPException):
    def __init__(self, error: str = "Usuário não encontrado"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, error=error)


class UsernameTakenError(PanelHTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error="Nome de usuário já existe"
        )


class StoreError(PanelHTTPException):
    def __init__(self, error: str, message: str):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error=error,
            message=message
        )


class StoreUnavailableError(PanelHTTPException):
    def __init__(self, debug: dict):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error="Serviço indisponível",
            message="Banco de dados não está configurado. Verifique as variáveis de ambiente.",
            extra={"debug": debug}
        )
