from pydantic import BaseModel
from typing import Optional, Any, TypeVar, Generic, List, Dict

T = TypeVar('T')


class SuccessResponse(BaseModel, Generic[T]):
    """Standard success response"""
    success: bool = True
    message: str = "Operação concluída com sucesso"
    data: Optional[T] = None

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "message": "Usuário criado com sucesso",
                "data": {"id": 1}
            }
        }


class ListResponse(BaseModel, Generic[T]):
    """Standard list response"""
    success: bool = True
    data: List[T] = []
    total: int = 0


class MessageResponse(BaseModel):
    """Response for operations that return no record"""
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Standard error response"""
    success: bool = False
    error: str
    message: Optional[str] = None
    status_code: int
    path: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "error": "Usuário não encontrado",
                "message": "Usuário não encontrado",
                "status_code": 404,
                "path": "/api/users/123"
            }
        }


class HealthResponse(BaseModel):
    """Health check response"""
    status: str = "healthy"
    uptime: float
    timestamp: str
    environment: Dict[str, Any]
    store: str = "connected"

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "uptime": 12.5,
                "timestamp": "2024-01-01T12:00:00+00:00",
                "environment": {"databaseUrl": True, "portalUrl": True, "debug": False},
                "store": "connected"
            }
        }
