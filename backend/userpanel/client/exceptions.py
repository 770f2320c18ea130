"""
Custom exceptions for the panel client
"""
from typing import Optional


class PanelClientError(Exception):
    """Base exception for the panel client"""
    pass


class PanelConnectionError(PanelClientError):
    """Raised when the proxy cannot be reached or the request times out"""
    pass


class PanelApiError(PanelClientError):
    """Raised when the proxy answers with an error status"""

    def __init__(self, status_code: int, error: str, message: Optional[str] = None):
        self.status_code = status_code
        self.error = error
        self.message = message or error
        super().__init__(f"HTTP {status_code}: {error}")


class SessionRejectedError(PanelApiError):
    """Raised when the proxy rejects the session token (401)"""

    def __init__(self, error: str = "Não autenticado", message: Optional[str] = None):
        super().__init__(401, error, message)


class PanelValidationError(PanelApiError):
    """Raised for rejected input: missing fields or duplicate usernames"""

    def __init__(self, error: str, status_code: int = 400, message: Optional[str] = None):
        super().__init__(status_code, error, message)
