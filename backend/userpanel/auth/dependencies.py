from fastapi import Request

from userpanel.core.config import settings
from userpanel.api.errors import UnauthorizedError


async def require_session_token(request: Request) -> str:
    """
    Dependency guarding every /api route.

    The token is issued by the external portal and trusted by presence
    alone; header lookup is case-insensitive.
    """
    token = request.headers.get(settings.SESSION_HEADER, "").strip()
    if not token:
        raise UnauthorizedError()
    return token
