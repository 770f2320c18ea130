"""
HTTP client for the panel proxy
"""

import logging
from typing import Optional, List, Dict, Any, Callable
import httpx

from userpanel.core.config import settings
from .exceptions import (
    PanelApiError,
    PanelConnectionError,
    PanelValidationError,
    SessionRejectedError
)

logger = logging.getLogger(__name__)


class PanelApiClient:
    """Async client for the panel proxy; every call carries the session token"""

    def __init__(
        self,
        token_provider: Callable[[], Optional[str]],
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        liveness_timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url or settings.API_BASE_URL
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self.liveness_timeout = liveness_timeout or settings.LIVENESS_TIMEOUT
        self._token_provider = token_provider
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Async context manager entry"""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()

    async def connect(self):
        """Create the underlying HTTP client"""
        if self._client:
            await self._client.aclose()

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            headers={"Content-Type": "application/json"},
            transport=self._transport
        )

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None

    def _headers(self) -> Dict[str, str]:
        token = self._token_provider()
        return {settings.SESSION_HEADER: token} if token else {}

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        if not self._client:
            await self.connect()

        kwargs: Dict[str, Any] = {"headers": self._headers()}
        if json is not None:
            kwargs["json"] = json
        if params:
            kwargs["params"] = {k: v for k, v in params.items() if v is not None}
        if timeout is not None:
            kwargs["timeout"] = timeout

        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise PanelConnectionError(f"Timeout on {method} {path}") from e
        except httpx.HTTPError as e:
            raise PanelConnectionError(f"Cannot reach proxy at {self.base_url}: {e}") from e

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}

        if response.is_success:
            return body

        error = body.get("error") or response.reason_phrase
        message = body.get("message")
        if response.status_code == 401:
            raise SessionRejectedError(error, message)
        if response.status_code in (400, 409):
            raise PanelValidationError(error, response.status_code, message)

        logger.warning(f"{method} {path} failed with {response.status_code}: {error}")
        raise PanelApiError(response.status_code, error, message)

    # Users

    async def list_users(self) -> List[Dict[str, Any]]:
        return (await self._request("GET", "/api/users")).get("data", [])

    async def create_user(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return (await self._request("POST", "/api/users", json=payload)).get("data")

    async def update_user(self, user_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        return (await self._request("PUT", f"/api/users/{user_id}", json=payload)).get("data")

    async def delete_user(self, user_id: int) -> Dict[str, Any]:
        return await self._request("DELETE", f"/api/users/{user_id}")

    async def toggle_user_status(self, user_id: int) -> Dict[str, Any]:
        return (await self._request("PATCH", f"/api/users/{user_id}/toggle-status")).get("data")

    async def reset_password(self, user_id: int, password: str) -> Dict[str, Any]:
        body = await self._request(
            "PATCH", f"/api/users/{user_id}/reset-password", json={"password": password}
        )
        return body.get("data")

    # Activity

    async def list_login_attempts(
        self, username: Optional[str] = None, limit: int = 100
    ) -> List[Dict[str, Any]]:
        body = await self._request(
            "GET", "/api/login-attempts", params={"username": username, "limit": limit}
        )
        return body.get("data", [])

    async def list_devices(self, username: Optional[str] = None) -> List[Dict[str, Any]]:
        body = await self._request("GET", "/api/authorized-devices", params={"username": username})
        return body.get("data", [])

    async def revoke_device(self, device_id: int) -> Dict[str, Any]:
        return await self._request("DELETE", f"/api/authorized-devices/{device_id}")

    async def list_alerts(self, unread: bool = False, limit: int = 50) -> List[Dict[str, Any]]:
        params = {"limit": limit, "unread": "true" if unread else None}
        return (await self._request("GET", "/api/alerts", params=params)).get("data", [])

    async def mark_alert_read(self, alert_id: int) -> Dict[str, Any]:
        return (await self._request("PATCH", f"/api/alerts/{alert_id}/mark-read")).get("data")

    async def delete_alert(self, alert_id: int) -> Dict[str, Any]:
        return await self._request("DELETE", f"/api/alerts/{alert_id}")

    async def get_dashboard(self) -> Dict[str, Any]:
        return (await self._request("GET", "/api/dashboard")).get("data", {})

    async def ping(self) -> bool:
        """
        Liveness probe against a cheap endpoint.

        Any non-2xx answer or a timeout counts as offline; a rejected token
        still raises SessionRejectedError.
        """
        try:
            await self._request("GET", "/api/users", timeout=self.liveness_timeout)
            return True
        except SessionRejectedError:
            raise
        except (PanelConnectionError, PanelApiError) as e:
            logger.info(f"Liveness probe failed: {e}")
            return False
