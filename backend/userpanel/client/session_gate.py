"""
Session gate: decides once per page load whether the panel may be used
"""

import logging
from enum import Enum
from typing import Dict, Optional
from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

from userpanel.core.config import settings
from .render import render_access_denied

logger = logging.getLogger(__name__)

STORAGE_KEY = "usuariosSession"
QUERY_PARAM = "sessionToken"


class GateState(str, Enum):
    UNCHECKED = "unchecked"
    AUTHORIZED = "authorized"
    DENIED = "denied"


class TabStorage:
    """Key/value storage that lives as long as the browser tab"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str):
        self._items[key] = value

    def remove_item(self, key: str):
        self._items.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._items


def strip_query_param(url: str, param: str = QUERY_PARAM) -> str:
    """Return `url` without `param`, keeping every other query parameter"""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != param]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def token_from_url(url: str, param: str = QUERY_PARAM) -> Optional[str]:
    for key, value in parse_qsl(urlsplit(url).query, keep_blank_values=True):
        if key == param and value.strip():
            return value.strip()
    return None


class SessionGate:
    """
    Token gate with three states.

    UNCHECKED moves to AUTHORIZED or DENIED on `check()`; AUTHORIZED moves
    to DENIED when the proxy rejects the token. DENIED is terminal until a
    fresh load.
    """

    def __init__(self, storage: Optional[TabStorage] = None, portal_url: Optional[str] = None):
        self.storage = storage if storage is not None else TabStorage()
        self.portal_url = portal_url or settings.PORTAL_URL
        self.state = GateState.UNCHECKED
        self._token: Optional[str] = None

    @property
    def token(self) -> Optional[str]:
        return self._token if self.state == GateState.AUTHORIZED else None

    @property
    def is_authorized(self) -> bool:
        return self.state == GateState.AUTHORIZED

    def check(self, url: str) -> str:
        """
        Resolve the token for this load and return the URL to display.

        The URL token wins over the stored one and is persisted; the returned
        URL never carries it.
        """
        if self.state != GateState.UNCHECKED:
            return strip_query_param(url)

        token = token_from_url(url)
        if token:
            self.storage.set_item(STORAGE_KEY, token)
            logger.info("Session token taken from URL")
        else:
            token = self.storage.get_item(STORAGE_KEY)

        if token:
            self._token = token
            self.state = GateState.AUTHORIZED
        else:
            self.deny()

        return strip_query_param(url)

    def deny(self):
        """Enter the terminal denied state and forget the stored token"""
        if self.state != GateState.DENIED:
            logger.warning("Session denied")
        self.storage.remove_item(STORAGE_KEY)
        self._token = None
        self.state = GateState.DENIED

    def denied_view(self) -> dict:
        return render_access_denied(self.portal_url)
