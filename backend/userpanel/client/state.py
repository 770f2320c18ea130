"""
Explicit client-side application state
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

VIEWS = ("users", "login_attempts", "devices", "alerts")

TEMP_ID_PREFIX = "tmp-"


def is_temporary_id(record_id: Any) -> bool:
    return isinstance(record_id, str) and record_id.startswith(TEMP_ID_PREFIX)


def fingerprint(records: List[Dict[str, Any]]) -> str:
    """Ordered record ids serialized as JSON"""
    return json.dumps([r.get("id") for r in records])


@dataclass
class Notification:
    kind: str  # success, error, validation, info
    message: str
    dismissible: bool = True


class Collection:
    """
    In-memory copy of one view's records.

    `fingerprint` belongs to the last server fetch; any local change clears
    it so the next fetch always replaces the provisional copy.
    """

    def __init__(self, records: Optional[List[Dict[str, Any]]] = None):
        self.records: List[Dict[str, Any]] = list(records or [])
        self.fingerprint: Optional[str] = None
        self.in_flight = False

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    def index_of(self, record_id: Any) -> Optional[int]:
        for index, record in enumerate(self.records):
            if record.get("id") == record_id:
                return index
        return None

    def find(self, record_id: Any) -> Optional[Dict[str, Any]]:
        index = self.index_of(record_id)
        return self.records[index] if index is not None else None

    def insert(self, record: Dict[str, Any], index: int = 0):
        self.records.insert(index, record)
        self.fingerprint = None

    def replace(self, record_id: Any, record: Dict[str, Any]) -> bool:
        index = self.index_of(record_id)
        if index is None:
            return False
        self.records[index] = record
        self.fingerprint = None
        return True

    def patch(self, record_id: Any, values: Dict[str, Any]) -> bool:
        record = self.find(record_id)
        if record is None:
            return False
        record.update(values)
        self.fingerprint = None
        return True

    def remove(self, record_id: Any) -> Optional[Dict[str, Any]]:
        index = self.index_of(record_id)
        if index is None:
            return None
        self.fingerprint = None
        return self.records.pop(index)

    def replace_from_server(self, records: List[Dict[str, Any]]) -> bool:
        """Adopt a fetched list; returns False when it matches the last fetch"""
        new_fingerprint = fingerprint(records)
        if new_fingerprint == self.fingerprint:
            return False
        self.records = list(records)
        self.fingerprint = new_fingerprint
        return True


class PanelState:
    """Collections, connectivity, dashboard counters and notifications"""

    def __init__(self, views=VIEWS):
        self.collections: Dict[str, Collection] = {view: Collection() for view in views}
        self.online = False
        self.dashboard: Dict[str, Any] = {}
        self.notifications: List[Notification] = []

    def collection(self, view: str) -> Collection:
        try:
            return self.collections[view]
        except KeyError:
            raise ValueError(f"Unknown view: {view}")

    def set_online(self, online: bool) -> bool:
        """Update the connectivity flag, returning whether it changed"""
        changed = self.online != online
        if changed:
            logger.info(f"Proxy is {'online' if online else 'offline'}")
        self.online = online
        return changed

    def set_dashboard(self, stats: Dict[str, Any]) -> bool:
        changed = stats != self.dashboard
        self.dashboard = dict(stats)
        return changed

    def notify(self, kind: str, message: str, dismissible: bool = True) -> Notification:
        notification = Notification(kind=kind, message=message, dismissible=dismissible)
        self.notifications.append(notification)
        return notification

    def drain_notifications(self) -> List[Notification]:
        drained, self.notifications = self.notifications, []
        return drained
