"""
Sync engine: polling, liveness tracking and the optimistic mutation coordinator
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

from userpanel.core.config import settings
from .api_client import PanelApiClient
from .exceptions import (
    PanelApiError,
    PanelConnectionError,
    PanelValidationError,
    SessionRejectedError
)
from .mutations import Mutation
from .session_gate import SessionGate
from .state import PanelState, VIEWS

logger = logging.getLogger(__name__)

RedrawListener = Callable[[str, PanelState], None]


class MutationOutcome(str, Enum):
    CONFIRMED = "confirmed"
    PROVISIONAL = "provisional"
    REJECTED = "rejected"
    FAILED = "failed"


class SyncEngine:
    """Owns the panel state and keeps it in step with the proxy"""

    def __init__(
        self,
        client: PanelApiClient,
        gate: SessionGate,
        state: Optional[PanelState] = None,
        views=("users",),
        poll_interval: Optional[float] = None,
        liveness_interval: Optional[float] = None,
        alert_interval: Optional[float] = None
    ):
        self.client = client
        self.gate = gate
        self.state = state or PanelState()
        self.views = tuple(v for v in views if v in VIEWS)
        self.poll_interval = poll_interval or settings.POLL_INTERVAL
        self.liveness_interval = liveness_interval or settings.LIVENESS_INTERVAL
        self.alert_interval = alert_interval or settings.ALERT_CHECK_INTERVAL
        self.is_running = False
        self.tasks: Dict[str, asyncio.Task] = {}
        self._listeners: List[RedrawListener] = []
        self._seen_alert_ids: Set[Any] = set()

    def add_listener(self, listener: RedrawListener):
        self._listeners.append(listener)

    def _redraw(self, view: str):
        for listener in self._listeners:
            listener(view, self.state)

    async def _fetch(self, view: str) -> List[Dict[str, Any]]:
        if view == "users":
            return await self.client.list_users()
        if view == "login_attempts":
            return await self.client.list_login_attempts()
        if view == "devices":
            return await self.client.list_devices()
        return await self.client.list_alerts()

    async def _session_lost(self):
        logger.warning("Proxy rejected the session token")
        self.gate.deny()
        self._redraw("denied")
        await self.stop()

    # Refresh

    async def refresh(self, view: str) -> bool:
        """Fetch one view; returns True when the collection was redrawn"""
        if not self.gate.is_authorized:
            return False
        collection = self.state.collection(view)
        if collection.in_flight:
            logger.debug(f"Skipping {view} refresh, previous fetch still running")
            return False

        collection.in_flight = True
        try:
            records = await self._fetch(view)
        except SessionRejectedError:
            await self._session_lost()
            return False
        except (PanelConnectionError, PanelApiError) as e:
            logger.warning(f"Failed to refresh {view}: {e}")
            return False
        finally:
            collection.in_flight = False

        changed = collection.replace_from_server(records)
        if changed:
            self._redraw(view)
        return changed

    async def refresh_dashboard(self) -> bool:
        if not self.gate.is_authorized:
            return False
        try:
            stats = await self.client.get_dashboard()
        except SessionRejectedError:
            await self._session_lost()
            return False
        except (PanelConnectionError, PanelApiError) as e:
            logger.warning(f"Failed to refresh dashboard: {e}")
            return False

        changed = self.state.set_dashboard(stats)
        if changed:
            self._redraw("dashboard")
        return changed

    async def refresh_all(self):
        for view in self.views:
            await self.refresh(view)

    async def check_connection(self) -> bool:
        """Liveness probe; coming back online refreshes every view"""
        if not self.gate.is_authorized:
            return False
        try:
            online = await self.client.ping()
        except SessionRejectedError:
            await self._session_lost()
            return False

        was_online = self.state.online
        if self.state.set_online(online):
            self._redraw("status")
        if online and not was_online:
            await self.refresh_all()
        return online

    async def check_alerts(self) -> int:
        """Notify about unread alerts not seen before; returns how many"""
        if not self.gate.is_authorized:
            return 0
        try:
            alerts = await self.client.list_alerts(unread=True)
        except SessionRejectedError:
            await self._session_lost()
            return 0
        except (PanelConnectionError, PanelApiError) as e:
            logger.warning(f"Failed to check alerts: {e}")
            return 0

        new_ids = {a.get("id") for a in alerts} - self._seen_alert_ids
        self._seen_alert_ids.update(new_ids)
        if new_ids:
            self.state.notify("info", f"{len(new_ids)} novo(s) alerta(s) de segurança")
            if "alerts" in self.views:
                await self.refresh("alerts")
        return len(new_ids)

    # Mutations

    async def execute(self, mutation: Mutation) -> MutationOutcome:
        """
        Run one optimistic mutation.

        The change is applied and announced before the proxy answers; a
        failed remote call reverts it exactly once. Offline, or against a
        record the server has never seen, the change stays provisional.
        """
        if not self.gate.is_authorized:
            return MutationOutcome.FAILED

        try:
            mutation.validate(self.state)
        except PanelValidationError as e:
            self.state.notify("validation", e.message)
            return MutationOutcome.REJECTED

        mutation.apply(self.state)
        self._redraw(mutation.view)
        self.state.notify("success", mutation.success_message)

        if not self.state.online or mutation.is_local_only:
            logger.info(f"{type(mutation).__name__} kept provisional")
            return MutationOutcome.PROVISIONAL

        try:
            server_record = await mutation.remote_call(self.client)
        except SessionRejectedError:
            self._rollback(mutation)
            await self._session_lost()
            return MutationOutcome.FAILED
        except PanelValidationError as e:
            self._rollback(mutation)
            self.state.notify("validation", e.message)
            return MutationOutcome.REJECTED
        except (PanelConnectionError, PanelApiError) as e:
            logger.error(f"{type(mutation).__name__} failed: {e}")
            self._rollback(mutation)
            self.state.notify("error", f"{mutation.failure_message}: {e}")
            return MutationOutcome.FAILED

        mutation.confirm(self.state, server_record)
        self._redraw(mutation.view)
        await self.refresh(mutation.view)
        if mutation.view == "users":
            await self.refresh_dashboard()
        return MutationOutcome.CONFIRMED

    def _rollback(self, mutation: Mutation):
        if mutation.revert(self.state):
            self._redraw(mutation.view)

    # Lifecycle

    async def start(self):
        """Initial load plus the three polling tasks"""
        if self.is_running or not self.gate.is_authorized:
            return

        self.is_running = True
        logger.info("Starting sync engine")

        await self.check_connection()
        if not self.is_running:
            return
        if self.state.online:
            await self.refresh_dashboard()

        self.tasks['poll'] = asyncio.create_task(self._poll_loop())
        self.tasks['liveness'] = asyncio.create_task(self._liveness_loop())
        self.tasks['alerts'] = asyncio.create_task(self._alert_loop())

    async def stop(self):
        """Cancel every polling task"""
        if not self.is_running:
            return

        self.is_running = False
        logger.info("Stopping sync engine")

        current = asyncio.current_task()
        for task_name, task in self.tasks.items():
            # The calling loop exits on its own once is_running is False
            if task is current:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                logger.info(f"Cancelled task: {task_name}")

        self.tasks.clear()

    async def _poll_loop(self):
        while self.is_running:
            try:
                await asyncio.sleep(self.poll_interval)
                if self.state.online:
                    await self.refresh_all()
                if self.state.online and self.is_running:
                    await self.refresh_dashboard()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in poll loop: {e}")

    async def _liveness_loop(self):
        while self.is_running:
            try:
                await asyncio.sleep(self.liveness_interval)
                await self.check_connection()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in liveness loop: {e}")

    async def _alert_loop(self):
        while self.is_running:
            try:
                await asyncio.sleep(self.alert_interval)
                if self.state.online:
                    await self.check_alerts()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in alert loop: {e}")
