"""
Tests for the sync engine and optimistic mutations, against a fake proxy
"""

import asyncio
import json
import re

import httpx
import pytest

from userpanel.client import (
    PanelApiClient,
    SessionGate,
    GateState,
    TabStorage,
    SyncEngine,
    MutationOutcome,
    CreateUser,
    UpdateUser,
    ToggleUserStatus,
    ToggleAdmin,
    ResetPassword,
    DeleteUser,
    RevokeDevice,
    MarkAlertRead,
    DeleteAlert,
    fingerprint
)
from userpanel.client.session_gate import STORAGE_KEY


class FakeProxy:
    """In-memory stand-in for the proxy's REST surface"""

    def __init__(self):
        self.users = []
        self.devices = [{"id": 1, "username": "ana", "device_name": "Notebook"}]
        self.alerts = []
        self.next_id = 1
        self.calls = []
        self.failures = {}
        self.reachable = True
        self.reject_token = False
        self.toggle_gate = None

    def add_user(self, username, name, is_active=True, is_admin=False):
        user = {"id": self.next_id, "username": username, "name": name, "password": "$2b$hash",
                "is_active": is_active, "is_admin": is_admin,
                "created_at": "2024-01-01T00:00:00+00:00", "updated_at": "2024-01-01T00:00:00+00:00"}
        self.next_id += 1
        self.users.insert(0, user)
        return user

    def public(self, user):
        return {k: v for k, v in user.items() if k != "password"}

    def find(self, user_id):
        return next((u for u in self.users if u["id"] == user_id), None)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        self.calls.append((method, path))

        if not self.reachable:
            raise httpx.ConnectError("proxy unreachable", request=request)
        if self.reject_token or not request.headers.get("x-session-token"):
            return httpx.Response(401, json={"success": False, "error": "Não autenticado"})
        if (method, path) in self.failures:
            status, error = self.failures[(method, path)]
            return httpx.Response(status, json={"success": False, "error": error, "message": "boom"})

        body = json.loads(request.content) if request.content else {}

        if path == "/api/users" and method == "GET":
            data = [self.public(u) for u in self.users]
            return httpx.Response(200, json={"success": True, "data": data, "total": len(data)})
        if path == "/api/users" and method == "POST":
            if any(u["username"] == body["username"].lower() for u in self.users):
                return httpx.Response(409, json={"success": False, "error": "Nome de usuário já existe"})
            user = self.add_user(body["username"].lower(), body["name"], is_admin=body.get("is_admin", False))
            return httpx.Response(201, json={"success": True, "data": self.public(user)})

        match = re.match(r"^/api/users/(\d+)(/toggle-status|/reset-password)?$", path)
        if match:
            user = self.find(int(match.group(1)))
            if method == "DELETE":
                self.users = [u for u in self.users if u["id"] != int(match.group(1))]
                return httpx.Response(200, json={"success": True, "message": "ok"})
            if user is None:
                return httpx.Response(404, json={"success": False, "error": "Usuário não encontrado"})
            if match.group(2) == "/toggle-status":
                if self.toggle_gate is not None:
                    await self.toggle_gate.wait()
                user["is_active"] = not user["is_active"]
            elif match.group(2) == "/reset-password":
                user["password"] = "$2b$other"
            elif method == "PUT":
                user.update({k: v for k, v in body.items() if k != "password"})
            return httpx.Response(200, json={"success": True, "data": self.public(user)})

        if path == "/api/authorized-devices" and method == "GET":
            return httpx.Response(200, json={"success": True, "data": self.devices, "total": len(self.devices)})
        if path.startswith("/api/authorized-devices/") and method == "DELETE":
            return httpx.Response(200, json={"success": True, "message": "ok"})

        if path == "/api/alerts" and method == "GET":
            data = self.alerts
            if request.url.params.get("unread") == "true":
                data = [a for a in data if not a["is_read"]]
            return httpx.Response(200, json={"success": True, "data": data, "total": len(data)})
        match = re.match(r"^/api/alerts/(\d+)(/mark-read)?$", path)
        if match:
            alert = next(a for a in self.alerts if a["id"] == int(match.group(1)))
            if method == "DELETE":
                self.alerts.remove(alert)
                return httpx.Response(200, json={"success": True, "message": "ok"})
            alert.update(is_read=True, read_at="2024-01-02T00:00:00+00:00")
            return httpx.Response(200, json={"success": True, "data": alert})

        if path == "/api/dashboard":
            return httpx.Response(200, json={"success": True, "data": {"total_users": len(self.users)}})

        return httpx.Response(404, json={"success": False, "error": "Not Found"})

    def count(self, method, path=None):
        return sum(1 for m, p in self.calls if m == method and (path is None or p == path))


@pytest.fixture
def proxy():
    proxy = FakeProxy()
    proxy.add_user("ana", "Ana Silva")
    proxy.add_user("bia", "Bia Souza", is_admin=True)
    return proxy


@pytest.fixture
def gate():
    gate = SessionGate(TabStorage(), portal_url="https://portal.example.com")
    gate.check("https://panel.example.com/?sessionToken=abc")
    return gate


@pytest.fixture
async def api(proxy, gate):
    client = PanelApiClient(
        token_provider=lambda: gate.token,
        base_url="http://proxy.test",
        transport=httpx.MockTransport(proxy.handler)
    )
    yield client
    await client.close()


@pytest.fixture
async def engine(api, gate, proxy):
    engine = SyncEngine(api, gate, views=("users", "devices", "alerts"),
                        poll_interval=3600, liveness_interval=3600, alert_interval=3600)
    engine.state.set_online(True)
    await engine.refresh_all()
    proxy.calls.clear()
    engine.state.drain_notifications()
    yield engine
    await engine.stop()


def usernames(engine):
    return [u["username"] for u in engine.state.collection("users")]


class TestRefresh:
    async def test_identical_fetch_does_not_redraw(self, engine):
        redraws = []
        engine.add_listener(lambda view, state: redraws.append(view))

        assert await engine.refresh("users") is False
        assert await engine.refresh("users") is False
        assert redraws == []

    async def test_new_record_redraws(self, engine, proxy):
        redraws = []
        engine.add_listener(lambda view, state: redraws.append(view))
        proxy.add_user("carla", "Carla")

        assert await engine.refresh("users") is True
        assert redraws == ["users"]
        assert usernames(engine) == ["carla", "bia", "ana"]

    async def test_fingerprint_is_ordered_ids(self):
        assert fingerprint([{"id": 2}, {"id": 1}]) == "[2, 1]"
        assert fingerprint([{"id": 1}, {"id": 2}]) != fingerprint([{"id": 2}, {"id": 1}])

    async def test_in_flight_view_skips_tick(self, engine, proxy):
        engine.state.collection("users").in_flight = True

        assert await engine.refresh("users") is False
        assert proxy.calls == []

    async def test_fetch_failure_keeps_collection(self, engine, proxy):
        proxy.failures[("GET", "/api/users")] = (500, "Erro ao buscar usuários")

        assert await engine.refresh("users") is False
        assert usernames(engine) == ["bia", "ana"]
        assert engine.state.collection("users").in_flight is False

    async def test_secrets_never_reach_the_client(self, engine):
        assert all("password" not in u for u in engine.state.collection("users"))


class TestCreateUser:
    async def test_provisional_row_then_server_id(self, engine, proxy):
        seen = []
        engine.add_listener(
            lambda view, state: seen.append([u["id"] for u in state.collection("users")])
        )

        outcome = await engine.execute(CreateUser("ana.maria", "secret1", "Ana Maria"))

        assert outcome == MutationOutcome.CONFIRMED
        assert str(seen[0][0]).startswith("tmp-")
        first = engine.state.collection("users").records[0]
        assert isinstance(first["id"], int)
        assert first["username"] == "ana.maria"
        assert all("password" not in u for u in engine.state.collection("users"))
        assert proxy.count("GET", "/api/users") == 1
        assert proxy.count("GET", "/api/dashboard") == 1
        assert engine.state.dashboard == {"total_users": 3}

    async def test_remote_failure_rolls_back_exactly_once(self, engine, proxy):
        proxy.failures[("POST", "/api/users")] = (500, "Erro ao criar usuário")
        before = [dict(r) for r in engine.state.collection("users")]
        mutation = CreateUser("carla", "secret1", "Carla")

        outcome = await engine.execute(mutation)

        assert outcome == MutationOutcome.FAILED
        assert engine.state.collection("users").records == before
        assert mutation.revert(engine.state) is False
        assert engine.state.collection("users").records == before
        kinds = [n.kind for n in engine.state.notifications]
        assert kinds == ["success", "error"]

    async def test_local_duplicate_is_rejected_without_change(self, engine, proxy):
        before = [dict(r) for r in engine.state.collection("users")]

        outcome = await engine.execute(CreateUser("ANA", "x", "Outra Ana"))

        assert outcome == MutationOutcome.REJECTED
        assert engine.state.collection("users").records == before
        assert proxy.calls == []
        assert engine.state.notifications[-1].kind == "validation"
        assert engine.state.notifications[-1].message == "Nome de usuário já existe"

    async def test_server_conflict_is_validation_and_reverts(self, engine, proxy):
        proxy.add_user("carla", "Carla")
        before = [dict(r) for r in engine.state.collection("users")]

        outcome = await engine.execute(CreateUser("carla", "x", "Carla 2"))

        assert outcome == MutationOutcome.REJECTED
        assert engine.state.collection("users").records == before
        assert engine.state.notifications[-1].kind == "validation"

    async def test_missing_fields_are_rejected_locally(self, engine, proxy):
        assert await engine.execute(CreateUser("", "x", "Sem Login")) == MutationOutcome.REJECTED
        assert proxy.calls == []


class TestToggle:
    async def test_flag_flips_before_call_resolves(self, engine, proxy):
        proxy.toggle_gate = asyncio.Event()
        ana_id = proxy.find(1)["id"]

        task = asyncio.create_task(engine.execute(ToggleUserStatus(ana_id)))
        await asyncio.sleep(0.01)

        assert engine.state.collection("users").find(ana_id)["is_active"] is False
        assert not task.done()

        proxy.toggle_gate.set()
        outcome = await task

        assert outcome == MutationOutcome.CONFIRMED
        assert engine.state.collection("users").find(ana_id)["is_active"] is proxy.find(ana_id)["is_active"]
        assert engine.state.notifications[0].message == "Usuário desativado com sucesso"

    async def test_failed_toggle_restores_flag(self, engine, proxy):
        proxy.failures[("PATCH", "/api/users/1/toggle-status")] = (500, "Erro ao alterar status")

        outcome = await engine.execute(ToggleUserStatus(1))

        assert outcome == MutationOutcome.FAILED
        assert engine.state.collection("users").find(1)["is_active"] is True

    async def test_toggle_admin(self, engine, proxy):
        outcome = await engine.execute(ToggleAdmin(1))

        assert outcome == MutationOutcome.CONFIRMED
        assert proxy.find(1)["is_admin"] is True
        assert engine.state.collection("users").find(1)["is_admin"] is True


class TestOtherMutations:
    async def test_update_user(self, engine, proxy):
        outcome = await engine.execute(UpdateUser(1, name="Ana Maria", password="  "))

        assert outcome == MutationOutcome.CONFIRMED
        assert proxy.find(1)["name"] == "Ana Maria"
        assert proxy.find(1)["password"] == "$2b$hash"

    async def test_update_to_taken_username_is_rejected(self, engine, proxy):
        outcome = await engine.execute(UpdateUser(1, username="BIA"))

        assert outcome == MutationOutcome.REJECTED
        assert proxy.calls == []

    async def test_reset_password(self, engine, proxy):
        assert await engine.execute(ResetPassword(1, "")) == MutationOutcome.REJECTED
        assert await engine.execute(ResetPassword(1, "nova")) == MutationOutcome.CONFIRMED
        assert proxy.find(1)["password"] == "$2b$other"

    async def test_delete_failure_reinserts_in_place(self, engine, proxy):
        proxy.failures[("DELETE", "/api/users/2")] = (500, "Erro ao deletar usuário")

        outcome = await engine.execute(DeleteUser(2))

        assert outcome == MutationOutcome.FAILED
        assert usernames(engine) == ["bia", "ana"]

    async def test_revoke_device(self, engine, proxy):
        proxy.devices = []

        outcome = await engine.execute(RevokeDevice(1))

        assert outcome == MutationOutcome.CONFIRMED
        assert len(engine.state.collection("devices")) == 0

    async def test_alert_mark_read_and_delete(self, engine, proxy):
        proxy.alerts = [{"id": 7, "alert_type": "repeated_failure", "severity": "high",
                         "is_read": False, "read_at": None}]
        await engine.refresh("alerts")

        assert await engine.execute(MarkAlertRead(7)) == MutationOutcome.CONFIRMED
        assert engine.state.collection("alerts").find(7)["is_read"] is True

        assert await engine.execute(DeleteAlert(7)) == MutationOutcome.CONFIRMED
        assert len(engine.state.collection("alerts")) == 0


class TestOffline:
    async def test_offline_delete_is_provisional_until_reconnect(self, engine, proxy):
        engine.state.set_online(False)

        outcome = await engine.execute(DeleteUser(1))

        assert outcome == MutationOutcome.PROVISIONAL
        assert usernames(engine) == ["bia"]
        assert proxy.calls == []

        assert await engine.check_connection() is True
        assert engine.state.online is True
        assert usernames(engine) == ["bia", "ana"]

    async def test_unreachable_proxy_marks_offline(self, engine, proxy):
        proxy.reachable = False

        assert await engine.check_connection() is False
        assert engine.state.online is False

    async def test_error_status_marks_offline(self, engine, proxy):
        proxy.failures[("GET", "/api/users")] = (503, "Serviço indisponível")

        assert await engine.check_connection() is False

    async def test_mutation_on_unsynced_record_stays_local(self, engine, proxy):
        engine.state.set_online(False)
        await engine.execute(CreateUser("carla", "x", "Carla"))
        temp_id = engine.state.collection("users").records[0]["id"]
        engine.state.set_online(True)

        outcome = await engine.execute(ToggleUserStatus(temp_id))

        assert outcome == MutationOutcome.PROVISIONAL
        assert proxy.calls == []


class TestSessionLoss:
    async def test_rejected_token_denies_and_stops(self, engine, proxy, gate):
        await engine.start()
        proxy.reject_token = True

        outcome = await engine.execute(ToggleUserStatus(1))

        assert outcome == MutationOutcome.FAILED
        assert gate.state == GateState.DENIED
        assert STORAGE_KEY not in gate.storage
        assert engine.is_running is False
        assert engine.tasks == {}
        assert engine.state.collection("users").find(1)["is_active"] is True

    async def test_rejected_refresh_denies(self, engine, proxy, gate):
        proxy.reject_token = True

        await engine.refresh("users")

        assert gate.state == GateState.DENIED


class TestAlertsAndLifecycle:
    async def test_new_unread_alerts_notify_once(self, engine, proxy):
        proxy.alerts = [{"id": 1, "alert_type": "unauthorized_access", "severity": "critical",
                         "is_read": False, "read_at": None}]

        assert await engine.check_alerts() == 1
        assert await engine.check_alerts() == 0
        assert [n.kind for n in engine.state.notifications] == ["info"]

    async def test_start_and_stop(self, engine, gate):
        await engine.start()

        assert engine.is_running
        assert set(engine.tasks) == {"poll", "liveness", "alerts"}
        assert engine.state.dashboard == {"total_users": 2}

        await engine.stop()

        assert engine.is_running is False
        assert engine.tasks == {}

    async def test_start_requires_authorized_gate(self, api):
        denied = SessionGate(portal_url="https://portal.example.com")
        denied.check("https://panel.example.com/")
        engine = SyncEngine(api, denied)

        await engine.start()

        assert engine.is_running is False


class TestPollingLoops:
    async def test_poll_picks_up_new_records(self, engine, proxy):
        engine.poll_interval = 0.01
        await engine.start()
        proxy.add_user("carla", "Carla")

        await asyncio.sleep(0.1)

        assert usernames(engine) == ["carla", "bia", "ana"]
        assert engine.state.dashboard == {"total_users": 3}

    async def test_nothing_is_fetched_while_offline(self, engine, proxy):
        engine.poll_interval = 0.01
        engine.alert_interval = 0.01
        proxy.reachable = False
        await engine.start()
        assert engine.state.online is False
        proxy.calls.clear()

        await asyncio.sleep(0.1)

        assert proxy.calls == []

    async def test_reconnect_resumes_refresh(self, engine, proxy):
        engine.liveness_interval = 0.02
        proxy.reachable = False
        await engine.start()
        proxy.add_user("carla", "Carla")
        proxy.reachable = True

        await asyncio.sleep(0.2)

        assert engine.state.online is True
        assert usernames(engine) == ["carla", "bia", "ana"]

    async def test_polling_stops_after_rejection(self, engine, proxy, gate):
        engine.poll_interval = 0.01
        await engine.start()
        proxy.calls.clear()
        proxy.reject_token = True

        await asyncio.sleep(0.1)

        assert gate.state == GateState.DENIED
        assert engine.is_running is False
        assert proxy.calls == [("GET", "/api/users")]

    async def test_denied_gate_sends_nothing(self, engine, proxy, gate):
        gate.deny()

        assert await engine.refresh("users") is False
        assert await engine.refresh_dashboard() is False
        assert await engine.check_connection() is False
        assert await engine.check_alerts() == 0
        assert await engine.execute(ToggleUserStatus(1)) == MutationOutcome.FAILED
        assert proxy.calls == []

    async def test_alert_loop_notifies(self, engine, proxy):
        engine.alert_interval = 0.01
        proxy.alerts = [{"id": 3, "alert_type": "after_hours_access", "severity": "medium",
                         "is_read": False, "read_at": None}]
        await engine.start()

        await asyncio.sleep(0.1)

        assert [n.kind for n in engine.state.notifications] == ["info"]
        assert engine.state.collection("alerts").find(3) is not None
