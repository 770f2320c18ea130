"""
Tests for login attempts, authorized devices, alerts, dashboard and health
"""

from datetime import datetime, timezone


def insert_device(raw_store, username, device_name, user_agent="Mozilla/5.0", timestamp=None):
    cursor = raw_store.execute(
        "INSERT INTO authorized_devices (username, ip_address, device_name, user_agent, timestamp) "
        "VALUES (?, ?, ?, ?, ?)",
        (username, "10.0.0.1", device_name, user_agent,
         timestamp or datetime.now(timezone.utc).isoformat())
    )
    raw_store.commit()
    return cursor.lastrowid


class TestLoginAttempts:
    def test_record_and_list(self, client, headers):
        client.post("/api/login-attempts", json={"username": "ana", "success": True}, headers=headers)
        response = client.post(
            "/api/login-attempts",
            json={"username": "bia", "success": False, "failure_reason": "Senha incorreta",
                  "ip_address": "10.0.0.9"},
            headers=headers
        )
        assert response.status_code == 201

        body = client.get("/api/login-attempts", headers=headers).json()

        assert body["total"] == 2
        assert body["data"][0]["username"] == "bia"
        assert body["data"][0]["success"] is False
        assert body["data"][0]["failure_reason"] == "Senha incorreta"

    def test_filter_by_username_and_limit(self, client, headers):
        for name in ("ana", "ana", "bia"):
            client.post("/api/login-attempts", json={"username": name}, headers=headers)

        only_ana = client.get("/api/login-attempts", params={"username": "ana"}, headers=headers).json()
        limited = client.get("/api/login-attempts", params={"limit": 1}, headers=headers).json()

        assert only_ana["total"] == 2
        assert limited["total"] == 1

    def test_record_requires_username(self, client, headers):
        response = client.post("/api/login-attempts", json={"success": True}, headers=headers)
        assert response.status_code == 400


class TestDevices:
    def test_list_and_revoke(self, client, headers, raw_store):
        device_id = insert_device(raw_store, "ana", "Notebook")
        insert_device(raw_store, "bia", "Celular")

        listed = client.get("/api/authorized-devices", headers=headers).json()
        filtered = client.get("/api/authorized-devices", params={"username": "bia"}, headers=headers).json()

        assert listed["total"] == 2
        assert [d["device_name"] for d in filtered["data"]] == ["Celular"]

        response = client.delete(f"/api/authorized-devices/{device_id}", headers=headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Dispositivo removido com sucesso"
        remaining = client.get("/api/authorized-devices", headers=headers).json()
        assert [d["username"] for d in remaining["data"]] == ["bia"]


class TestAlerts:
    def create_alert(self, client, headers, **overrides):
        payload = {
            "alert_type": "repeated_failure",
            "severity": "high",
            "username": "ana",
            "message": "5 tentativas falhas",
            "details": {"attempts": 5}
        }
        payload.update(overrides)
        return client.post("/api/alerts", json=payload, headers=headers)

    def test_create_alert(self, client, headers):
        response = self.create_alert(client, headers)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["details"] == {"attempts": 5}
        assert data["is_read"] is False
        assert data["read_at"] is None

    def test_default_severity_is_medium(self, client, headers):
        response = self.create_alert(client, headers, severity=None)
        # an explicit null is rejected by the schema; omit the field instead
        assert response.status_code == 422

        payload = {"alert_type": "suspicious_activity"}
        response = client.post("/api/alerts", json=payload, headers=headers)
        assert response.json()["data"]["severity"] == "medium"

    def test_alert_type_is_required(self, client, headers):
        response = client.post("/api/alerts", json={"message": "x"}, headers=headers)
        assert response.status_code == 400

    def test_unknown_alert_type_is_rejected(self, client, headers):
        response = self.create_alert(client, headers, alert_type="meteor_strike")
        assert response.status_code == 422

    def test_mark_read_and_unread_filter(self, client, headers):
        first = self.create_alert(client, headers).json()["data"]["id"]
        self.create_alert(client, headers, message="outro")

        response = client.patch(f"/api/alerts/{first}/mark-read", headers=headers)
        assert response.status_code == 200
        assert response.json()["data"]["is_read"] is True
        assert response.json()["data"]["read_at"] is not None

        unread = client.get("/api/alerts", params={"unread": "true"}, headers=headers).json()
        everything = client.get("/api/alerts", headers=headers).json()
        assert [a["message"] for a in unread["data"]] == ["outro"]
        assert everything["total"] == 2

    def test_mark_read_missing_alert_is_404(self, client, headers):
        response = client.patch("/api/alerts/999/mark-read", headers=headers)
        assert response.status_code == 404
        assert response.json()["error"] == "Alerta não encontrado"

    def test_delete_alert(self, client, headers):
        alert_id = self.create_alert(client, headers).json()["data"]["id"]

        assert client.delete(f"/api/alerts/{alert_id}", headers=headers).status_code == 200
        assert client.get("/api/alerts", headers=headers).json()["total"] == 0


class TestDashboard:
    def test_counts(self, client, headers):
        ana = client.post("/api/users", json={"username": "ana", "password": "a", "name": "Ana"},
                          headers=headers).json()["data"]["id"]
        client.post("/api/users", json={"username": "bia", "password": "b", "name": "Bia",
                                        "is_admin": True}, headers=headers)
        client.patch(f"/api/users/{ana}/toggle-status", headers=headers)
        client.post("/api/login-attempts", json={"username": "ana", "success": True}, headers=headers)
        client.post("/api/login-attempts", json={"username": "ana", "success": False}, headers=headers)
        client.post("/api/login-attempts", json={"username": "bia", "success": False}, headers=headers)
        client.post("/api/alerts", json={"alert_type": "unauthorized_access"}, headers=headers)

        data = client.get("/api/dashboard", headers=headers).json()["data"]

        assert data == {
            "total_users": 2,
            "active_users": 1,
            "inactive_users": 1,
            "admin_users": 1,
            "login_attempts_24h": 3,
            "successful_logins_24h": 1,
            "failed_logins_24h": 2,
            "unread_alerts": 1,
        }


class TestHealth:
    def test_healthy_without_token(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["store"] == "connected"
        assert body["environment"]["databaseUrl"] is True
        assert body["uptime"] >= 0

    def test_unconfigured_store_is_503(self, unconfigured_client):
        response = unconfigured_client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"


class TestUnconfiguredStore:
    def test_api_returns_503_with_diagnostics(self, unconfigured_client, headers):
        response = unconfigured_client.get("/api/users", headers=headers)

        assert response.status_code == 503
        body = response.json()
        assert body["success"] is False
        assert body["debug"] == {"databaseUrl": False, "databasePath": False}

    def test_token_is_checked_before_store(self, unconfigured_client):
        assert unconfigured_client.get("/api/users").status_code == 401
