import sqlite3

import pytest
from fastapi.testclient import TestClient

from userpanel.core.config import settings
from userpanel.main import app


@pytest.fixture
def store_path(tmp_path):
    return str(tmp_path / "usuarios.db")


@pytest.fixture
def client(store_path, monkeypatch):
    """Proxy backed by a fresh sqlite file"""
    monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite+aiosqlite:///{store_path}")
    monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 4)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def unconfigured_client(monkeypatch):
    """Proxy started without a store URL"""
    monkeypatch.setattr(settings, "DATABASE_URL", "")
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def headers():
    return {"x-session-token": "test-token"}


@pytest.fixture
def raw_store(client, store_path):
    """Direct sqlite connection to the proxy's store file"""
    connection = sqlite3.connect(store_path)
    connection.row_factory = sqlite3.Row
    yield connection
    connection.close()
