"""
Pytest fixtures for the bucket budget API tests.

Provides a fresh store per test for each backend (a temporary SQLite file
and an in-memory store), a ``client`` fixture that runs the same HTTP test
against both, and small helpers for creating parent records.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from api.store import MemoryStore, SqliteStore  # noqa: E402

BACKENDS = ["sqlite", "memory"]


def _make_store(backend: str, tmp_path: Path):
    if backend == "sqlite":
        store = SqliteStore(tmp_path / "budget.sqlite", pool_size=4)
        store.create_schema()
        return store
    return MemoryStore()


@pytest.fixture(params=BACKENDS)
def store(request, tmp_path):
    """An empty, schema-ready store; parametrized over both backends."""
    s = _make_store(request.param, tmp_path)
    yield s
    s.close()


@pytest.fixture()
def sqlite_store(tmp_path):
    s = _make_store("sqlite", tmp_path)
    yield s
    s.close()


@pytest.fixture()
def client(store):
    """FastAPI TestClient serving ``store``."""
    pytest.importorskip("httpx")
    from fastapi.testclient import TestClient

    from api.app import create_app

    app = create_app(store=store)
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture()
def category_id(client):
    resp = client.post("/categories", json={"name": "House"})
    assert resp.status_code == 201
    return resp.json()["id"]


@pytest.fixture()
def bucket_id(client, category_id):
    resp = client.post("/buckets", json={"categoryID": category_id, "name": "Gas"})
    assert resp.status_code == 201
    return resp.json()["id"]


@pytest.fixture()
def template_id(client):
    resp = client.post("/templates", json={"name": "Paycheck"})
    assert resp.status_code == 201
    return resp.json()["id"]
