"""Pytest configuration and shared fixtures."""

import json
import os

# Settings are read at import time
os.environ.setdefault("GAS_URL", "https://gas.example.test/macros/s/test/exec")
os.environ.setdefault("RATE_LIMIT", "10000/minute")
os.environ.setdefault("PERMISSIONS_SOURCE", "static")

import httpx
import pytest
from unittest.mock import MagicMock
from fastapi.testclient import TestClient

from app.config.settings import settings
from app.core.limiter import limiter
from app.database.supabase_client import get_supabase, get_service_supabase
from app.main import app
from app.modules.proxy.service import GasProxy

GAS_URL = os.environ["GAS_URL"]


class FakeUpstream:
    """Records every upstream call and answers with a configurable handler."""

    def __init__(self, handler=None):
        self.calls = []
        self.handler = handler or (lambda request: httpx.Response(200, json={"success": True, "data": []}))

    async def __call__(self, request: httpx.Request):
        self.calls.append(request)
        response = self.handler(request)
        if not isinstance(response, httpx.Response):
            response = await response
        return response

    @property
    def envelopes(self):
        return [json.loads(request.content) for request in self.calls]

    def proxy(self, timeout: float = 30.0) -> GasProxy:
        return GasProxy(gas_url=GAS_URL, timeout=timeout, transport=httpx.MockTransport(self))


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def client():
    # No test reaches a real Supabase project; tests needing a specific double override these again
    app.dependency_overrides[get_supabase] = make_supabase
    app.dependency_overrides[get_service_supabase] = make_supabase
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_supabase():
    """Supabase client double; table(...) returns one chainable query mock per table name."""
    mock = MagicMock()
    tables = {}

    def table(name):
        if name not in tables:
            query = MagicMock()
            for method in ("select", "eq", "limit", "insert", "update", "delete", "in_"):
                getattr(query, method).return_value = query
            query.execute.return_value = MagicMock(data=[])
            tables[name] = query
        return tables[name]

    mock.table.side_effect = table
    mock.tables = tables
    return mock


@pytest.fixture
def supabase():
    return make_supabase()


@pytest.fixture
def rate_limit(monkeypatch):
    """Call with a limit string, e.g. rate_limit("2/minute"), to start from empty counters."""
    def apply(value):
        monkeypatch.setattr(settings, "rate_limit", value)
        limiter.reset()

    yield apply
    limiter.reset()
