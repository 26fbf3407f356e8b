"""Tests for the permissions API and capability checks."""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from app.config.settings import Settings, settings
from app.core.dependencies import get_current_user, get_user_role, require_capability
from app.database.supabase_client import get_service_supabase
from app.main import app


def act_as(role, user_id="user-1"):
    app.dependency_overrides[get_current_user] = lambda: {"id": user_id, "email": f"{user_id}@eeu.gov.et"}
    app.dependency_overrides[get_user_role] = lambda: role


class TestPermissionsApi:
    """Test /api/v1/permissions endpoints."""

    def test_requires_token(self, client: TestClient):
        response = client.get("/api/v1/permissions/me")
        assert response.status_code in (401, 403)

    def test_my_permissions(self, client: TestClient):
        act_as("customer")
        response = client.get("/api/v1/permissions/me")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["role"] == "customer"
        assert data["permissions"][0] == {
            "resource": "Complaints", "view": True, "create": True, "edit": False, "delete": False,
        }
        assert len(data["permissions"]) == 6

    def test_my_permissions_without_role(self, client: TestClient):
        act_as(None)
        response = client.get("/api/v1/permissions/me")
        assert response.status_code == 200
        assert response.json()["data"] == {"role": None, "permissions": []}

    def test_matrix_for_admin(self, client: TestClient):
        act_as("admin")
        response = client.get("/api/v1/permissions")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert sorted(body["data"]) == ["admin", "customer", "manager", "staff"]

    @pytest.mark.parametrize("role", ["manager", "staff", "customer", "auditor"])
    def test_matrix_forbidden(self, client: TestClient, role):
        act_as(role)
        response = client.get("/api/v1/permissions")
        assert response.status_code == 403
        assert response.json()["detail"] == "Insufficient permissions. Required: Permissions:view"

    def test_role_permissions(self, client: TestClient):
        act_as("admin")
        response = client.get("/api/v1/permissions/staff")
        assert response.status_code == 200
        assert response.json()["data"]["permissions"][1]["resource"] == "Users"

    def test_unknown_role_permissions(self, client: TestClient):
        act_as("admin")
        response = client.get("/api/v1/permissions/auditor")
        assert response.status_code == 200
        assert response.json()["data"]["permissions"] == []

    def test_resolve_case_insensitive(self, client: TestClient):
        act_as("admin")
        response = client.get("/api/v1/permissions/customer/COMPLAINTS")
        assert response.status_code == 200
        assert response.json()["data"] == {
            "resource": "Complaints", "view": True, "create": True, "edit": False, "delete": False,
        }

    def test_resolve_unknown_resource(self, client: TestClient):
        act_as("admin")
        response = client.get("/api/v1/permissions/admin/Invoices")
        assert response.status_code == 200
        assert response.json()["data"] == {
            "resource": "Invoices", "view": False, "create": False, "edit": False, "delete": False,
        }

    def test_update_requires_edit(self, client: TestClient):
        act_as("manager")
        response = client.put("/api/v1/permissions/staff", json={"permissions": []})
        assert response.status_code == 403

    def test_update_saves_to_store(self, client: TestClient, supabase):
        act_as("admin", user_id="admin-001")
        app.dependency_overrides[get_service_supabase] = lambda: supabase
        response = client.put(
            "/api/v1/permissions/staff",
            json={"permissions": [{"resource": "analytics", "view": True}]},
        )
        assert response.status_code == 200
        permissions = response.json()["data"]["permissions"]
        assert permissions[4] == {"resource": "Analytics", "view": True, "create": False, "edit": False, "delete": False}
        row = supabase.table("system_settings").insert.call_args[0][0]
        assert row["updated_by"] == "admin-001"

    def test_update_unknown_role(self, client: TestClient, supabase):
        act_as("admin")
        app.dependency_overrides[get_service_supabase] = lambda: supabase
        response = client.put("/api/v1/permissions/auditor", json={"permissions": []})
        assert response.status_code == 400


STAFF_CAN_VIEW_PERMISSIONS = {"staff": [{"resource": "Permissions", "view": True}]}


def stored(supabase, value):
    supabase.table("system_settings").execute.return_value = MagicMock(data=[{"id": "row-1", "value": value}])


class TestPermissionsSource:
    """Test which matrix the capability checks consult."""

    def test_settings_store_matrix_is_honoured(self, client: TestClient, supabase, monkeypatch):
        monkeypatch.setattr(settings, "permissions_source", "settings_store")
        stored(supabase, STAFF_CAN_VIEW_PERMISSIONS)
        app.dependency_overrides[get_service_supabase] = lambda: supabase
        act_as("staff")
        response = client.get("/api/v1/permissions")
        assert response.status_code == 200
        assert response.json()["data"] == {
            "staff": [{"resource": "Permissions", "view": True, "create": False, "edit": False, "delete": False}],
        }

    def test_settings_store_drops_roles_missing_from_row(self, client: TestClient, supabase, monkeypatch):
        monkeypatch.setattr(settings, "permissions_source", "settings_store")
        stored(supabase, STAFF_CAN_VIEW_PERMISSIONS)
        app.dependency_overrides[get_service_supabase] = lambda: supabase
        act_as("admin")
        assert client.get("/api/v1/permissions").status_code == 403

    def test_static_source_ignores_store(self, client: TestClient, supabase, monkeypatch):
        monkeypatch.setattr(settings, "permissions_source", "static")
        stored(supabase, STAFF_CAN_VIEW_PERMISSIONS)
        app.dependency_overrides[get_service_supabase] = lambda: supabase
        act_as("staff")
        assert client.get("/api/v1/permissions").status_code == 403
        assert supabase.tables["system_settings"].execute.call_count == 0

    def test_source_flag(self):
        assert Settings(permissions_source="settings_store").use_settings_store is True
        assert Settings(permissions_source="static").use_settings_store is False


class TestApiRateLimit:
    """Test the rate limit on the /api/v1 routers."""

    def test_limit_exceeded(self, client: TestClient, rate_limit):
        rate_limit("2/minute")
        act_as("staff")
        for _ in range(2):
            assert client.get("/api/v1/permissions/me").status_code == 200
        response = client.get("/api/v1/permissions/me")
        assert response.status_code == 429
        assert response.headers["access-control-allow-origin"] == "*"

    def test_health_exempt(self, client: TestClient, rate_limit):
        rate_limit("1/minute")
        for _ in range(3):
            assert client.get("/health").status_code == 200


class TestRequireCapability:
    """Test the dependency factory."""

    def test_rejects_unknown_capability(self):
        with pytest.raises(ValueError):
            require_capability("Complaints", "approve")


class TestCorsOnApi:
    """Test CORS headers outside the proxy."""

    def test_preflight(self, client: TestClient):
        response = client.options("/api/v1/permissions")
        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == "*"

    def test_headers_on_api_responses(self, client: TestClient):
        act_as("admin")
        response = client.get("/api/v1/permissions")
        assert response.headers["access-control-allow-methods"] == "GET, POST, PUT, DELETE, OPTIONS"


class TestHealth:
    """Test health endpoints."""

    def test_health(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["gas_url_configured"] is True
        assert "timestamp" in data

    def test_ready(self, client: TestClient):
        response = client.get("/ready")
        assert response.status_code == 200
        assert response.json() == {"status": "ready"}
