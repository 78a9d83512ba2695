"""
Authorization tests across the API surface.

Verifies:
- Unauthenticated requests return 401
- Cashier role denied high-risk operations (403)
- Admin role can perform privileged operations
- The health endpoint is public
"""

import pytest

from posadmin.services import role_service

from conftest import login


# =============================================================================
# UNAUTHENTICATED ACCESS — 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/current"),
            ("GET", "/api/auth/permissions"),
            ("POST", "/api/auth/logout"),
            ("GET", "/api/users"),
            ("POST", "/api/users"),
            ("GET", "/api/roles"),
            ("POST", "/api/roles"),
            ("GET", "/api/roles/permissions"),
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("GET", "/api/categories"),
            ("GET", "/api/modifiers"),
            ("GET", "/api/discounts"),
            ("GET", "/api/tax-categories"),
            ("GET", "/api/store-settings"),
            ("GET", "/api/pos-devices"),
            ("GET", "/api/dining-options"),
            ("GET", "/api/kitchen-queues"),
            ("GET", "/api/payment-types"),
            ("GET", "/api/orders"),
            ("POST", "/api/orders"),
            ("GET", "/api/shifts"),
            ("GET", "/api/shifts/active"),
            ("POST", "/api/shifts/start"),
            ("GET", "/api/reports"),
            ("GET", "/api/reports/sales"),
            ("GET", "/api/allergens"),
            ("POST", "/api/allergens"),
            ("GET", "/api/customers"),
            ("GET", "/api/customers/export"),
            ("POST", "/api/customers/import"),
            ("GET", "/api/kitchen-orders"),
            ("POST", "/api/kitchen-orders"),
            ("PATCH", "/api/kitchen-orders/items/1/status"),
        ],
    )
    def test_requires_auth(self, client, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"


# =============================================================================
# CASHIER DENIED HIGH-RISK OPERATIONS — 403
# =============================================================================


class TestCashierDeniedHighRisk:
    """Cashier role cannot perform privileged operations."""

    def test_cannot_list_users(self, client, cashier_headers):
        resp = client.get("/api/users", headers=cashier_headers)
        assert resp.status_code == 403

    def test_cannot_create_user(self, client, cashier_headers):
        resp = client.post(
            "/api/users",
            json={"username": "x", "displayName": "X", "password": "P@ssw0rd123!"},
            headers=cashier_headers,
        )
        assert resp.status_code == 403

    def test_cannot_create_role(self, client, cashier_headers):
        resp = client.post(
            "/api/roles",
            json={"name": "evil-role", "permissions": {"canManageSettings": True}},
            headers=cashier_headers,
        )
        assert resp.status_code == 403

    def test_cannot_view_reports(self, client, cashier_headers):
        resp = client.get("/api/reports/sales", headers=cashier_headers)
        assert resp.status_code == 403

    def test_cannot_manage_stores(self, client, cashier_headers):
        resp = client.post(
            "/api/store-settings",
            json={"name": "Evil Store"},
            headers=cashier_headers,
        )
        assert resp.status_code == 403

    def test_cannot_manage_products(self, client, cashier_headers):
        resp = client.post(
            "/api/products",
            json={"product": {"name": "Evil", "price": 1}},
            headers=cashier_headers,
        )
        assert resp.status_code == 403

    def test_cannot_list_shifts(self, client, cashier_headers):
        resp = client.get("/api/shifts", headers=cashier_headers)
        assert resp.status_code == 403

    def test_cannot_manage_payment_types(self, client, cashier_headers):
        resp = client.post(
            "/api/payment-types",
            json={"name": "Evil", "code": "evil"},
            headers=cashier_headers,
        )
        assert resp.status_code == 403

    def test_forbidden_body(self, client, cashier_headers):
        resp = client.get("/api/users", headers=cashier_headers)
        body = resp.get_json()
        assert body["error"] == "Permission denied"
        assert body["required_permission"] == "canManageUsers"


# =============================================================================
# ADMIN CAN PERFORM PRIVILEGED OPERATIONS — 200
# =============================================================================


class TestAdminAccess:
    """Admin role can perform privileged operations."""

    def test_can_list_users(self, client, admin_headers):
        resp = client.get("/api/users", headers=admin_headers)
        assert resp.status_code == 200

    def test_can_list_roles(self, client, admin_headers):
        resp = client.get("/api/roles", headers=admin_headers)
        assert resp.status_code == 200

    def test_can_list_permissions(self, client, admin_headers):
        resp = client.get("/api/roles/permissions", headers=admin_headers)
        assert resp.status_code == 200
        assert len(resp.get_json()) > 0

    def test_can_list_stores(self, client, admin_headers):
        resp = client.get("/api/store-settings", headers=admin_headers)
        assert resp.status_code == 200

    def test_can_view_reports(self, client, admin_headers):
        resp = client.get("/api/reports/sales", headers=admin_headers)
        assert resp.status_code == 200

    def test_can_list_shifts(self, client, admin_headers):
        resp = client.get("/api/shifts", headers=admin_headers)
        assert resp.status_code == 200


# =============================================================================
# PUBLIC ENDPOINTS — NO AUTH REQUIRED
# =============================================================================


class TestPublicEndpoints:
    """The health endpoint is public."""

    def test_health_unseeded(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "degraded"
        assert body["database"]["status"] == "healthy"
        assert "init-roles" in body["roles"]["warning"]

    def test_health_seeded(self, client):
        role_service.seed_system_roles()
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "healthy"

    def test_health_does_not_reveal_sessions(self, client, cashier_user):
        login(client, "cashier")
        body = client.get("/api/health").get_json()
        assert set(body["database"]) == {"status", "latency_ms"}
        assert "refresh" not in str(body).lower()
