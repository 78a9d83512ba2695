"""
Route guard tests.

Verifies:
- Missing, malformed, forged and expired tokens get 401 before any
  permission logic, and the handler never runs
- Insufficient permission gets 403, and the handler never runs
- Custom role changes apply to the next request with the same token
"""

from datetime import datetime, timedelta, timezone

import pytest
from flask import Blueprint, jsonify

from posadmin.decorators import current_user_can, require_any_permission, require_auth, require_permission
from posadmin.models import Role
from posadmin.services import token_service

from conftest import auth_headers, get_auth_token


@pytest.fixture(autouse=True)
def calls(app):
    """Register guarded routes before the first request and count handler runs."""
    calls = []
    bp = Blueprint("guarded", __name__, url_prefix="/guarded")

    @bp.get("/authed")
    @require_auth
    def authed():
        calls.append("authed")
        return jsonify({"ok": True})

    @bp.get("/reports")
    @require_auth
    @require_permission("canViewReports")
    def reports():
        calls.append("reports")
        return jsonify({"ok": True})

    @bp.get("/bare")
    @require_permission("canViewReports")
    def bare():
        calls.append("bare")
        return jsonify({"ok": True})

    @bp.get("/any")
    @require_auth
    @require_any_permission("canViewReports", "canManageOrders")
    def any_of():
        calls.append("any")
        return jsonify({"canManageUsers": current_user_can("canManageUsers")})

    @bp.get("/admin-any")
    @require_auth
    @require_any_permission("canManageSettings", "canManageUsers")
    def admin_any():
        calls.append("admin-any")
        return jsonify({"ok": True})

    app.register_blueprint(bp)
    return calls


# =============================================================================
# AUTHENTICATION — 401
# =============================================================================


class TestAuthentication:

    @pytest.mark.parametrize("headers", [
        {},
        {"Authorization": ""},
        {"Authorization": "Bearer"},
        {"Authorization": "Token abc"},
        {"Authorization": "Bearer not-a-jwt"},
        {"Authorization": "Bearer a.b.c"},
    ])
    def test_rejected(self, client, calls, headers):
        for path in ("/guarded/authed", "/guarded/reports", "/guarded/bare", "/guarded/any"):
            resp = client.get(path, headers=headers)
            assert resp.status_code == 401, path
        assert calls == []

    def test_401_before_403(self, client, calls):
        resp = client.get("/guarded/bare")
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Authentication required"

    def test_expired_token(self, app, client, calls, cashier_user):
        token = token_service.issue_access_token(
            cashier_user,
            lifetime="1m",
            issued_at=datetime.now(timezone.utc) - timedelta(minutes=5),
        )
        resp = client.get("/guarded/authed", headers=auth_headers(token))
        assert resp.status_code == 401
        assert calls == []

    def test_forged_secret(self, app, client, calls, admin_user):
        token = token_service.issue_access_token(admin_user, secret="not-the-server-secret")
        resp = client.get("/guarded/authed", headers=auth_headers(token))
        assert resp.status_code == 401

    def test_stacked_guards_verify_once_per_request(self, client, calls, monkeypatch, manager_headers):
        verified = []
        real_verify = token_service.verify_access_token

        def counting_verify(token, **kwargs):
            verified.append(token)
            return real_verify(token, **kwargs)

        monkeypatch.setattr(token_service, "verify_access_token", counting_verify)
        assert client.get("/guarded/reports", headers=manager_headers).status_code == 200
        assert len(verified) == 1
        assert client.get("/guarded/reports", headers=manager_headers).status_code == 200
        assert len(verified) == 2

    def test_valid_token(self, client, calls, cashier_headers):
        resp = client.get("/guarded/authed", headers=cashier_headers)
        assert resp.status_code == 200
        assert calls == ["authed"]


# =============================================================================
# AUTHORIZATION — 403
# =============================================================================


class TestAuthorization:

    def test_denied(self, client, calls, cashier_headers):
        resp = client.get("/guarded/reports", headers=cashier_headers)
        assert resp.status_code == 403
        body = resp.get_json()
        assert body["error"] == "Permission denied"
        assert body["required_permission"] == "canViewReports"
        assert calls == []

    def test_granted(self, client, calls, manager_headers):
        resp = client.get("/guarded/reports", headers=manager_headers)
        assert resp.status_code == 200
        assert calls == ["reports"]

    def test_any_of_granted_by_second_candidate(self, client, calls, cashier_headers):
        resp = client.get("/guarded/any", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.get_json() == {"canManageUsers": False}

    def test_any_of_denied(self, client, calls, manager_headers):
        resp = client.get("/guarded/admin-any", headers=manager_headers)
        assert resp.status_code == 403
        assert resp.get_json()["required_permissions"] == ["canManageSettings", "canManageUsers"]
        assert calls == []

    def test_in_handler_check(self, client, admin_headers):
        resp = client.get("/guarded/any", headers=admin_headers)
        assert resp.get_json() == {"canManageUsers": True}


# =============================================================================
# CUSTOM ROLES
# =============================================================================


class TestCustomRoleGuards:

    @pytest.fixture
    def supervisor(self, db_session, make_user):
        role = Role(name="supervisor", permissions={"canViewReports": True})
        db_session.add(role)
        db_session.commit()
        make_user("sam", role="supervisor")
        return role

    def test_custom_role_granted(self, client, calls, supervisor):
        headers = auth_headers(get_auth_token(client, "sam"))
        assert client.get("/guarded/reports", headers=headers).status_code == 200

    def test_permission_change_applies_to_existing_token(self, client, db_session, calls, supervisor):
        headers = auth_headers(get_auth_token(client, "sam"))
        assert client.get("/guarded/reports", headers=headers).status_code == 200

        supervisor.permissions = {"canViewReports": False}
        db_session.commit()
        assert client.get("/guarded/reports", headers=headers).status_code == 403

    def test_deleted_role_denies(self, client, db_session, calls, supervisor):
        headers = auth_headers(get_auth_token(client, "sam"))
        db_session.delete(supervisor)
        db_session.commit()
        assert client.get("/guarded/reports", headers=headers).status_code == 403
        assert client.get("/guarded/authed", headers=headers).status_code == 200
