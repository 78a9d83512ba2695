"""
Employee account tests: creation rules, updates, deactivation and the
refresh token revocation that goes with it.
"""

import pytest

from conftest import DEFAULT_PASSWORD, login


def _create(client, headers, **body):
    body.setdefault("username", "newbie")
    body.setdefault("displayName", "New Hire")
    body.setdefault("password", DEFAULT_PASSWORD)
    return client.post("/api/users", json=body, headers=headers)


class TestCreateUser:

    def test_defaults_to_cashier(self, client, admin_headers):
        resp = _create(client, admin_headers)
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["role"] == "cashier"
        assert body["isActive"] is True
        assert login(client, "newbie").status_code == 200

    def test_duplicate_username(self, client, admin_headers, cashier_user):
        assert _create(client, admin_headers, username="cashier").status_code == 409

    @pytest.mark.parametrize("password", ["short1!", "alllowercase1!", "ALLUPPER1!", "NoDigits!!", "NoSpecial123"])
    def test_weak_password(self, client, admin_headers, password):
        resp = _create(client, admin_headers, password=password)
        assert resp.status_code == 400
        assert "password" in resp.get_json()["details"]

    def test_missing_password(self, client, admin_headers):
        resp = client.post("/api/users", json={"username": "x", "displayName": "X"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_unknown_role(self, client, admin_headers):
        assert _create(client, admin_headers, role="overlord").status_code == 400

    def test_unknown_store(self, client, admin_headers):
        assert _create(client, admin_headers, storeId=999).status_code == 400

    def test_unknown_field(self, client, admin_headers):
        assert _create(client, admin_headers, passwordHash="x").status_code == 400

    def test_manager_denied(self, client, manager_headers):
        assert _create(client, manager_headers).status_code == 403


class TestUpdateUser:

    def test_change_role(self, client, admin_headers, cashier_user):
        resp = client.put(f"/api/users/{cashier_user.id}", json={"role": "manager"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["role"] == "manager"

    def test_password_change_revokes_refresh_tokens(self, client, admin_headers, cashier_user):
        refresh_token = login(client, "cashier").get_json()["refreshToken"]
        resp = client.put(
            f"/api/users/{cashier_user.id}",
            json={"password": "Changed456$"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert client.post("/api/auth/refresh-token", json={"refreshToken": refresh_token}).status_code == 401
        assert login(client, "cashier", "Changed456$").status_code == 200

    def test_cannot_deactivate_self(self, client, admin_headers, admin_user):
        resp = client.put(f"/api/users/{admin_user.id}", json={"isActive": False}, headers=admin_headers)
        assert resp.status_code == 400

    def test_not_found(self, client, admin_headers):
        assert client.put("/api/users/999", json={"role": "manager"}, headers=admin_headers).status_code == 404


class TestDeactivateUser:

    def test_soft_delete(self, client, admin_headers, cashier_user):
        refresh_token = login(client, "cashier").get_json()["refreshToken"]

        resp = client.delete(f"/api/users/{cashier_user.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["user"]["isActive"] is False

        assert login(client, "cashier").status_code == 401
        assert client.post("/api/auth/refresh-token", json={"refreshToken": refresh_token}).status_code == 401

        listed = client.get("/api/users", headers=admin_headers).get_json()
        assert "cashier" not in [u["username"] for u in listed]
        listed = client.get("/api/users?includeInactive=true", headers=admin_headers).get_json()
        assert "cashier" in [u["username"] for u in listed]

    def test_cannot_delete_self(self, client, admin_headers, admin_user):
        assert client.delete(f"/api/users/{admin_user.id}", headers=admin_headers).status_code == 400
