"""
Shift tests.

Verifies:
- One active shift per user (409 on a second start)
- Ending records the counted cash and cannot be repeated
- Acting on someone else's shift needs canManageUsers
"""

import pytest
from sqlalchemy.exc import IntegrityError

from posadmin.models import Shift
from posadmin.time_utils import localnow


def _start(client, headers, store, **body):
    body.setdefault("storeId", store.id)
    return client.post("/api/shifts/start", json=body, headers=headers)


class TestStartShift:

    def test_start(self, client, cashier_headers, cashier_user, store):
        resp = _start(client, cashier_headers, store, expectedCashAmount=150)
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["userId"] == cashier_user.id
        assert body["isActive"] is True
        assert body["expectedCashAmount"] == 150.0
        assert body["closingTime"] is None

    def test_second_start_conflicts(self, client, cashier_headers, store):
        assert _start(client, cashier_headers, store).status_code == 201
        assert _start(client, cashier_headers, store).status_code == 409

    def test_start_after_end(self, client, cashier_headers, store):
        shift_id = _start(client, cashier_headers, store).get_json()["id"]
        client.post(f"/api/shifts/{shift_id}/end", json={"actualCashAmount": 0}, headers=cashier_headers)
        assert _start(client, cashier_headers, store).status_code == 201

    def test_missing_store(self, client, cashier_headers):
        resp = client.post("/api/shifts/start", json={}, headers=cashier_headers)
        assert resp.status_code == 400

    def test_unknown_store(self, client, cashier_headers, store):
        assert _start(client, cashier_headers, store, storeId=999).status_code == 400

    def test_negative_float(self, client, cashier_headers, store):
        assert _start(client, cashier_headers, store, expectedCashAmount=-5).status_code == 400

    def test_for_other_user_needs_manage_users(self, client, cashier_headers, manager_user, store):
        resp = _start(client, cashier_headers, store, userId=manager_user.id)
        assert resp.status_code == 403

    def test_admin_for_other_user(self, client, admin_headers, cashier_user, store):
        resp = _start(client, admin_headers, store, userId=cashier_user.id)
        assert resp.status_code == 201
        assert resp.get_json()["userId"] == cashier_user.id

    def test_database_rejects_second_active_shift(self, db_session, cashier_user, store):
        db_session.add(Shift(store_id=store.id, user_id=cashier_user.id, opening_time=localnow(), is_active=True))
        db_session.commit()
        db_session.add(Shift(store_id=store.id, user_id=cashier_user.id, opening_time=localnow(), is_active=True))
        with pytest.raises(IntegrityError):
            db_session.commit()


class TestEndShift:

    def test_end(self, client, cashier_headers, store):
        shift_id = _start(client, cashier_headers, store, expectedCashAmount=100).get_json()["id"]
        resp = client.post(
            f"/api/shifts/{shift_id}/end",
            json={"actualCashAmount": "95.50", "notes": "short"},
            headers=cashier_headers,
        )
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["isActive"] is False
        assert body["closingTime"] is not None
        assert body["actualCashAmount"] == 95.5
        assert body["difference"] == -4.5

    def test_end_twice(self, client, cashier_headers, store):
        shift_id = _start(client, cashier_headers, store).get_json()["id"]
        client.post(f"/api/shifts/{shift_id}/end", json={}, headers=cashier_headers)
        resp = client.post(f"/api/shifts/{shift_id}/end", json={}, headers=cashier_headers)
        assert resp.status_code == 400

    def test_end_unknown(self, client, cashier_headers):
        assert client.post("/api/shifts/999/end", json={}, headers=cashier_headers).status_code == 404

    def test_end_other_users_shift(self, client, cashier_headers, manager_headers, store):
        shift_id = _start(client, manager_headers, store).get_json()["id"]
        resp = client.post(f"/api/shifts/{shift_id}/end", json={}, headers=cashier_headers)
        assert resp.status_code == 403


class TestShiftQueries:

    def test_active(self, client, cashier_headers, store):
        assert client.get("/api/shifts/active", headers=cashier_headers).get_json() == {"shift": None}
        shift_id = _start(client, cashier_headers, store).get_json()["id"]
        body = client.get("/api/shifts/active", headers=cashier_headers).get_json()
        assert body["shift"]["id"] == shift_id

    def test_list_filters_active(self, client, cashier_headers, manager_headers, store):
        closed = _start(client, cashier_headers, store).get_json()["id"]
        client.post(f"/api/shifts/{closed}/end", json={}, headers=cashier_headers)
        open_id = _start(client, manager_headers, store).get_json()["id"]

        body = client.get("/api/shifts?isActive=true", headers=manager_headers).get_json()
        assert [s["id"] for s in body] == [open_id]
        body = client.get("/api/shifts?isActive=false", headers=manager_headers).get_json()
        assert [s["id"] for s in body] == [closed]
        assert len(client.get("/api/shifts", headers=manager_headers).get_json()) == 2

    def test_cashier_cannot_list(self, client, cashier_headers):
        assert client.get("/api/shifts", headers=cashier_headers).status_code == 403

    def test_cashier_views_own_shift(self, client, cashier_headers, manager_headers, store):
        own = _start(client, cashier_headers, store).get_json()["id"]
        other = _start(client, manager_headers, store).get_json()["id"]
        assert client.get(f"/api/shifts/{own}", headers=cashier_headers).status_code == 200
        assert client.get(f"/api/shifts/{other}", headers=cashier_headers).status_code == 403
        assert client.get(f"/api/shifts/{own}", headers=manager_headers).status_code == 200

    def test_report(self, client, cashier_headers, manager_headers, store):
        shift_id = _start(client, cashier_headers, store, expectedCashAmount=100).get_json()["id"]
        client.post(f"/api/shifts/{shift_id}/end", json={"actualCashAmount": 110}, headers=cashier_headers)

        resp = client.get("/api/shifts/reports", headers=manager_headers)
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["totals"] == {
            "shiftCount": 1,
            "expectedCashAmount": 100.0,
            "actualCashAmount": 110.0,
            "difference": 10.0,
        }
        assert body["shifts"][0]["userName"] == "Cashier"


class TestShiftAdministration:

    def test_update_needs_manage_users(self, client, cashier_headers, manager_headers, admin_headers, store):
        shift_id = _start(client, cashier_headers, store).get_json()["id"]
        assert client.put(f"/api/shifts/{shift_id}", json={"notes": "x"}, headers=manager_headers).status_code == 403

        resp = client.put(f"/api/shifts/{shift_id}", json={"expectedCashAmount": 80}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["expectedCashAmount"] == 80.0

    def test_delete(self, client, cashier_headers, admin_headers, store):
        shift_id = _start(client, cashier_headers, store).get_json()["id"]
        assert client.delete(f"/api/shifts/{shift_id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/shifts/{shift_id}", headers=admin_headers).status_code == 404
