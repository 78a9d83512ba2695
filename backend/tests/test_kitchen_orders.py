"""
Kitchen order (ticket) tests.

Verifies:
- A ticket without explicit items carries every line of its order
- Lines must belong to the ticket's order; a bad line writes nothing
- Line status changes stamp start/finish times and finishing the last
  open line completes the ticket
- Listing is highest priority first and filters by status and store
"""

import pytest

from posadmin.models import KitchenOrder, Product, Role

from conftest import auth_headers, get_auth_token


@pytest.fixture
def products(db_session):
    burger = Product(name="Burger", price=8)
    fries = Product(name="Fries", price=3)
    db_session.add_all([burger, fries])
    db_session.commit()
    return burger, fries


@pytest.fixture
def make_order(client, cashier_headers, store, products):
    def _make(store_id=None):
        burger, fries = products
        resp = client.post(
            "/api/orders",
            json={
                "order": {"subtotal": 11, "tax": 0, "total": 11, "storeId": store_id or store.id},
                "items": [
                    {"productId": burger.id, "quantity": 1, "price": 8},
                    {"productId": fries.id, "quantity": 1, "price": 3},
                ],
            },
            headers=cashier_headers,
        )
        assert resp.status_code == 201
        return resp.get_json()

    return _make


def _ticket(client, headers, order_id, items=None, **fields):
    body = {"order": {"orderId": order_id, **fields}}
    if items is not None:
        body["items"] = items
    return client.post("/api/kitchen-orders", json=body, headers=headers)


class TestCreateTicket:

    def test_defaults_to_all_lines(self, client, cashier_headers, make_order):
        order = make_order()
        resp = _ticket(client, cashier_headers, order["order"]["id"])
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["status"] == "pending"
        assert body["order"]["id"] == order["order"]["id"]
        assert [i["orderItemId"] for i in body["items"]] == [i["id"] for i in order["items"]]
        assert all(i["status"] == "pending" for i in body["items"])

    def test_selected_lines(self, client, cashier_headers, make_order):
        order = make_order()
        first = order["items"][0]["id"]
        resp = _ticket(
            client, cashier_headers, order["order"]["id"],
            items=[{"orderItemId": first, "preparationTime": 12}], priority=2, notes="No onions",
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["priority"] == 2
        assert body["notes"] == "No onions"
        assert [(i["orderItemId"], i["preparationTime"]) for i in body["items"]] == [(first, 12)]

    def test_line_from_other_order(self, client, db_session, cashier_headers, make_order):
        order = make_order()
        other = make_order()
        resp = _ticket(client, cashier_headers, order["order"]["id"], items=[{"orderItemId": other["items"][0]["id"]}])
        assert resp.status_code == 400
        assert db_session.query(KitchenOrder).count() == 0

    @pytest.mark.parametrize("body", [
        None,
        {"order": {}},
        {"order": {"orderId": 999}},
        {"order": {"orderId": 1, "status": "burnt"}},
        {"order": {"orderId": 1}, "items": "all"},
        {"order": {"orderId": 1}, "items": [{"orderItemId": 999}]},
    ])
    def test_invalid(self, client, cashier_headers, make_order, body):
        make_order()
        assert client.post("/api/kitchen-orders", json=body, headers=cashier_headers).status_code == 400


class TestTicketStatus:

    @pytest.fixture
    def ticket(self, client, cashier_headers, make_order):
        order = make_order()
        return _ticket(client, cashier_headers, order["order"]["id"]).get_json()

    def test_line_timestamps(self, client, cashier_headers, ticket):
        line_id = ticket["items"][0]["id"]
        started = client.patch(
            f"/api/kitchen-orders/items/{line_id}/status", json={"status": "in-progress"}, headers=cashier_headers
        ).get_json()
        assert started["startedAt"] is not None
        assert started["completedAt"] is None

        done = client.patch(
            f"/api/kitchen-orders/items/{line_id}/status", json={"status": "completed"}, headers=cashier_headers
        ).get_json()
        assert done["completedAt"] is not None

        body = client.get(f"/api/kitchen-orders/{ticket['id']}", headers=cashier_headers).get_json()
        assert body["status"] == "pending"

    def test_last_line_completes_ticket(self, client, cashier_headers, ticket):
        for line in ticket["items"]:
            resp = client.patch(
                f"/api/kitchen-orders/items/{line['id']}/status", json={"status": "completed"}, headers=cashier_headers
            )
            assert resp.status_code == 200
        body = client.get(f"/api/kitchen-orders/{ticket['id']}", headers=cashier_headers).get_json()
        assert body["status"] == "completed"

    def test_ticket_status(self, client, cashier_headers, ticket):
        resp = client.patch(
            f"/api/kitchen-orders/{ticket['id']}/status", json={"status": "cancelled"}, headers=cashier_headers
        )
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "cancelled"

    @pytest.mark.parametrize("body", [{"status": "burnt"}, {}, None])
    def test_invalid_status(self, client, cashier_headers, ticket, body):
        line_id = ticket["items"][0]["id"]
        assert client.patch(f"/api/kitchen-orders/{ticket['id']}/status", json=body, headers=cashier_headers).status_code == 400
        assert client.patch(
            f"/api/kitchen-orders/items/{line_id}/status", json=body, headers=cashier_headers
        ).status_code == 400

    def test_not_found(self, client, cashier_headers):
        assert client.get("/api/kitchen-orders/999", headers=cashier_headers).status_code == 404
        body = {"status": "completed"}
        assert client.patch("/api/kitchen-orders/999/status", json=body, headers=cashier_headers).status_code == 404
        assert client.patch("/api/kitchen-orders/items/999/status", json=body, headers=cashier_headers).status_code == 404


class TestListTickets:

    def test_priority_then_age(self, client, cashier_headers, make_order):
        low = _ticket(client, cashier_headers, make_order()["order"]["id"]).get_json()
        high = _ticket(client, cashier_headers, make_order()["order"]["id"], priority=5).get_json()
        later = _ticket(client, cashier_headers, make_order()["order"]["id"]).get_json()

        listed = client.get("/api/kitchen-orders", headers=cashier_headers).get_json()
        assert [t["id"] for t in listed] == [high["id"], low["id"], later["id"]]

    def test_status_filter(self, client, cashier_headers, make_order):
        ticket = _ticket(client, cashier_headers, make_order()["order"]["id"]).get_json()
        _ticket(client, cashier_headers, make_order()["order"]["id"], status="completed")

        listed = client.get("/api/kitchen-orders?status=pending", headers=cashier_headers).get_json()
        assert [t["id"] for t in listed] == [ticket["id"]]
        assert client.get("/api/kitchen-orders?status=burnt", headers=cashier_headers).status_code == 400

    def test_store_filter(self, client, cashier_headers, make_order, second_store):
        _ticket(client, cashier_headers, make_order()["order"]["id"])
        other = _ticket(client, cashier_headers, make_order(second_store.id)["order"]["id"]).get_json()

        listed = client.get(f"/api/kitchen-orders?storeId={second_store.id}", headers=cashier_headers).get_json()
        assert [t["id"] for t in listed] == [other["id"]]
        assert len(client.get("/api/kitchen-orders?storeId=all", headers=cashier_headers).get_json()) == 2

    def test_requires_manage_orders(self, client, db_session, make_user):
        db_session.add(Role(name="viewer", permissions={"canViewReports": True}))
        db_session.commit()
        make_user("viewer", role="viewer")
        headers = auth_headers(get_auth_token(client, "viewer"))
        assert client.get("/api/kitchen-orders", headers=headers).status_code == 403
