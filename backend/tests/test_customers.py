"""
Customer tests.

Verifies:
- CRUD with email and customer code checks
- Cashiers can look customers up but not change them
- CSV export, and CSV import that rejects the whole file on a bad row
- Orders with a customerId count a visit and add to total spent
"""

import csv
import io

import pytest

from posadmin.models import Customer, Product

IMPORT_HEADER = "Customer name,Email,Phone,Customer code,Points balance\n"


@pytest.fixture
def customer(db_session):
    customer = Customer(customer_name="Ada Lovelace", email="ada@example.com", phone="555-0100", customer_code="C-1")
    db_session.add(customer)
    db_session.commit()
    return customer


class TestCustomerCrud:

    def test_crud(self, client, manager_headers):
        resp = client.post(
            "/api/customers",
            json={"customerName": "Grace Hopper", "email": "grace@example.com", "pointsBalance": 12.5},
            headers=manager_headers,
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["pointsBalance"] == 12.5
        assert body["totalVisits"] == 0
        customer_id = body["id"]

        resp = client.put(f"/api/customers/{customer_id}", json={"city": "Arlington"}, headers=manager_headers)
        assert resp.get_json()["city"] == "Arlington"

        assert client.delete(f"/api/customers/{customer_id}", headers=manager_headers).status_code == 200
        assert client.get(f"/api/customers/{customer_id}", headers=manager_headers).status_code == 404

    @pytest.mark.parametrize("body", [
        {"customerName": "X", "email": "not-an-email"},
        {"customerName": ""},
        {"email": "x@example.com"},
        {"customerName": "X", "pointsBalance": -1},
        {"customerName": "X", "totalVisits": 5},
    ])
    def test_invalid(self, client, manager_headers, body):
        assert client.post("/api/customers", json=body, headers=manager_headers).status_code == 400

    def test_duplicate_code(self, client, manager_headers, customer):
        resp = client.post("/api/customers", json={"customerName": "Other", "customerCode": "C-1"}, headers=manager_headers)
        assert resp.status_code == 409

    def test_blank_codes_do_not_clash(self, client, manager_headers):
        for name in ("One", "Two"):
            resp = client.post("/api/customers", json={"customerName": name, "customerCode": ""}, headers=manager_headers)
            assert resp.status_code == 201
            assert resp.get_json()["customerCode"] is None

    def test_cashier_reads_only(self, client, cashier_headers, customer):
        assert client.get("/api/customers", headers=cashier_headers).status_code == 200
        assert client.get(f"/api/customers/{customer.id}", headers=cashier_headers).status_code == 200
        resp = client.post("/api/customers", json={"customerName": "X"}, headers=cashier_headers)
        assert resp.status_code == 403
        assert client.delete(f"/api/customers/{customer.id}", headers=cashier_headers).status_code == 403

    def test_search(self, client, cashier_headers, db_session, customer):
        db_session.add(Customer(customer_name="Alan Turing", phone="555-0199"))
        db_session.commit()

        def names(search):
            resp = client.get("/api/customers", query_string={"search": search}, headers=cashier_headers)
            return [c["customerName"] for c in resp.get_json()]

        assert names("ada@") == ["Ada Lovelace"]
        assert names("555-01") == ["Ada Lovelace", "Alan Turing"]
        assert names("c-1") == ["Ada Lovelace"]
        assert names("%") == []


class TestCustomerCsv:

    def test_export(self, client, cashier_headers, customer):
        resp = client.get("/api/customers/export", headers=cashier_headers)
        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        assert "customers.csv" in resp.headers["Content-Disposition"]

        rows = list(csv.DictReader(io.StringIO(resp.get_data(as_text=True))))
        assert len(rows) == 1
        assert rows[0]["Customer name"] == "Ada Lovelace"
        assert rows[0]["Customer code"] == "C-1"
        assert rows[0]["Total visits"] == "0"

    def test_import(self, client, manager_headers):
        text = IMPORT_HEADER + "Ada,ada@example.com,555,C-1,10\nAlan,,,,\n"
        resp = client.post("/api/customers/import", json={"file": text}, headers=manager_headers)
        assert resp.status_code == 201
        body = resp.get_json()
        assert [c["customerName"] for c in body] == ["Ada", "Alan"]
        assert body[0]["pointsBalance"] == 10
        assert body[1]["email"] is None

    def test_import_multipart_with_bom(self, client, manager_headers):
        data = {"file": (io.BytesIO(("\ufeff" + IMPORT_HEADER + "Ada,,,,\n").encode("utf-8")), "customers.csv")}
        resp = client.post(
            "/api/customers/import", data=data, content_type="multipart/form-data", headers=manager_headers
        )
        assert resp.status_code == 201
        assert resp.get_json()[0]["customerName"] == "Ada"

    @pytest.mark.parametrize("text,row", [
        (IMPORT_HEADER + "Ada,,,,\nBad,nope,,,\n", 2),
        (IMPORT_HEADER + "Ada,,,C-9,\nAlan,,,C-9,\n", 2),
        (IMPORT_HEADER + ",,,,\n", 1),
    ])
    def test_import_bad_row_rolls_back(self, client, db_session, manager_headers, text, row):
        resp = client.post("/api/customers/import", json={"file": text}, headers=manager_headers)
        assert resp.status_code == 400
        assert resp.get_json()["details"]["row"] == row
        assert db_session.query(Customer).count() == 0

    def test_import_existing_code(self, client, manager_headers, customer):
        resp = client.post("/api/customers/import", json={"file": IMPORT_HEADER + "Ada,,,C-1,\n"}, headers=manager_headers)
        assert resp.status_code == 400

    @pytest.mark.parametrize("text", ["", IMPORT_HEADER, "Name,Email\nAda,\n"])
    def test_import_empty_or_headerless(self, client, manager_headers, text):
        assert client.post("/api/customers/import", json={"file": text}, headers=manager_headers).status_code == 400

    def test_import_requires_manage(self, client, cashier_headers):
        resp = client.post("/api/customers/import", json={"file": IMPORT_HEADER + "Ada,,,,\n"}, headers=cashier_headers)
        assert resp.status_code == 403


class TestCustomerVisits:

    @pytest.fixture
    def product(self, db_session):
        product = Product(name="Coffee", price=2)
        db_session.add(product)
        db_session.commit()
        return product

    def _order(self, client, headers, store, product, **order):
        body = {"subtotal": 4, "tax": 0, "total": 4, "paymentMethod": "cash", "storeId": store.id}
        body.update(order)
        return client.post(
            "/api/orders",
            json={"order": body, "items": [{"productId": product.id, "quantity": 2, "price": 2}]},
            headers=headers,
        )

    def test_order_counts_visit(self, client, cashier_headers, store, product, customer):
        assert self._order(client, cashier_headers, store, product, customerId=customer.id).status_code == 201
        first = client.get(f"/api/customers/{customer.id}", headers=cashier_headers).get_json()
        assert first["totalVisits"] == 1
        assert first["totalSpent"] == 4

        assert self._order(client, cashier_headers, store, product, customerId=customer.id, total=6).status_code == 201
        second = client.get(f"/api/customers/{customer.id}", headers=cashier_headers).get_json()
        assert second["totalVisits"] == 2
        assert second["totalSpent"] == 10
        assert second["firstVisit"] == first["firstVisit"]

    def test_unknown_customer(self, client, cashier_headers, store, product):
        assert self._order(client, cashier_headers, store, product, customerId=999).status_code == 400

    def test_delete_referenced(self, client, cashier_headers, manager_headers, store, product, customer):
        self._order(client, cashier_headers, store, product, customerId=customer.id)
        assert client.delete(f"/api/customers/{customer.id}", headers=manager_headers).status_code == 409
