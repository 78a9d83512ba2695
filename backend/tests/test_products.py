"""
Product catalog tests.

Verifies:
- A product and its variants, store links and modifiers are created in
  one transaction, or not at all
- SKU uniqueness, price validation and field allowlisting
- Products with sales history cannot be deleted
"""

import pytest

from posadmin.models import Modifier, Order, OrderItem, Product


@pytest.fixture
def modifier(db_session):
    modifier = Modifier(name="Milk")
    db_session.add(modifier)
    db_session.commit()
    return modifier


def _create(client, headers, product=None, **extra):
    body = {"product": {"name": "Latte", "price": "4.50", "sku": "LAT-1", **(product or {})}}
    body.update(extra)
    return client.post("/api/products", json=body, headers=headers)


class TestCreateProduct:

    def test_with_relations(self, client, manager_headers, store, modifier):
        resp = _create(
            client,
            manager_headers,
            product={"cost": 1.2, "trackStock": True, "stock": 10},
            variants=[{"name": "Large", "price": 5.5}],
            stores=[{"storeId": store.id, "price": 4.75}],
            modifiers=[{"modifierId": modifier.id}],
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["price"] == 4.5
        assert body["cost"] == 1.2
        assert [v["name"] for v in body["variants"]] == ["Large"]
        assert body["stores"][0]["storeId"] == store.id
        assert body["modifiers"][0]["modifierName"] == "Milk"

    def test_all_or_nothing(self, client, db_session, manager_headers, store):
        resp = _create(
            client,
            manager_headers,
            variants=[{"name": "Large"}],
            stores=[{"storeId": 999}],
        )
        assert resp.status_code == 400
        assert db_session.query(Product).count() == 0

    def test_duplicate_sku(self, client, manager_headers):
        assert _create(client, manager_headers).status_code == 201
        assert _create(client, manager_headers, product={"name": "Other"}).status_code == 409

    @pytest.mark.parametrize("product", [
        {"price": -1},
        {"price": "abc"},
        {"price": None},
        {"name": ""},
        {"soldBy": "litre"},
        {"categoryId": 999},
        {"isActive": "maybe"},
        {"id": 5},
    ])
    def test_invalid(self, client, manager_headers, product):
        assert _create(client, manager_headers, product=product).status_code == 400

    def test_missing_product(self, client, manager_headers):
        resp = client.post("/api/products", json={"variants": []}, headers=manager_headers)
        assert resp.status_code == 400

    def test_cashier_denied(self, client, cashier_headers):
        assert _create(client, cashier_headers).status_code == 403


class TestProductReads:

    def test_inactive_hidden(self, client, manager_headers):
        product_id = _create(client, manager_headers).get_json()["id"]
        client.patch(f"/api/products/{product_id}", json={"isActive": False}, headers=manager_headers)

        assert client.get("/api/products", headers=manager_headers).get_json() == []
        listed = client.get("/api/products?includeInactive=true", headers=manager_headers).get_json()
        assert [p["id"] for p in listed] == [product_id]

    def test_store_filter(self, client, manager_headers, store, second_store):
        _create(client, manager_headers, stores=[{"storeId": store.id}])
        _create(client, manager_headers, product={"name": "Mocha", "sku": "MOC-1"}, stores=[{"storeId": second_store.id}])

        listed = client.get(f"/api/products?storeId={store.id}", headers=manager_headers).get_json()
        assert [p["name"] for p in listed] == ["Latte"]

    def test_cashier_can_read(self, client, manager_headers, cashier_headers):
        product_id = _create(client, manager_headers).get_json()["id"]
        assert client.get(f"/api/products/{product_id}", headers=cashier_headers).status_code == 200

    def test_not_found(self, client, cashier_headers):
        assert client.get("/api/products/999", headers=cashier_headers).status_code == 404


class TestProductWrites:

    def test_update(self, client, manager_headers):
        product_id = _create(client, manager_headers).get_json()["id"]
        resp = client.put(f"/api/products/{product_id}", json={"price": 5, "name": "Big Latte"}, headers=manager_headers)
        assert resp.status_code == 200
        assert resp.get_json()["name"] == "Big Latte"
        assert resp.get_json()["price"] == 5.0

    def test_variants(self, client, manager_headers):
        product_id = _create(client, manager_headers).get_json()["id"]
        resp = client.post(f"/api/products/{product_id}/variants", json={"name": "Small"}, headers=manager_headers)
        assert resp.status_code == 201
        variant_id = resp.get_json()["id"]

        resp = client.delete(f"/api/products/{product_id}/variants/{variant_id}", headers=manager_headers)
        assert resp.status_code == 200
        resp = client.delete(f"/api/products/{product_id}/variants/{variant_id}", headers=manager_headers)
        assert resp.status_code == 404

    def test_store_link_upsert(self, client, manager_headers, store):
        product_id = _create(client, manager_headers).get_json()["id"]
        first = client.post(f"/api/products/{product_id}/stores", json={"storeId": store.id}, headers=manager_headers)
        assert first.status_code == 201
        second = client.post(
            f"/api/products/{product_id}/stores",
            json={"storeId": store.id, "isAvailable": False},
            headers=manager_headers,
        )
        assert second.status_code == 200
        assert second.get_json()["isAvailable"] is False

    def test_modifier_links(self, client, manager_headers, modifier):
        product_id = _create(client, manager_headers).get_json()["id"]
        url = f"/api/products/{product_id}/modifiers"
        assert client.post(url, json={"modifierId": modifier.id}, headers=manager_headers).status_code == 201
        assert client.post(url, json={"modifierId": modifier.id}, headers=manager_headers).status_code == 409
        assert client.delete(f"{url}/{modifier.id}", headers=manager_headers).status_code == 200

    def test_delete(self, client, manager_headers, store):
        product_id = _create(client, manager_headers, variants=[{"name": "Large"}], stores=[{"storeId": store.id}]).get_json()["id"]
        assert client.delete(f"/api/products/{product_id}", headers=manager_headers).status_code == 200
        assert client.get(f"/api/products/{product_id}", headers=manager_headers).status_code == 404

    def test_delete_with_sales_history(self, client, db_session, manager_headers):
        product_id = _create(client, manager_headers).get_json()["id"]
        order = Order(order_number="R-1", subtotal=4.5, total=4.5)
        order.items.append(OrderItem(product_id=product_id, quantity=1, price=4.5))
        db_session.add(order)
        db_session.commit()

        assert client.delete(f"/api/products/{product_id}", headers=manager_headers).status_code == 409
