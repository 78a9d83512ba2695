"""
Report endpoint tests.

Verifies:
- Every report answers its zeroed shape when there is no data
- Sales, item, payment type and receipt figures for a sale plus a refund
- A failure while aggregating still answers 200 with the empty report
- Bad filters answer 400, unknown reports 404, cashiers 403
"""

from decimal import Decimal

import pytest

from posadmin.models import Category, Order, OrderItem, PaymentType, Product
from posadmin.services import reporting_service
from posadmin.time_utils import localnow


@pytest.fixture
def today():
    return localnow().date().isoformat()


@pytest.fixture
def sales(db_session, store, cashier_user):
    """One completed sale of 2 x 10.00 and one refunded sale of 1 x 10.00, both today."""
    category = Category(name="Drinks")
    db_session.add(category)
    db_session.flush()
    product = Product(name="Latte", price=10, cost=4, category_id=category.id, sku="LAT-1")
    db_session.add_all([product, PaymentType(name="Cash", code="cash"), PaymentType(name="Card", code="card")])
    db_session.flush()

    now = localnow()
    sale = Order(
        order_number="R-1", store_id=store.id, user_id=cashier_user.id,
        subtotal=20, discount=2, tax=Decimal("1.50"), total=Decimal("19.50"), payment_method="cash",
        created_at=now,
    )
    sale.items.append(OrderItem(product_id=product.id, quantity=2, price=10))
    refund = Order(
        order_number="R-2", store_id=store.id, user_id=cashier_user.id,
        subtotal=10, discount=0, tax=Decimal("0.75"), total=Decimal("10.75"), payment_method="card",
        status="refunded", created_at=now, refunded_at=now,
    )
    refund.items.append(OrderItem(product_id=product.id, quantity=1, price=10))
    db_session.add_all([sale, refund])
    db_session.commit()
    return {"product": product, "store": store, "user": cashier_user}


def _get(client, headers, name, **params):
    return client.get(f"/api/reports/{name}", headers=headers, query_string=params)


# =============================================================================
# EMPTY REPORTS
# =============================================================================


class TestEmptyReports:

    @pytest.mark.parametrize("name", sorted(reporting_service.REPORTS))
    def test_empty_shape(self, client, manager_headers, today, name):
        resp = _get(client, manager_headers, name, startDate=today, endDate=today)
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["startDate"] == today
        assert body["endDate"] == today

    def test_empty_sales_is_zero(self, client, manager_headers, today):
        body = _get(client, manager_headers, "sales", startDate=today, endDate=today).get_json()
        for key in ("grossSales", "refunds", "discounts", "taxes", "netSales", "costOfGoods", "grossProfit", "margin"):
            assert body[key] == 0, key
        assert body["orderCount"] == 0
        assert body["trends"]["netSales"] == [{"date": today, "value": 0}]

    def test_default_range_has_one_bucket_per_day(self, client, manager_headers):
        body = _get(client, manager_headers, "sales").get_json()
        assert len(body["dailySales"]) == 31
        assert body["dailySales"][-1]["date"] == localnow().date().isoformat()


# =============================================================================
# FIGURES
# =============================================================================


class TestFigures:

    def test_sales_summary(self, client, manager_headers, sales, today):
        body = _get(client, manager_headers, "sales", startDate=today, endDate=today).get_json()
        assert body["grossSales"] == 30.0
        assert body["refunds"] == 10.0
        assert body["discounts"] == 2.0
        assert body["taxes"] == 1.5
        assert body["netSales"] == 18.0
        assert body["costOfGoods"] == 8.0
        assert body["grossProfit"] == 10.0
        assert body["margin"] == 0.5556
        assert body["orderCount"] == 2
        assert body["refundCount"] == 1
        assert body["dailySales"][0]["netSales"] == 18.0

    def test_items(self, client, manager_headers, sales, today):
        body = _get(client, manager_headers, "items", startDate=today, endDate=today).get_json()
        (row,) = body["items"]
        assert row["name"] == "Latte"
        assert row["categoryName"] == "Drinks"
        assert row["quantity"] == 3
        assert row["itemsRefunded"] == 1
        assert row["netSales"] == 18.0
        assert row["cost"] == 8.0
        assert body["top5Items"] == [{"id": sales["product"].id, "name": "Latte", "netSales": 18.0}]

    def test_payment_types(self, client, manager_headers, sales, today):
        body = _get(client, manager_headers, "payment-types", startDate=today, endDate=today).get_json()
        by_code = {r["paymentTypeCode"]: r for r in body["paymentTypes"]}
        assert by_code["cash"]["paymentTypeName"] == "Cash"
        assert by_code["cash"]["netAmount"] == 19.5
        assert by_code["card"]["refundAmount"] == 10.75
        assert by_code["card"]["netAmount"] == 0
        assert body["totalPaymentAmount"] == 30.25
        assert body["totalRefundAmount"] == 10.75
        assert body["totalNetAmount"] == 19.5

    def test_receipts(self, client, manager_headers, sales, today):
        body = _get(client, manager_headers, "receipts", startDate=today, endDate=today).get_json()
        assert body["widgets"] == {"allReceipts": 2, "sales": 1, "refunds": 1}
        assert {r["type"] for r in body["receipts"]} == {"Sale", "Refund"}

    def test_receipts_search(self, client, manager_headers, sales, today):
        body = _get(client, manager_headers, "receipts", startDate=today, endDate=today, search="R-2").get_json()
        assert [r["receiptNo"] for r in body["receipts"]] == ["R-2"]

    def test_receipts_search_is_literal(self, client, manager_headers, sales, today):
        for search in ("%", "R_1"):
            body = _get(client, manager_headers, "receipts", startDate=today, endDate=today, search=search).get_json()
            assert body["receipts"] == []

    def test_employee_filter(self, client, manager_headers, manager_user, sales, today):
        body = _get(
            client, manager_headers, "employees", startDate=today, endDate=today, employee=manager_user.id
        ).get_json()
        assert body["employees"] == []

        body = _get(
            client, manager_headers, "employees", startDate=today, endDate=today, employee=sales["user"].id
        ).get_json()
        (row,) = body["employees"]
        assert row["receipts"] == 2
        assert row["netSales"] == 18.0

    def test_store_all(self, client, manager_headers, sales, today):
        body = _get(client, manager_headers, "sales", startDate=today, endDate=today, store="all").get_json()
        assert body["orderCount"] == 2

    @pytest.mark.parametrize("store_param", ["²", "abc", "-3"])
    def test_unparsable_store_is_dropped(self, client, manager_headers, sales, today, store_param):
        resp = _get(client, manager_headers, "sales", startDate=today, endDate=today, store=store_param)
        assert resp.status_code == 200
        assert resp.get_json()["orderCount"] == 2

    def test_other_day_excluded(self, client, manager_headers, sales):
        body = _get(client, manager_headers, "sales", startDate="2020-01-01", endDate="2020-01-01").get_json()
        assert body["orderCount"] == 0


# =============================================================================
# ERRORS
# =============================================================================


class TestReportErrors:

    def test_failure_answers_empty_report(self, client, manager_headers, sales, today, monkeypatch):
        def boom(filters):
            raise RuntimeError("aggregation failed")

        monkeypatch.setattr(reporting_service, "_load_orders", boom)
        resp = _get(client, manager_headers, "sales", startDate=today, endDate=today)
        assert resp.status_code == 200
        assert resp.get_json()["grossSales"] == 0

    def test_bad_date(self, client, manager_headers):
        resp = _get(client, manager_headers, "sales", startDate="not-a-date")
        assert resp.status_code == 400

    def test_start_after_end(self, client, manager_headers):
        resp = _get(client, manager_headers, "sales", startDate="2026-03-10", endDate="2026-03-01")
        assert resp.status_code == 400

    def test_unknown_report(self, client, manager_headers):
        assert _get(client, manager_headers, "weather").status_code == 404

    def test_cashier_denied(self, client, cashier_headers):
        assert _get(client, cashier_headers, "sales").status_code == 403

    def test_list(self, client, manager_headers):
        resp = client.get("/api/reports", headers=manager_headers)
        assert "sales" in resp.get_json()
        assert "shifts" in resp.get_json()
