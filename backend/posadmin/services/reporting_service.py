# Overview: Service-layer operations for reporting; loads orders and shifts and aggregates them.

"""
Sales reporting.

Every report is two steps:
- load: one filtered query (ReportFilters) for orders or shifts, plus the
  small lookup tables the report needs
- build: pure aggregation over what was loaded

run_report() does both. empty_report() runs only the build step on empty
input, which yields the same shape with zero totals and empty lists; the
routes fall back to it when loading fails.

AMOUNTS:
- All sums are Decimal; JSON gets cent-rounded numbers.
- Refunds are orders with status "refunded". A refunded order counts in
  grossSales and again in refunds; its discount, tax and cost do not count.
- netSales = grossSales - refunds - discounts
- grossProfit = netSales - cost of goods
- margin = grossProfit / netSales when netSales > 0, else 0
- Order-level discount and tax are spread over the order's lines in
  proportion to line amounts for item, category and tax reports.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.orm import joinedload, selectinload

from ..extensions import db
from ..models import (
    Category,
    Discount,
    Modifier,
    Order,
    OrderItem,
    PaymentType,
    Shift,
    TaxCategory,
)
from ..money import ZERO, money_json, to_decimal
from .report_filters import ReportFilters, margin, net_sales, share

TREND_METRICS = ("grossSales", "refunds", "discounts", "netSales", "grossProfit")
TOP_N = 5
RATIO = Decimal("0.0001")


class ReportError(ValueError):
    """Unknown report name."""


@dataclass
class SalesTotals:
    """Running sums for one grouping (a day, a product, an employee...)."""
    gross_sales: Decimal = ZERO
    refunds: Decimal = ZERO
    discounts: Decimal = ZERO
    taxes: Decimal = ZERO
    cost: Decimal = ZERO
    quantity: int = 0
    quantity_refunded: int = 0
    receipts: int = 0
    refund_receipts: int = 0

    def add(self, amount, *, refunded=False, discount=ZERO, tax=ZERO, cost=ZERO, quantity=0):
        amount = to_decimal(amount)
        self.gross_sales += amount
        self.quantity += quantity
        if refunded:
            self.refunds += amount
            self.quantity_refunded += quantity
        else:
            self.discounts += to_decimal(discount)
            self.taxes += to_decimal(tax)
            self.cost += to_decimal(cost)

    def add_receipt(self, refunded=False):
        self.receipts += 1
        if refunded:
            self.refund_receipts += 1

    @property
    def net_sales(self) -> Decimal:
        return net_sales(self.gross_sales, self.refunds, self.discounts)

    @property
    def gross_profit(self) -> Decimal:
        return self.net_sales - self.cost

    @property
    def margin(self) -> Decimal:
        return margin(self.gross_profit, self.net_sales)

    def metric(self, name: str) -> float:
        return {
            "grossSales": money_json(self.gross_sales),
            "refunds": money_json(self.refunds),
            "discounts": money_json(self.discounts),
            "netSales": money_json(self.net_sales),
            "grossProfit": money_json(self.gross_profit),
        }[name]

    def to_dict(self) -> dict:
        return {
            "grossSales": money_json(self.gross_sales),
            "refunds": money_json(self.refunds),
            "discounts": money_json(self.discounts),
            "taxes": money_json(self.taxes),
            "netSales": money_json(self.net_sales),
            "costOfGoods": money_json(self.cost),
            "grossProfit": money_json(self.gross_profit),
            "margin": float(self.margin.quantize(RATIO)),
        }


@dataclass
class ReportData:
    """Everything a build step may read. Defaults are the empty report."""
    orders: list = field(default_factory=list)
    shifts: list = field(default_factory=list)
    categories: dict = field(default_factory=dict)
    tax_categories: dict = field(default_factory=dict)
    default_tax_category_id: int | None = None
    payment_types: dict = field(default_factory=dict)
    discounts: dict = field(default_factory=dict)
    modifiers: dict = field(default_factory=dict)


@dataclass
class _Line:
    """One order item with its share of order-level discount and tax."""
    item: OrderItem
    amount: Decimal
    discount: Decimal
    tax: Decimal
    cost: Decimal


def _line_amount(item) -> Decimal:
    amount = to_decimal(item.price) * (item.quantity or 0)
    for mod in item.modifiers:
        amount += to_decimal(mod.price) * (mod.quantity or 0)
    return amount


def _lines(order) -> list[_Line]:
    amounts = [_line_amount(item) for item in order.items]
    base = sum(amounts, ZERO)
    lines = []
    for item, amount in zip(order.items, amounts):
        unit_cost = to_decimal(item.product.cost) if item.product is not None else ZERO
        lines.append(_Line(
            item=item,
            amount=amount,
            discount=share(order.discount, amount, base),
            tax=share(order.tax, amount, base),
            cost=unit_cost * (item.quantity or 0),
        ))
    return lines


def _day(order) -> str:
    return order.created_at.date().isoformat()


def _range_header(filters: ReportFilters) -> dict:
    return {
        "startDate": filters.date_range.start_day.isoformat(),
        "endDate": filters.date_range.end_day.isoformat(),
    }


def _daily_buckets(filters: ReportFilters) -> "OrderedDict[str, SalesTotals]":
    return OrderedDict((d.isoformat(), SalesTotals()) for d in filters.date_range.days())


# =============================================================================
# BUILD STEPS
# =============================================================================

def build_sales_summary(filters: ReportFilters, data: ReportData) -> dict:
    totals = SalesTotals()
    daily = _daily_buckets(filters)

    for order in data.orders:
        refunded = order.is_refund
        cost = ZERO if refunded else sum((line.cost for line in _lines(order)), ZERO)
        for bucket in (totals, daily.setdefault(_day(order), SalesTotals())):
            bucket.add(order.subtotal, refunded=refunded, discount=order.discount, tax=order.tax, cost=cost)
            bucket.add_receipt(refunded)

    report = _range_header(filters)
    report.update(totals.to_dict())
    report["orderCount"] = totals.receipts
    report["refundCount"] = totals.refund_receipts
    report["trends"] = {
        metric: [{"date": day, "value": bucket.metric(metric)} for day, bucket in daily.items()]
        for metric in TREND_METRICS
    }
    report["dailySales"] = [
        dict(date=day, orderCount=bucket.receipts, **bucket.to_dict())
        for day, bucket in daily.items()
    ]
    return report


def build_items_report(filters: ReportFilters, data: ReportData) -> dict:
    products: dict = OrderedDict()
    per_day: dict = {}

    for order in data.orders:
        refunded = order.is_refund
        for line in _lines(order):
            product = line.item.product
            key = line.item.product_id
            entry = products.get(key)
            if entry is None:
                category_id = product.category_id if product is not None else None
                entry = products[key] = {
                    "product": product,
                    "categoryName": data.categories.get(category_id, "Uncategorized"),
                    "totals": SalesTotals(),
                }
            entry["totals"].add(
                line.amount,
                refunded=refunded,
                discount=line.discount,
                tax=line.tax,
                cost=line.cost,
                quantity=line.item.quantity or 0,
            )
            day_totals = per_day.setdefault(_day(order), {}).setdefault(key, SalesTotals())
            day_totals.add(line.amount, refunded=refunded, discount=line.discount)

    items = []
    for product_id, entry in products.items():
        product, totals = entry["product"], entry["totals"]
        row = {
            "id": product_id,
            "name": product.name if product is not None else f"Product {product_id}",
            "categoryName": entry["categoryName"],
            "sku": product.sku if product is not None else None,
            "quantity": totals.quantity,
            "itemsRefunded": totals.quantity_refunded,
        }
        row.update(totals.to_dict())
        row["cost"] = row.pop("costOfGoods")
        items.append(row)
    items.sort(key=lambda r: (-r["netSales"], r["name"]))

    top = items[:TOP_N]
    report = _range_header(filters)
    report["items"] = items
    report["top5Items"] = [{"id": r["id"], "name": r["name"], "netSales": r["netSales"]} for r in top]
    report["timeSeriesData"] = [
        {
            "date": day,
            "items": {
                str(r["id"]): money_json(per_day.get(day, {}).get(r["id"], SalesTotals()).net_sales)
                for r in top
            },
        }
        for day in (d.isoformat() for d in filters.date_range.days())
    ]
    return report


def build_category_report(filters: ReportFilters, data: ReportData) -> dict:
    groups: dict = OrderedDict()

    for order in data.orders:
        refunded = order.is_refund
        for line in _lines(order):
            product = line.item.product
            category_id = product.category_id if product is not None else None
            group = groups.setdefault(category_id, {"totals": SalesTotals(), "orders": set()})
            group["totals"].add(
                line.amount,
                refunded=refunded,
                discount=line.discount,
                tax=line.tax,
                cost=line.cost,
                quantity=line.item.quantity or 0,
            )
            group["orders"].add(order.id)

    categories = []
    for category_id, group in groups.items():
        totals = group["totals"]
        categories.append({
            "categoryId": category_id,
            "categoryName": data.categories.get(category_id, "Uncategorized"),
            "quantity": totals.quantity,
            "grossSales": money_json(totals.gross_sales),
            "quantityRefunded": totals.quantity_refunded,
            "refundAmount": money_json(totals.refunds),
            "discounts": money_json(totals.discounts),
            "netSales": money_json(totals.net_sales),
            "cost": money_json(totals.cost),
            "grossProfit": money_json(totals.gross_profit),
            "orderCount": len(group["orders"]),
        })
    categories.sort(key=lambda r: (-r["netSales"], r["categoryName"]))

    report = _range_header(filters)
    report["categories"] = categories
    return report


def build_employee_report(filters: ReportFilters, data: ReportData) -> dict:
    groups: dict = OrderedDict()
    per_day: dict = {}
    overall = SalesTotals()

    for order in data.orders:
        refunded = order.is_refund
        group = groups.get(order.user_id)
        if group is None:
            group = groups[order.user_id] = {"user": order.user, "totals": SalesTotals()}
        for bucket in (group["totals"], overall, per_day.setdefault(_day(order), {}).setdefault(order.user_id, SalesTotals())):
            bucket.add(order.subtotal, refunded=refunded, discount=order.discount, tax=order.tax)
            bucket.add_receipt(refunded)

    employees = []
    for user_id, group in groups.items():
        user, totals = group["user"], group["totals"]
        completed = totals.receipts - totals.refund_receipts
        avg = totals.net_sales / completed if completed > 0 else ZERO
        employees.append({
            "id": user_id,
            "name": user.display_name if user is not None else "Unknown",
            "email": user.email if user is not None else None,
            "grossSales": money_json(totals.gross_sales),
            "refunds": money_json(totals.refunds),
            "discounts": money_json(totals.discounts),
            "netSales": money_json(totals.net_sales),
            "receipts": totals.receipts,
            "avgSale": money_json(avg),
        })
    employees.sort(key=lambda r: (-r["netSales"], r["name"]))

    top = employees[:TOP_N]
    report = _range_header(filters)
    report["employees"] = employees
    report["top5Employees"] = [{"id": r["id"], "name": r["name"], "netSales": r["netSales"]} for r in top]
    report["timeSeriesData"] = [
        {
            "date": day,
            "employees": {
                str(r["id"]): money_json(per_day.get(day, {}).get(r["id"], SalesTotals()).net_sales)
                for r in top
            },
        }
        for day in (d.isoformat() for d in filters.date_range.days())
    ]
    report["totalGrossSales"] = money_json(overall.gross_sales)
    report["totalNetSales"] = money_json(overall.net_sales)
    return report


def build_payment_type_report(filters: ReportFilters, data: ReportData) -> dict:
    groups: dict = OrderedDict()

    for order in data.orders:
        code = order.payment_method or "unknown"
        group = groups.setdefault(code, {"count": 0, "amount": ZERO, "refund_count": 0, "refund_amount": ZERO})
        group["count"] += 1
        group["amount"] += to_decimal(order.total)
        if order.is_refund:
            group["refund_count"] += 1
            group["refund_amount"] += to_decimal(order.total)

    rows = []
    total_payment = total_refund = ZERO
    for code, group in groups.items():
        payment_type = data.payment_types.get(code)
        total_payment += group["amount"]
        total_refund += group["refund_amount"]
        rows.append({
            "paymentTypeId": payment_type.id if payment_type is not None else None,
            "paymentTypeName": payment_type.name if payment_type is not None else code,
            "paymentTypeCode": code,
            "transactionCount": group["count"],
            "paymentAmount": money_json(group["amount"]),
            "refundTransactionCount": group["refund_count"],
            "refundAmount": money_json(group["refund_amount"]),
            "netAmount": money_json(group["amount"] - group["refund_amount"]),
        })
    rows.sort(key=lambda r: (-r["netAmount"], r["paymentTypeName"]))

    report = _range_header(filters)
    report["paymentTypes"] = rows
    report["totalPaymentAmount"] = money_json(total_payment)
    report["totalRefundAmount"] = money_json(total_refund)
    report["totalNetAmount"] = money_json(total_payment - total_refund)
    return report


def build_discount_report(filters: ReportFilters, data: ReportData) -> dict:
    groups: dict = OrderedDict()

    for order in data.orders:
        amount = to_decimal(order.discount)
        if order.is_refund or amount <= ZERO:
            continue
        group = groups.setdefault(order.discount_id, {"count": 0, "amount": ZERO})
        group["count"] += 1
        group["amount"] += amount

    rows = []
    for discount_id, group in groups.items():
        rows.append({
            "discountId": discount_id,
            "discountName": data.discounts.get(discount_id, "Manual discount"),
            "discountsApplied": group["count"],
            "amountDiscounted": money_json(group["amount"]),
        })
    rows.sort(key=lambda r: (-r["amountDiscounted"], r["discountName"]))

    report = _range_header(filters)
    report["discounts"] = rows
    report["totalDiscountsApplied"] = sum(r["discountsApplied"] for r in rows)
    report["totalAmountDiscounted"] = money_json(sum((g["amount"] for g in groups.values()), ZERO))
    return report


def build_tax_report(filters: ReportFilters, data: ReportData) -> dict:
    taxable_total = non_taxable_total = tax_total = ZERO
    groups: dict = OrderedDict()

    for order in data.orders:
        if order.is_refund:
            continue
        tax_total += to_decimal(order.tax)
        lines = _lines(order)
        taxable_lines = []
        for line in lines:
            net_line = line.amount - line.discount
            product = line.item.product
            if product is not None and product.is_taxable:
                taxable_total += net_line
                taxable_lines.append((line, net_line))
            else:
                non_taxable_total += net_line

        taxable_base = sum((net for _, net in taxable_lines), ZERO)
        for line, net_line in taxable_lines:
            category_id = line.item.product.tax_category_id or data.default_tax_category_id
            group = groups.setdefault(category_id, {"taxable": ZERO, "tax": ZERO})
            group["taxable"] += net_line
            group["tax"] += share(order.tax, net_line, taxable_base)

    rows = []
    for category_id, group in groups.items():
        tax_category = data.tax_categories.get(category_id)
        rows.append({
            "taxCategoryId": category_id,
            "taxName": tax_category.name if tax_category is not None else "No tax category",
            "taxRate": money_json(tax_category.rate) if tax_category is not None else 0.0,
            "taxableSales": money_json(group["taxable"]),
            "taxAmount": money_json(group["tax"]),
        })

    report = _range_header(filters)
    report["widgets"] = {
        "taxableSales": money_json(taxable_total),
        "nonTaxableSales": money_json(non_taxable_total),
        "totalNetSales": money_json(taxable_total + non_taxable_total),
        "totalTaxAmount": money_json(tax_total),
    }
    report["taxData"] = rows
    return report


def build_modifier_report(filters: ReportFilters, data: ReportData) -> dict:
    groups: dict = OrderedDict()

    for order in data.orders:
        refunded = order.is_refund
        for item in order.items:
            for mod in item.modifiers:
                group = groups.get(mod.modifier_id)
                if group is None:
                    group = groups[mod.modifier_id] = {
                        "name": data.modifiers.get(mod.modifier_id, mod.name),
                        "totals": SalesTotals(),
                    }
                group["totals"].add(
                    to_decimal(mod.price) * (mod.quantity or 0),
                    refunded=refunded,
                    quantity=mod.quantity or 0,
                )

    rows = []
    for modifier_id, group in groups.items():
        totals = group["totals"]
        rows.append({
            "modifierId": modifier_id,
            "modifierName": group["name"],
            "quantitySold": totals.quantity,
            "grossSales": money_json(totals.gross_sales),
            "quantityRefunded": totals.quantity_refunded,
            "refundAmount": money_json(totals.refunds),
            "netSales": money_json(totals.gross_sales - totals.refunds),
        })
    rows.sort(key=lambda r: (-r["netSales"], r["modifierName"]))

    report = _range_header(filters)
    report["modifiers"] = rows
    return report


def build_receipts_report(filters: ReportFilters, data: ReportData) -> dict:
    receipts = []
    refunds = 0
    for order in sorted(data.orders, key=lambda o: (o.created_at, o.id), reverse=True):
        if order.is_refund:
            refunds += 1
        receipts.append({
            "id": order.id,
            "receiptNo": order.order_number,
            "date": order.created_at.isoformat(timespec="seconds"),
            "storeId": order.store_id,
            "storeName": order.store.name if order.store is not None else None,
            "employeeId": order.user_id,
            "employeeName": order.user.display_name if order.user is not None else None,
            "customerId": order.customer_id,
            "type": "Refund" if order.is_refund else "Sale",
            "total": money_json(order.total),
        })

    report = _range_header(filters)
    report["widgets"] = {
        "allReceipts": len(receipts),
        "sales": len(receipts) - refunds,
        "refunds": refunds,
    }
    report["receipts"] = receipts
    return report


def build_shift_report(filters: ReportFilters, data: ReportData) -> dict:
    rows = []
    expected_total = actual_total = difference_total = ZERO
    for shift in data.shifts:
        expected_total += to_decimal(shift.expected_cash_amount)
        difference = shift.cash_difference
        if difference is not None:
            actual_total += to_decimal(shift.actual_cash_amount)
            difference_total += difference
        row = shift.to_dict()
        row["storeName"] = shift.store.name if shift.store is not None else None
        row["userName"] = shift.user.display_name if shift.user is not None else None
        rows.append(row)

    report = _range_header(filters)
    report["shifts"] = rows
    report["totals"] = {
        "shiftCount": len(rows),
        "expectedCashAmount": money_json(expected_total),
        "actualCashAmount": money_json(actual_total),
        "difference": money_json(difference_total),
    }
    return report


# =============================================================================
# LOAD STEPS
# =============================================================================

def _load_orders(filters: ReportFilters) -> list:
    query = db.session.query(Order).options(
        selectinload(Order.items).joinedload(OrderItem.product),
        selectinload(Order.items).selectinload(OrderItem.modifiers),
        joinedload(Order.user),
        joinedload(Order.store),
    )
    query = filters.apply(
        query,
        time_column=Order.created_at,
        store_column=Order.store_id,
        employee_column=Order.user_id,
    )
    if filters.search:
        query = query.filter(filters.search_condition(Order.order_number))
    return query.order_by(Order.created_at.asc(), Order.id.asc()).all()


def _load_shifts(filters: ReportFilters) -> list:
    query = db.session.query(Shift).options(joinedload(Shift.store), joinedload(Shift.user))
    query = filters.apply(
        query,
        time_column=Shift.opening_time,
        store_column=Shift.store_id,
        employee_column=Shift.user_id,
    )
    return query.order_by(Shift.opening_time.desc(), Shift.id.desc()).all()


def _load_orders_only(filters):
    return ReportData(orders=_load_orders(filters))


def _load_with_categories(filters):
    return ReportData(
        orders=_load_orders(filters),
        categories={c.id: c.name for c in db.session.query(Category).all()},
    )


def _load_with_payment_types(filters):
    return ReportData(
        orders=_load_orders(filters),
        payment_types={p.code: p for p in db.session.query(PaymentType).all()},
    )


def _load_with_discounts(filters):
    return ReportData(
        orders=_load_orders(filters),
        discounts={d.id: d.name for d in db.session.query(Discount).all()},
    )


def _load_with_tax_categories(filters):
    tax_categories = {t.id: t for t in db.session.query(TaxCategory).all()}
    default = next((t.id for t in tax_categories.values() if t.is_default), None)
    return ReportData(
        orders=_load_orders(filters),
        tax_categories=tax_categories,
        default_tax_category_id=default,
    )


def _load_with_modifiers(filters):
    return ReportData(
        orders=_load_orders(filters),
        modifiers={m.id: m.name for m in db.session.query(Modifier).all()},
    )


def _load_shift_data(filters):
    return ReportData(shifts=_load_shifts(filters))


REPORTS = {
    "sales": (_load_orders_only, build_sales_summary),
    "items": (_load_with_categories, build_items_report),
    "sales-by-category": (_load_with_categories, build_category_report),
    "employees": (_load_orders_only, build_employee_report),
    "payment-types": (_load_with_payment_types, build_payment_type_report),
    "discounts": (_load_with_discounts, build_discount_report),
    "taxes": (_load_with_tax_categories, build_tax_report),
    "modifiers": (_load_with_modifiers, build_modifier_report),
    "receipts": (_load_orders_only, build_receipts_report),
    "shifts": (_load_shift_data, build_shift_report),
}


def _lookup(name: str):
    try:
        return REPORTS[name]
    except KeyError:
        raise ReportError(f"Unknown report: {name}")


def run_report(name: str, filters: ReportFilters) -> dict:
    load, build = _lookup(name)
    return build(filters, load(filters))


def empty_report(name: str, filters: ReportFilters) -> dict:
    """The report's shape with zero totals and empty lists."""
    _, build = _lookup(name)
    return build(filters, ReportData())
