# Overview: Service-layer operations for orders; encapsulates business logic and database work.

"""
Orders (receipts) and refunds.

create_order writes the order, its items, their modifiers and the stock
decrements as one transaction. Stock is only tracked for products with
track_stock set; it may go negative (the register never blocks a sale).
An order with a customerId also counts a visit on that customer.
"""

from __future__ import annotations

import secrets

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import (
    ORDER_STATUS_COMPLETED,
    ORDER_STATUS_REFUNDED,
    Discount,
    Modifier,
    ModifierOption,
    Order,
    OrderItem,
    OrderItemModifier,
    Product,
    ProductVariant,
    StoreSettings,
    User,
)
from ..time_utils import localnow
from ..validation import ModelValidationPolicy, apply_patch, require_positive, validate_payload
from . import customer_service
from .concurrency import lock_for_update
from .report_filters import ReportFilters

ORDER_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "order_number", "customer_id", "store_id", "user_id", "discount_id",
        "subtotal", "tax", "discount", "total", "payment_method",
        "amount_tendered", "change",
    }),
    required_on_create=frozenset({"subtotal", "total"}),
)

ITEM_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"product_id", "variant_id", "quantity", "price", "notes"}),
    required_on_create=frozenset({"product_id", "quantity", "price"}),
)

ITEM_MODIFIER_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"modifier_id", "modifier_option_id", "name", "price", "quantity"}),
    required_on_create=frozenset({"modifier_id", "name"}),
)


def generate_order_number() -> str:
    return f"{localnow():%Y%m%d}-{secrets.token_hex(3).upper()}"


def get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    return order


def order_with_items(order: Order) -> dict:
    return {"order": order.to_dict(), "items": [item.to_dict() for item in order.items]}


def list_orders(filters: ReportFilters, *, status: str | None = None) -> list[Order]:
    query = filters.apply(
        db.session.query(Order),
        time_column=Order.created_at,
        store_column=Order.store_id,
        employee_column=Order.user_id,
    )
    if status:
        query = query.filter(Order.status == status)
    if filters.search:
        query = query.filter(filters.search_condition(Order.order_number))
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def _check_reference(model, value, label: str) -> None:
    if value is not None and db.session.get(model, value) is None:
        raise ValidationError(f"{label} does not reference an existing record", details={label: "not found"})


def _build_item(raw) -> tuple[OrderItem, Product]:
    if not isinstance(raw, dict):
        raise ValidationError("Each item must be an object", details={"items": "object"})
    raw = dict(raw)
    raw_modifiers = raw.pop("modifiers", None) or []
    if not isinstance(raw_modifiers, list):
        raise ValidationError("modifiers must be a list", details={"modifiers": "list"})

    patch = validate_payload(model=OrderItem, payload=raw, policy=ITEM_POLICY, partial=False)
    if patch["quantity"] <= 0:
        raise ValidationError("quantity must be > 0", details={"quantity": "> 0"})
    require_positive(patch, "price", allow_zero=True)

    product = lock_for_update(db.session.query(Product).filter(Product.id == patch["product_id"])).first()
    if product is None:
        raise ValidationError("productId does not reference an existing product", details={"productId": "not found"})
    if patch.get("variant_id") is not None:
        variant = db.session.get(ProductVariant, patch["variant_id"])
        if variant is None or variant.product_id != product.id:
            raise ValidationError("variantId does not belong to the product", details={"variantId": "invalid"})

    item = OrderItem()
    apply_patch(item, patch)

    for raw_modifier in raw_modifiers:
        mod_patch = validate_payload(
            model=OrderItemModifier, payload=raw_modifier, policy=ITEM_MODIFIER_POLICY, partial=False
        )
        require_positive(mod_patch, "price", allow_zero=True)
        if mod_patch.get("quantity") is not None and mod_patch["quantity"] <= 0:
            raise ValidationError("modifier quantity must be > 0", details={"quantity": "> 0"})
        _check_reference(Modifier, mod_patch["modifier_id"], "modifierId")
        _check_reference(ModifierOption, mod_patch.get("modifier_option_id"), "modifierOptionId")
        modifier = OrderItemModifier()
        apply_patch(modifier, mod_patch)
        item.modifiers.append(modifier)

    return item, product


def create_order(payload: dict, *, default_user_id: int | None = None) -> Order:
    """
    Create an order with its items in one transaction.

    Payload: {order: {...}, items: [{productId, quantity, price, modifiers?}]}
    userId defaults to the authenticated caller.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    patch = validate_payload(model=Order, payload=payload.get("order"), policy=ORDER_POLICY, partial=False)
    raw_items = payload.get("items")
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("An order needs at least one item", details={"items": "required"})

    for field in ("subtotal", "tax", "discount", "total"):
        require_positive(patch, field, allow_zero=True)

    if patch.get("user_id") is None:
        patch["user_id"] = default_user_id
    if not patch.get("order_number"):
        patch["order_number"] = generate_order_number()

    try:
        _check_reference(StoreSettings, patch.get("store_id"), "storeId")
        _check_reference(User, patch.get("user_id"), "userId")
        _check_reference(Discount, patch.get("discount_id"), "discountId")
        if db.session.query(Order.id).filter_by(order_number=patch["order_number"]).first() is not None:
            raise ConflictError("Order number already exists")

        if patch.get("customer_id") is not None:
            customer_service.record_visit(patch["customer_id"], patch["total"])

        order = Order(status=ORDER_STATUS_COMPLETED)
        apply_patch(order, patch)

        for raw in raw_items:
            item, product = _build_item(raw)
            order.items.append(item)
            if product.track_stock:
                product.stock = (product.stock or 0) - item.quantity

        db.session.add(order)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return order


def refund_order(order_id: int) -> Order:
    """
    Mark a completed order refunded and put tracked stock back.
    """
    try:
        order = lock_for_update(db.session.query(Order).filter(Order.id == order_id)).first()
        if order is None:
            raise NotFoundError("Order not found")
        if order.status == ORDER_STATUS_REFUNDED:
            raise ConflictError("Order is already refunded")

        order.status = ORDER_STATUS_REFUNDED
        order.refunded_at = localnow()
        for item in order.items:
            product = item.product
            if product is not None and product.track_stock:
                product.stock = (product.stock or 0) + item.quantity

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return order
