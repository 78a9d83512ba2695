# Overview: Service-layer operations for kitchen tickets; creation and status tracking.

"""
Kitchen orders (tickets).

A ticket points at a sales order and lists the order lines the kitchen
has to prepare. Status moves through pending, in-progress, completed or
cancelled at ticket and at line level. Completing the last open line
completes the ticket.
"""

from __future__ import annotations

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import (
    KITCHEN_STATUS_COMPLETED,
    KITCHEN_STATUS_IN_PROGRESS,
    KITCHEN_STATUSES,
    KitchenOrder,
    KitchenOrderItem,
    Order,
    OrderItem,
)
from ..time_utils import localnow
from ..validation import ModelValidationPolicy, apply_patch, validate_payload

TICKET_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"order_id", "status", "priority", "notes"}),
    required_on_create=frozenset({"order_id"}),
)

TICKET_ITEM_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"order_item_id", "status", "preparation_time"}),
    required_on_create=frozenset({"order_item_id"}),
)


def _check_status(status) -> str:
    if status not in KITCHEN_STATUSES:
        raise ValidationError(
            f"status must be one of: {', '.join(KITCHEN_STATUSES)}",
            details={"status": "invalid"},
        )
    return status


def list_kitchen_orders(*, status: str | None = None, store_id: int | None = None) -> list[KitchenOrder]:
    """Highest priority first, then oldest first."""
    query = db.session.query(KitchenOrder).join(Order, KitchenOrder.order_id == Order.id)
    if status is not None:
        query = query.filter(KitchenOrder.status == _check_status(status))
    if store_id is not None:
        query = query.filter(Order.store_id == store_id)
    return query.order_by(
        KitchenOrder.priority.desc(), KitchenOrder.created_at.asc(), KitchenOrder.id.asc()
    ).all()


def get_kitchen_order(kitchen_order_id: int) -> KitchenOrder:
    ticket = db.session.get(KitchenOrder, kitchen_order_id)
    if ticket is None:
        raise NotFoundError("Kitchen order not found")
    return ticket


def create_kitchen_order(payload: dict) -> KitchenOrder:
    """
    Payload: {order: {orderId, status?, priority?, notes?},
              items?: [{orderItemId, status?, preparationTime?}]}

    Without items, every line of the sales order goes on the ticket.
    Lines must belong to the ticket's order.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    patch = validate_payload(model=KitchenOrder, payload=payload.get("order"), policy=TICKET_POLICY, partial=False)
    if "status" in patch:
        _check_status(patch["status"])
    order = db.session.get(Order, patch["order_id"])
    if order is None:
        raise ValidationError("orderId does not reference an existing order", details={"orderId": "not found"})

    raw_items = payload.get("items")
    if raw_items is None:
        raw_items = [{"orderItemId": item.id} for item in order.items]
    if not isinstance(raw_items, list):
        raise ValidationError("items must be a list", details={"items": "list"})

    try:
        ticket = KitchenOrder()
        apply_patch(ticket, patch)
        for raw in raw_items:
            item_patch = validate_payload(
                model=KitchenOrderItem, payload=raw, policy=TICKET_ITEM_POLICY, partial=False
            )
            if "status" in item_patch:
                _check_status(item_patch["status"])
            order_item = db.session.get(OrderItem, item_patch["order_item_id"])
            if order_item is None or order_item.order_id != order.id:
                raise ValidationError(
                    "orderItemId must be a line of the ticket's order",
                    details={"orderItemId": "invalid"},
                )
            line = KitchenOrderItem()
            apply_patch(line, item_patch)
            ticket.items.append(line)

        db.session.add(ticket)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return ticket


def set_ticket_status(kitchen_order_id: int, status) -> KitchenOrder:
    ticket = get_kitchen_order(kitchen_order_id)
    ticket.status = _check_status(status)
    ticket.updated_at = localnow()
    db.session.commit()
    return ticket


def set_item_status(item_id: int, status) -> KitchenOrderItem:
    """
    Update one ticket line. Moving to in-progress stamps started_at,
    completing stamps completed_at.
    """
    status = _check_status(status)
    line = db.session.get(KitchenOrderItem, item_id)
    if line is None:
        raise NotFoundError("Kitchen order item not found")

    now = localnow()
    line.status = status
    line.updated_at = now
    if status == KITCHEN_STATUS_IN_PROGRESS:
        line.started_at = now
    elif status == KITCHEN_STATUS_COMPLETED:
        line.completed_at = now
        ticket = line.kitchen_order
        if all(item.status == KITCHEN_STATUS_COMPLETED for item in ticket.items):
            ticket.status = KITCHEN_STATUS_COMPLETED
            ticket.updated_at = now

    db.session.commit()
    return line
