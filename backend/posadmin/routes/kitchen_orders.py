# Overview: Flask API routes for kitchen tickets; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import ValidationError
from ..services import kitchen_service
from ..services.report_filters import parse_id_filter

kitchen_orders_bp = Blueprint("kitchen_orders", __name__, url_prefix="/api/kitchen-orders")


def _status_from_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or "status" not in data:
        raise ValidationError("status is required", details={"status": "required"})
    return data["status"]


@kitchen_orders_bp.get("")
@require_auth
@require_permission("canManageOrders")
def list_kitchen_orders():
    """Query params: status, storeId."""
    tickets = kitchen_service.list_kitchen_orders(
        status=request.args.get("status") or None,
        store_id=parse_id_filter(request.args.get("storeId"), "storeId"),
    )
    return jsonify([t.to_dict() for t in tickets])


@kitchen_orders_bp.get("/<int:kitchen_order_id>")
@require_auth
@require_permission("canManageOrders")
def get_kitchen_order(kitchen_order_id: int):
    return jsonify(kitchen_service.get_kitchen_order(kitchen_order_id).to_dict())


@kitchen_orders_bp.post("")
@require_auth
@require_permission("canManageOrders")
def create_kitchen_order():
    """
    Request body:
    {
      "order": {orderId, status?, priority?, notes?},
      "items": [{orderItemId, status?, preparationTime?}]   (optional: all lines)
    }
    """
    ticket = kitchen_service.create_kitchen_order(request.get_json(silent=True))
    return jsonify(ticket.to_dict()), 201


@kitchen_orders_bp.patch("/<int:kitchen_order_id>/status")
@require_auth
@require_permission("canManageOrders")
def update_kitchen_order_status(kitchen_order_id: int):
    ticket = kitchen_service.set_ticket_status(kitchen_order_id, _status_from_body())
    return jsonify(ticket.to_dict())


@kitchen_orders_bp.patch("/items/<int:item_id>/status")
@require_auth
@require_permission("canManageOrders")
def update_kitchen_item_status(item_id: int):
    line = kitchen_service.set_item_status(item_id, _status_from_body())
    return jsonify(line.to_dict())
