# Overview: Flask API routes for orders and refunds; parses input and returns JSON responses.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import orders_service
from ..services.report_filters import ReportFilters

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
@require_auth
@require_permission("canManageOrders")
def list_orders():
    """
    Query params:
    - startDate, endDate: YYYY-MM-DD (default: last 30 days)
    - store, employee: id or "all"
    - status: completed | refunded
    - search: order number fragment
    """
    filters = ReportFilters.from_args(request.args)
    orders = orders_service.list_orders(filters, status=request.args.get("status"))
    return jsonify([o.to_dict() for o in orders])


@orders_bp.get("/<int:order_id>")
@require_auth
@require_permission("canManageOrders")
def get_order(order_id: int):
    return jsonify(orders_service.order_with_items(orders_service.get_order(order_id)))


@orders_bp.post("")
@require_auth
@require_permission("canManageOrders")
def create_order():
    """
    Request body:
    {
      "order": {subtotal, tax, discount, total, paymentMethod, storeId, ...},
      "items": [{productId, variantId?, quantity, price, notes?, modifiers?: [...]}]
    }
    userId defaults to the caller.
    """
    order = orders_service.create_order(request.get_json(silent=True), default_user_id=g.user_id)
    return jsonify(orders_service.order_with_items(order)), 201


@orders_bp.post("/<int:order_id>/refund")
@require_auth
@require_permission("canManageOrders")
def refund_order(order_id: int):
    order = orders_service.refund_order(order_id)
    return jsonify(orders_service.order_with_items(order))
