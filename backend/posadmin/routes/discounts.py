# Overview: Flask API routes for discounts; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_any_permission, require_auth
from ..services.catalog_service import discounts

discounts_bp = Blueprint("discounts", __name__, url_prefix="/api/discounts")

# Discounts are edited from both the settings and the product screens
WRITE_PERMISSIONS = ("canManageSettings", "canManageProducts")


@discounts_bp.get("")
@require_auth
def list_discounts():
    """Query params: storeId"""
    store_id = request.args.get("storeId", type=int)
    return jsonify([d.to_dict() for d in discounts.list({"store_id": store_id})])


@discounts_bp.get("/<int:discount_id>")
@require_auth
def get_discount(discount_id: int):
    return jsonify(discounts.get(discount_id).to_dict())


@discounts_bp.post("")
@require_auth
@require_any_permission(*WRITE_PERMISSIONS)
def create_discount():
    """
    Request body:
    - name: str (required)
    - type: "percent" | "amount" (required)
    - value: number > 0; a percent is at most 100
    - storeId, restrictedAccess
    """
    discount = discounts.create(request.get_json(silent=True))
    return jsonify(discount.to_dict()), 201


@discounts_bp.put("/<int:discount_id>")
@require_auth
@require_any_permission(*WRITE_PERMISSIONS)
def update_discount(discount_id: int):
    discount = discounts.update(discount_id, request.get_json(silent=True))
    return jsonify(discount.to_dict())


@discounts_bp.delete("/<int:discount_id>")
@require_auth
@require_any_permission(*WRITE_PERMISSIONS)
def delete_discount(discount_id: int):
    discounts.delete(discount_id)
    return jsonify({"message": "Discount deleted"})
