# Overview: Flask API routes for payment types; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services.store_service import payment_types

payment_types_bp = Blueprint("payment_types", __name__, url_prefix="/api/payment-types")


@payment_types_bp.get("")
@require_auth
def list_payment_types():
    return jsonify([p.to_dict() for p in payment_types.list()])


@payment_types_bp.get("/<int:payment_type_id>")
@require_auth
def get_payment_type(payment_type_id: int):
    return jsonify(payment_types.get(payment_type_id).to_dict())


@payment_types_bp.post("")
@require_auth
@require_permission("canManageSettings")
def create_payment_type():
    """Request body: name, code (required; code is unique and matched against order paymentMethod)."""
    payment_type = payment_types.create(request.get_json(silent=True))
    return jsonify(payment_type.to_dict()), 201


@payment_types_bp.put("/<int:payment_type_id>")
@require_auth
@require_permission("canManageSettings")
def update_payment_type(payment_type_id: int):
    payment_type = payment_types.update(payment_type_id, request.get_json(silent=True))
    return jsonify(payment_type.to_dict())


@payment_types_bp.delete("/<int:payment_type_id>")
@require_auth
@require_permission("canManageSettings")
def delete_payment_type(payment_type_id: int):
    payment_types.delete(payment_type_id)
    return jsonify({"message": "Payment type deleted"})
