# Overview: Flask API routes for dining options; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services.store_service import dining_options

dining_options_bp = Blueprint("dining_options", __name__, url_prefix="/api/dining-options")


@dining_options_bp.get("")
@require_auth
def list_dining_options():
    """Query params: storeId"""
    store_id = request.args.get("storeId", type=int)
    return jsonify([o.to_dict() for o in dining_options.list({"store_id": store_id})])


@dining_options_bp.get("/<int:option_id>")
@require_auth
def get_dining_option(option_id: int):
    return jsonify(dining_options.get(option_id).to_dict())


@dining_options_bp.post("")
@require_auth
@require_permission("canManageSettings")
def create_dining_option():
    """Request body: name, storeId (required); available, isDefault (one default per store)."""
    option = dining_options.create(request.get_json(silent=True))
    return jsonify(option.to_dict()), 201


@dining_options_bp.put("/<int:option_id>")
@require_auth
@require_permission("canManageSettings")
def update_dining_option(option_id: int):
    option = dining_options.update(option_id, request.get_json(silent=True))
    return jsonify(option.to_dict())


@dining_options_bp.delete("/<int:option_id>")
@require_auth
@require_permission("canManageSettings")
def delete_dining_option(option_id: int):
    dining_options.delete(option_id)
    return jsonify({"message": "Dining option deleted"})
