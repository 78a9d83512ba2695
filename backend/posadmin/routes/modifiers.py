# Overview: Flask API routes for modifiers and their options; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import catalog_service
from ..services.catalog_service import modifiers

modifiers_bp = Blueprint("modifiers", __name__, url_prefix="/api/modifiers")


@modifiers_bp.get("")
@require_auth
def list_modifiers():
    """Modifiers with their options. Query params: storeId"""
    store_id = request.args.get("storeId", type=int)
    return jsonify([m.to_dict() for m in modifiers.list({"store_id": store_id})])


@modifiers_bp.get("/<int:modifier_id>")
@require_auth
def get_modifier(modifier_id: int):
    return jsonify(modifiers.get(modifier_id).to_dict())


@modifiers_bp.post("")
@require_auth
@require_permission("canManageProducts")
def create_modifier():
    """Request body: name (required), storeId, options: [{name, price}]"""
    modifier = catalog_service.create_modifier(request.get_json(silent=True))
    return jsonify(modifier.to_dict()), 201


@modifiers_bp.put("/<int:modifier_id>")
@require_auth
@require_permission("canManageProducts")
def update_modifier(modifier_id: int):
    modifier = catalog_service.update_modifier(modifier_id, request.get_json(silent=True))
    return jsonify(modifier.to_dict())


@modifiers_bp.delete("/<int:modifier_id>")
@require_auth
@require_permission("canManageProducts")
def delete_modifier(modifier_id: int):
    catalog_service.delete_modifier(modifier_id)
    return jsonify({"message": "Modifier deleted"})


@modifiers_bp.post("/<int:modifier_id>/options")
@require_auth
@require_permission("canManageProducts")
def add_option(modifier_id: int):
    option = catalog_service.add_option(modifier_id, request.get_json(silent=True))
    return jsonify(option.to_dict()), 201


@modifiers_bp.put("/<int:modifier_id>/options/<int:option_id>")
@require_auth
@require_permission("canManageProducts")
def update_option(modifier_id: int, option_id: int):
    option = catalog_service.update_option(modifier_id, option_id, request.get_json(silent=True))
    return jsonify(option.to_dict())


@modifiers_bp.delete("/<int:modifier_id>/options/<int:option_id>")
@require_auth
@require_permission("canManageProducts")
def delete_option(modifier_id: int, option_id: int):
    catalog_service.delete_option(modifier_id, option_id)
    return jsonify({"message": "Modifier option deleted"})
