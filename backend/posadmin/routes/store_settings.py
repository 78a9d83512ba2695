# Overview: Flask API routes for store settings; parses input and returns JSON responses.

"""
Store settings routes.

A store carries the receipt header and the currency formatting used by the
register. Delete is a soft delete (isActive=false); orders and shifts keep
pointing at the row.
"""

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services.store_service import stores

store_settings_bp = Blueprint("store_settings", __name__, url_prefix="/api/store-settings")


@store_settings_bp.get("")
@require_auth
def list_stores():
    """Query params: includeInactive (default false)"""
    include_inactive = request.args.get("includeInactive", "false").lower() == "true"
    filters = {} if include_inactive else {"is_active": True}
    return jsonify([s.to_dict() for s in stores.list(filters)])


@store_settings_bp.get("/<int:store_id>")
@require_auth
def get_store(store_id: int):
    return jsonify(stores.get(store_id).to_dict())


@store_settings_bp.post("")
@require_auth
@require_permission("canManageSettings")
def create_store():
    store = stores.create(request.get_json(silent=True))
    return jsonify(store.to_dict()), 201


@store_settings_bp.put("/<int:store_id>")
@require_auth
@require_permission("canManageSettings")
def update_store(store_id: int):
    store = stores.update(store_id, request.get_json(silent=True))
    return jsonify(store.to_dict())


@store_settings_bp.delete("/<int:store_id>")
@require_auth
@require_permission("canManageSettings")
def delete_store(store_id: int):
    store = stores.delete(store_id)
    return jsonify({"message": "Store deactivated", "store": store.to_dict()})
