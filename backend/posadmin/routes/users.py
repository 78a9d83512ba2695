# Overview: Flask API routes for employee accounts; parses input and returns JSON responses.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import user_service

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_permission("canManageUsers")
def list_users():
    """
    Query params:
    - includeInactive: bool (default false)
    - storeId: int
    """
    include_inactive = request.args.get("includeInactive", "false").lower() == "true"
    store_id = request.args.get("storeId", type=int)
    users = user_service.list_users(include_inactive=include_inactive, store_id=store_id)
    return jsonify([u.to_dict() for u in users])


@users_bp.get("/<int:user_id>")
@require_auth
@require_permission("canManageUsers")
def get_user(user_id: int):
    return jsonify(user_service.get_user(user_id).to_dict())


@users_bp.post("")
@require_auth
@require_permission("canManageUsers")
def create_user():
    """
    Request body: username, password, displayName (required); role
    (default cashier), email, phone, storeId.
    """
    user = user_service.create_user(request.get_json(silent=True))
    return jsonify(user.to_dict()), 201


@users_bp.put("/<int:user_id>")
@require_auth
@require_permission("canManageUsers")
def update_user(user_id: int):
    user = user_service.update_user(user_id, request.get_json(silent=True), acting_user_id=g.user_id)
    return jsonify(user.to_dict())


@users_bp.delete("/<int:user_id>")
@require_auth
@require_permission("canManageUsers")
def delete_user(user_id: int):
    """Deactivates; the account row is kept for attribution."""
    user = user_service.deactivate_user(user_id, acting_user_id=g.user_id)
    return jsonify({"message": "User deactivated", "user": user.to_dict()})
