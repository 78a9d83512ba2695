# Overview: Flask API routes for role management; parses input and returns JSON responses.

"""
Role routes.

Reads are open to any authenticated user (the frontend looks up its own
role by name); writes need canManageUsers. System roles answer 403 to
update and delete.
"""

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..permissions import get_all_permission_codes, get_permission_definition
from ..services import role_service

roles_bp = Blueprint("roles", __name__, url_prefix="/api/roles")


@roles_bp.get("")
@require_auth
def list_roles():
    return jsonify(role_service.list_roles())


@roles_bp.get("/permissions")
@require_auth
def list_permission_definitions():
    """The closed permission catalogue, for the role editor."""
    return jsonify([get_permission_definition(code) for code in get_all_permission_codes()])


@roles_bp.get("/<int:role_id>")
@require_auth
def get_role(role_id: int):
    return jsonify(role_service.role_dict(role_service.get_role(role_id)))


@roles_bp.get("/by-name/<string:name>")
@require_auth
def get_role_by_name(name: str):
    return jsonify(role_service.get_role_by_name(name))


@roles_bp.post("")
@require_auth
@require_permission("canManageUsers")
def create_role():
    """
    Request body:
    - name: str (required, unique, not a system role name)
    - description: str
    - permissions: {canManageProducts: bool, ...} (unknown keys rejected)
    """
    role = role_service.create_role(request.get_json(silent=True))
    return jsonify(role_service.role_dict(role)), 201


@roles_bp.put("/<int:role_id>")
@require_auth
@require_permission("canManageUsers")
def update_role(role_id: int):
    role = role_service.update_role(role_id, request.get_json(silent=True))
    return jsonify(role_service.role_dict(role))


@roles_bp.delete("/<int:role_id>")
@require_auth
@require_permission("canManageUsers")
def delete_role(role_id: int):
    role_service.delete_role(role_id)
    return jsonify({"message": "Role deleted"})
