# Overview: Flask API routes for product categories; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services.catalog_service import categories

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
def list_categories():
    return jsonify([c.to_dict() for c in categories.list()])


@categories_bp.get("/<int:category_id>")
@require_auth
def get_category(category_id: int):
    return jsonify(categories.get(category_id).to_dict())


@categories_bp.post("")
@require_auth
@require_permission("canManageCategories")
def create_category():
    """Request body: name (required, unique), color, kitchenQueueId."""
    category = categories.create(request.get_json(silent=True))
    return jsonify(category.to_dict()), 201


@categories_bp.put("/<int:category_id>")
@require_auth
@require_permission("canManageCategories")
def update_category(category_id: int):
    category = categories.update(category_id, request.get_json(silent=True))
    return jsonify(category.to_dict())


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_permission("canManageCategories")
def delete_category(category_id: int):
    categories.delete(category_id)
    return jsonify({"message": "Category deleted"})
