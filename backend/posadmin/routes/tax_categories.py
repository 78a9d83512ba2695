# Overview: Flask API routes for tax categories; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services.catalog_service import tax_categories

tax_categories_bp = Blueprint("tax_categories", __name__, url_prefix="/api/tax-categories")


@tax_categories_bp.get("")
@require_auth
def list_tax_categories():
    return jsonify([t.to_dict() for t in tax_categories.list()])


@tax_categories_bp.get("/<int:tax_category_id>")
@require_auth
def get_tax_category(tax_category_id: int):
    return jsonify(tax_categories.get(tax_category_id).to_dict())


@tax_categories_bp.post("")
@require_auth
@require_permission("canManageSettings")
def create_tax_category():
    """
    Request body: name (required, unique), rate (0-100, required), isDefault.
    Marking one category default clears the flag on the others.
    """
    tax_category = tax_categories.create(request.get_json(silent=True))
    return jsonify(tax_category.to_dict()), 201


@tax_categories_bp.put("/<int:tax_category_id>")
@require_auth
@require_permission("canManageSettings")
def update_tax_category(tax_category_id: int):
    tax_category = tax_categories.update(tax_category_id, request.get_json(silent=True))
    return jsonify(tax_category.to_dict())


@tax_categories_bp.delete("/<int:tax_category_id>")
@require_auth
@require_permission("canManageSettings")
def delete_tax_category(tax_category_id: int):
    tax_categories.delete(tax_category_id)
    return jsonify({"message": "Tax category deleted"})
