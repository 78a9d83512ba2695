# Overview: Flask API routes for allergens; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services.catalog_service import allergens

allergens_bp = Blueprint("allergens", __name__, url_prefix="/api/allergens")


@allergens_bp.get("")
@require_auth
def list_allergens():
    return jsonify([a.to_dict() for a in allergens.list()])


@allergens_bp.get("/<int:allergen_id>")
@require_auth
def get_allergen(allergen_id: int):
    return jsonify(allergens.get(allergen_id).to_dict())


@allergens_bp.post("")
@require_auth
@require_permission("canManageProducts")
def create_allergen():
    """Request body: name (required, unique), description, severity (mild|moderate|severe)."""
    allergen = allergens.create(request.get_json(silent=True))
    return jsonify(allergen.to_dict()), 201


@allergens_bp.put("/<int:allergen_id>")
@require_auth
@require_permission("canManageProducts")
def update_allergen(allergen_id: int):
    allergen = allergens.update(allergen_id, request.get_json(silent=True))
    return jsonify(allergen.to_dict())


@allergens_bp.delete("/<int:allergen_id>")
@require_auth
@require_permission("canManageProducts")
def delete_allergen(allergen_id: int):
    allergens.delete(allergen_id)
    return jsonify({"message": "Allergen deleted"})
