# Overview: Flask API routes for products operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import ApiError
from ..extensions import db
from ..services import products_service

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    Products with variants, store links and modifier links.

    Query params: categoryId, storeId, includeInactive
    """
    include_inactive = request.args.get("includeInactive", "false").lower() == "true"
    return jsonify(products_service.list_products(
        category_id=request.args.get("categoryId", type=int),
        store_id=request.args.get("storeId", type=int),
        include_inactive=include_inactive,
    ))


@products_bp.get("/<int:product_id>")
@require_auth
def get_product(product_id: int):
    product = products_service.get_product(product_id)
    return jsonify(products_service.product_with_relations(product))


@products_bp.post("")
@require_auth
@require_permission("canManageProducts")
def create_product():
    """
    Request body: {product: {...}, variants: [...], stores: [...], modifiers: [...]}
    Everything is created in one transaction.
    """
    try:
        product = products_service.create_product(request.get_json(silent=True))
    except ApiError:
        raise
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(products_service.product_with_relations(product)), 201


@products_bp.patch("/<int:product_id>")
@products_bp.put("/<int:product_id>")
@require_auth
@require_permission("canManageProducts")
def update_product(product_id: int):
    product = products_service.update_product(product_id, request.get_json(silent=True))
    return jsonify(products_service.product_with_relations(product))


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("canManageProducts")
def delete_product(product_id: int):
    products_service.delete_product(product_id)
    return jsonify({"message": "Product deleted"})


@products_bp.post("/<int:product_id>/variants")
@require_auth
@require_permission("canManageProducts")
def add_variant(product_id: int):
    variant = products_service.add_variant(product_id, request.get_json(silent=True))
    return jsonify(variant.to_dict()), 201


@products_bp.delete("/<int:product_id>/variants/<int:variant_id>")
@require_auth
@require_permission("canManageProducts")
def delete_variant(product_id: int, variant_id: int):
    products_service.delete_variant(product_id, variant_id)
    return jsonify({"message": "Variant deleted"})


@products_bp.post("/<int:product_id>/stores")
@require_auth
@require_permission("canManageProducts")
def upsert_store_link(product_id: int):
    link, created = products_service.upsert_store_link(product_id, request.get_json(silent=True))
    return jsonify(link.to_dict()), 201 if created else 200


@products_bp.post("/<int:product_id>/modifiers")
@require_auth
@require_permission("canManageProducts")
def add_modifier_link(product_id: int):
    link = products_service.add_modifier_link(product_id, request.get_json(silent=True) or {})
    return jsonify(link.to_dict()), 201


@products_bp.delete("/<int:product_id>/modifiers/<int:modifier_id>")
@require_auth
@require_permission("canManageProducts")
def remove_modifier_link(product_id: int, modifier_id: int):
    products_service.remove_modifier_link(product_id, modifier_id)
    return jsonify({"message": "Modifier unlinked"})
