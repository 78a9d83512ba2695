# Overview: Service-layer operations for products; encapsulates business logic and database work.

"""
Products with their variants, per-store links and modifier links.

TRANSACTIONS: create_product and delete_product touch several tables. Each
runs as one unit: every insert/delete is flushed inside a single session
transaction and committed once at the end; any error rolls back all of it.
"""

from __future__ import annotations

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import (
    Category,
    Modifier,
    OrderItem,
    Product,
    ProductModifier,
    ProductStore,
    ProductVariant,
    StoreSettings,
    TaxCategory,
)
from ..validation import ModelValidationPolicy, apply_patch, require_positive, validate_payload

SOLD_BY = ("each", "weight")

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "name", "description", "category_id", "tax_category_id", "price", "cost",
        "sku", "barcode", "sold_by", "track_stock", "stock", "is_taxable",
        "image_url", "color", "is_active",
    }),
    required_on_create=frozenset({"name", "price"}),
)

VARIANT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "price", "cost", "sku", "stock"}),
    required_on_create=frozenset({"name"}),
)

STORE_LINK_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"store_id", "is_available", "price", "stock"}),
    required_on_create=frozenset({"store_id"}),
)


def _enforce_product_rules(patch: dict) -> None:
    require_positive(patch, "price", allow_zero=True)
    require_positive(patch, "cost", allow_zero=True)
    if "sold_by" in patch and patch["sold_by"] not in SOLD_BY:
        raise ValidationError("soldBy must be 'each' or 'weight'", details={"soldBy": "invalid"})
    for column, target, label in (
        ("category_id", Category, "categoryId"),
        ("tax_category_id", TaxCategory, "taxCategoryId"),
    ):
        if patch.get(column) is not None and db.session.get(target, patch[column]) is None:
            raise ValidationError(f"{label} does not reference an existing record", details={label: "not found"})


def _check_sku(sku, product_id=None) -> None:
    if not sku:
        return
    query = db.session.query(Product).filter(Product.sku == sku)
    if product_id is not None:
        query = query.filter(Product.id != product_id)
    if query.first() is not None:
        raise ConflictError("SKU already exists")


def _require_list(value, field: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{field} must be a list", details={field: "list"})
    return value


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def product_with_relations(product: Product) -> dict:
    data = product.to_dict()
    data["variants"] = [
        v.to_dict()
        for v in db.session.query(ProductVariant).filter_by(product_id=product.id).order_by(ProductVariant.id)
    ]
    data["stores"] = [
        s.to_dict()
        for s in db.session.query(ProductStore).filter_by(product_id=product.id).order_by(ProductStore.id)
    ]
    data["modifiers"] = [
        m.to_dict()
        for m in db.session.query(ProductModifier).filter_by(product_id=product.id).order_by(ProductModifier.id)
    ]
    return data


def list_products(*, category_id: int | None = None, store_id: int | None = None, include_inactive=False) -> list[dict]:
    query = db.session.query(Product)
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if store_id is not None:
        query = query.join(ProductStore, ProductStore.product_id == Product.id).filter(
            ProductStore.store_id == store_id,
            ProductStore.is_available.is_(True),
        )
    return [product_with_relations(p) for p in query.order_by(Product.name, Product.id).all()]


def _build_variant(product_id: int, raw) -> ProductVariant:
    patch = validate_payload(model=ProductVariant, payload=raw, policy=VARIANT_POLICY, partial=False)
    require_positive(patch, "price", allow_zero=True)
    require_positive(patch, "cost", allow_zero=True)
    variant = ProductVariant(product_id=product_id)
    apply_patch(variant, patch)
    return variant


def _build_store_link(product_id: int, raw) -> ProductStore:
    patch = validate_payload(model=ProductStore, payload=raw, policy=STORE_LINK_POLICY, partial=False)
    require_positive(patch, "price", allow_zero=True)
    if db.session.get(StoreSettings, patch["store_id"]) is None:
        raise ValidationError("storeId does not reference an existing store", details={"storeId": "not found"})
    link = ProductStore(product_id=product_id)
    apply_patch(link, patch)
    return link


def _modifier_id(raw) -> int:
    value = raw.get("modifierId") if isinstance(raw, dict) else raw
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("modifierId must be an integer", details={"modifierId": "integer"})
    if db.session.get(Modifier, value) is None:
        raise ValidationError("modifierId does not reference an existing modifier", details={"modifierId": "not found"})
    return value


def create_product(payload: dict) -> Product:
    """
    Create a product with its variants, store links and modifier links.

    Payload: {product: {...}, variants: [...], stores: [...], modifiers: [...]}
    All rows are written or none are.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    patch = validate_payload(model=Product, payload=payload.get("product"), policy=PRODUCT_POLICY, partial=False)
    variants = _require_list(payload.get("variants"), "variants")
    stores = _require_list(payload.get("stores"), "stores")
    modifiers = _require_list(payload.get("modifiers"), "modifiers")

    try:
        _enforce_product_rules(patch)
        _check_sku(patch.get("sku"))

        product = Product()
        apply_patch(product, patch)
        db.session.add(product)
        db.session.flush()  # product.id for the child rows

        for raw in variants:
            db.session.add(_build_variant(product.id, raw))

        seen_stores = set()
        for raw in stores:
            link = _build_store_link(product.id, raw)
            if link.store_id in seen_stores:
                raise ValidationError("Duplicate storeId in stores", details={"stores": "duplicate"})
            seen_stores.add(link.store_id)
            db.session.add(link)

        seen_modifiers = set()
        for raw in modifiers:
            modifier_id = _modifier_id(raw)
            if modifier_id in seen_modifiers:
                continue
            seen_modifiers.add(modifier_id)
            db.session.add(ProductModifier(product_id=product.id, modifier_id=modifier_id))

        db.session.flush()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return product


def update_product(product_id: int, payload: dict) -> Product:
    product = get_product(product_id)
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    _enforce_product_rules(patch)
    if "sku" in patch:
        _check_sku(patch["sku"], product.id)
    apply_patch(product, patch)
    db.session.commit()
    return product


def delete_product(product_id: int) -> None:
    """
    Delete a product with its variants, store links and modifier links.

    Products with sales history are kept (409) so receipts and reports
    stay intact; deactivate them instead.
    """
    product = get_product(product_id)
    if db.session.query(OrderItem.id).filter_by(product_id=product.id).first() is not None:
        raise ConflictError("Product has sales history; set isActive to false instead")

    try:
        db.session.query(ProductVariant).filter_by(product_id=product.id).delete(synchronize_session=False)
        db.session.query(ProductStore).filter_by(product_id=product.id).delete(synchronize_session=False)
        db.session.query(ProductModifier).filter_by(product_id=product.id).delete(synchronize_session=False)
        db.session.delete(product)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def add_variant(product_id: int, payload: dict) -> ProductVariant:
    product = get_product(product_id)
    variant = _build_variant(product.id, payload)
    db.session.add(variant)
    db.session.commit()
    return variant


def delete_variant(product_id: int, variant_id: int) -> None:
    variant = db.session.query(ProductVariant).filter_by(id=variant_id, product_id=product_id).first()
    if variant is None:
        raise NotFoundError("Variant not found")
    db.session.delete(variant)
    db.session.commit()


def upsert_store_link(product_id: int, payload: dict) -> tuple[ProductStore, bool]:
    """Create or update the product's link to a store. Returns (link, created)."""
    product = get_product(product_id)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    store_id = payload.get("storeId")
    existing = None
    if isinstance(store_id, int) and not isinstance(store_id, bool):
        existing = db.session.query(ProductStore).filter_by(product_id=product.id, store_id=store_id).first()

    if existing is None:
        link = _build_store_link(product.id, payload)
        db.session.add(link)
        db.session.commit()
        return link, True

    patch = validate_payload(model=ProductStore, payload=payload, policy=STORE_LINK_POLICY, partial=True)
    require_positive(patch, "price", allow_zero=True)
    patch.pop("store_id", None)
    apply_patch(existing, patch)
    db.session.commit()
    return existing, False


def add_modifier_link(product_id: int, payload) -> ProductModifier:
    product = get_product(product_id)
    modifier_id = _modifier_id(payload)
    exists = db.session.query(ProductModifier).filter_by(product_id=product.id, modifier_id=modifier_id).first()
    if exists is not None:
        raise ConflictError("Modifier is already linked to this product")
    link = ProductModifier(product_id=product.id, modifier_id=modifier_id)
    db.session.add(link)
    db.session.commit()
    return link


def remove_modifier_link(product_id: int, modifier_id: int) -> None:
    link = db.session.query(ProductModifier).filter_by(product_id=product_id, modifier_id=modifier_id).first()
    if link is None:
        raise NotFoundError("Modifier link not found")
    db.session.delete(link)
    db.session.commit()
