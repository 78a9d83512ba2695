from __future__ import annotations

from ..extensions import db
from ..money import money_json, optional_money_json
from ..time_utils import localnow, to_iso


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_categories_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    color = db.Column(db.String(16), nullable=True)
    # Orders for this category print/display on this queue
    kitchen_queue_id = db.Column(db.Integer, db.ForeignKey("kitchen_queues.id"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=localnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "kitchenQueueId": self.kitchen_queue_id,
            "createdAt": to_iso(self.created_at),
        }


class TaxCategory(db.Model):
    """
    Named tax rate (percent). At most one row is the default; products
    without an explicit tax category are taxed at the default.
    """
    __tablename__ = "tax_categories"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_tax_categories_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    rate = db.Column(db.Numeric(5, 2), nullable=False)
    is_default = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=localnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "rate": money_json(self.rate),
            "isDefault": self.is_default,
            "createdAt": to_iso(self.created_at),
        }


class Product(db.Model):
    """
    Sellable item. Prices are Numeric(10, 2); stock is only decremented on
    sale when track_stock is set.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_products_sku"),
        db.Index("ix_products_category", "category_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True)
    tax_category_id = db.Column(db.Integer, db.ForeignKey("tax_categories.id"), nullable=True)

    price = db.Column(db.Numeric(10, 2), nullable=False)
    cost = db.Column(db.Numeric(10, 2), nullable=True)
    sku = db.Column(db.String(64), nullable=True)
    barcode = db.Column(db.String(64), nullable=True)

    sold_by = db.Column(db.String(16), nullable=False, default="each")
    track_stock = db.Column(db.Boolean, nullable=False, default=False)
    stock = db.Column(db.Integer, nullable=False, default=0)
    is_taxable = db.Column(db.Boolean, nullable=False, default=True)

    image_url = db.Column(db.String(255), nullable=True)
    color = db.Column(db.String(16), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=localnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=localnow, onupdate=localnow)

    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    tax_category = db.relationship("TaxCategory")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "categoryId": self.category_id,
            "taxCategoryId": self.tax_category_id,
            "price": money_json(self.price),
            "cost": optional_money_json(self.cost),
            "sku": self.sku,
            "barcode": self.barcode,
            "soldBy": self.sold_by,
            "trackStock": self.track_stock,
            "stock": self.stock,
            "isTaxable": self.is_taxable,
            "imageUrl": self.image_url,
            "color": self.color,
            "isActive": self.is_active,
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }


class ProductVariant(db.Model):
    __tablename__ = "product_variants"
    __table_args__ = (
        db.Index("ix_product_variants_product", "product_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=True)
    cost = db.Column(db.Numeric(10, 2), nullable=True)
    sku = db.Column(db.String(64), nullable=True)
    stock = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "name": self.name,
            "price": optional_money_json(self.price),
            "cost": optional_money_json(self.cost),
            "sku": self.sku,
            "stock": self.stock,
        }


class ProductStore(db.Model):
    """Per-store availability and optional price override for a product."""
    __tablename__ = "product_stores"
    __table_args__ = (
        db.UniqueConstraint("product_id", "store_id", name="uq_product_stores_product_store"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    store_id = db.Column(db.Integer, db.ForeignKey("store_settings.id"), nullable=False)
    is_available = db.Column(db.Boolean, nullable=False, default=True)
    price = db.Column(db.Numeric(10, 2), nullable=True)
    stock = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "storeId": self.store_id,
            "isAvailable": self.is_available,
            "price": optional_money_json(self.price),
            "stock": self.stock,
        }


class Modifier(db.Model):
    """A group of add-on options (e.g. "Milk": whole, oat, soy)."""
    __tablename__ = "modifiers"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    store_id = db.Column(db.Integer, db.ForeignKey("store_settings.id"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=localnow)

    options = db.relationship(
        "ModifierOption",
        backref="modifier",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="ModifierOption.id",
    )

    def to_dict(self, include_options: bool = True) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "storeId": self.store_id,
            "createdAt": to_iso(self.created_at),
        }
        if include_options:
            data["options"] = [o.to_dict() for o in self.options]
        return data


class ModifierOption(db.Model):
    __tablename__ = "modifier_options"
    __table_args__ = (
        db.Index("ix_modifier_options_modifier", "modifier_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    modifier_id = db.Column(db.Integer, db.ForeignKey("modifiers.id"), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "modifierId": self.modifier_id,
            "name": self.name,
            "price": money_json(self.price),
        }


class ProductModifier(db.Model):
    __tablename__ = "product_modifiers"
    __table_args__ = (
        db.UniqueConstraint("product_id", "modifier_id", name="uq_product_modifiers_product_modifier"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    modifier_id = db.Column(db.Integer, db.ForeignKey("modifiers.id"), nullable=False)

    modifier = db.relationship("Modifier")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "modifierId": self.modifier_id,
            "modifierName": self.modifier.name if self.modifier else None,
        }


class Discount(db.Model):
    """
    A named discount: `percent` (value is 0-100) or `amount` (fixed currency).
    restricted_access discounts need a manager at the register.
    """
    __tablename__ = "discounts"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    value = db.Column(db.Numeric(10, 2), nullable=False)
    type = db.Column(db.String(16), nullable=False, default="percent")
    store_id = db.Column(db.Integer, db.ForeignKey("store_settings.id"), nullable=True)
    restricted_access = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=localnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "value": money_json(self.value),
            "type": self.type,
            "storeId": self.store_id,
            "restrictedAccess": self.restricted_access,
            "createdAt": to_iso(self.created_at),
        }


class Allergen(db.Model):
    __tablename__ = "allergens"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_allergens_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)
    # mild | moderate | severe
    severity = db.Column(db.String(16), nullable=False, default="moderate")
    created_at = db.Column(db.DateTime, nullable=False, default=localnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=localnow, onupdate=localnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "severity": self.severity,
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }
