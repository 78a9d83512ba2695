from __future__ import annotations

from ..extensions import db
from ..money import money_json
from ..time_utils import localnow, to_iso


class StoreSettings(db.Model):
    """
    A store (branch) and its receipt/currency presentation settings.

    Stores are soft-deleted (is_active=False) because orders and shifts keep
    referencing them.
    """
    __tablename__ = "store_settings"
    __table_args__ = (
        db.Index("ix_store_settings_active", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    branch = db.Column(db.String(120), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(120), nullable=True)
    state = db.Column(db.String(64), nullable=True)
    zip_code = db.Column(db.String(20), nullable=True)
    phone = db.Column(db.String(32), nullable=True)

    # Percent, e.g. 8.25
    tax_rate = db.Column(db.Numeric(5, 2), nullable=False, default=8.25)

    logo = db.Column(db.String(255), nullable=True)
    show_logo = db.Column(db.Boolean, nullable=False, default=True)
    show_cashier_name = db.Column(db.Boolean, nullable=False, default=True)
    receipt_footer = db.Column(db.Text, nullable=True)

    currency_code = db.Column(db.String(3), nullable=False, default="USD")
    currency_symbol = db.Column(db.String(8), nullable=False, default="$")
    currency_symbol_position = db.Column(db.String(8), nullable=False, default="before")
    decimal_separator = db.Column(db.String(1), nullable=False, default=".")
    thousands_separator = db.Column(db.String(1), nullable=False, default=",")
    decimal_places = db.Column(db.Integer, nullable=False, default=2)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=localnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=localnow, onupdate=localnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "branch": self.branch,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zipCode": self.zip_code,
            "phone": self.phone,
            "taxRate": money_json(self.tax_rate),
            "logo": self.logo,
            "showLogo": self.show_logo,
            "showCashierName": self.show_cashier_name,
            "receiptFooter": self.receipt_footer,
            "currencyCode": self.currency_code,
            "currencySymbol": self.currency_symbol,
            "currencySymbolPosition": self.currency_symbol_position,
            "decimalSeparator": self.decimal_separator,
            "thousandsSeparator": self.thousands_separator,
            "decimalPlaces": self.decimal_places,
            "isActive": self.is_active,
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }


class PosDevice(db.Model):
    __tablename__ = "pos_devices"
    __table_args__ = (
        db.Index("ix_pos_devices_store", "store_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    store_id = db.Column(db.Integer, db.ForeignKey("store_settings.id"), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=localnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "storeId": self.store_id,
            "isActive": self.is_active,
            "createdAt": to_iso(self.created_at),
        }


class DiningOption(db.Model):
    """Dine in / takeout / delivery style choices offered at a store."""
    __tablename__ = "dining_options"
    __table_args__ = (
        db.Index("ix_dining_options_store", "store_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    store_id = db.Column(db.Integer, db.ForeignKey("store_settings.id"), nullable=False)
    available = db.Column(db.Boolean, nullable=False, default=True)
    is_default = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=localnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "storeId": self.store_id,
            "available": self.available,
            "isDefault": self.is_default,
            "createdAt": to_iso(self.created_at),
        }


class KitchenQueue(db.Model):
    """Kitchen printer/display queue; categories are routed to it."""
    __tablename__ = "kitchen_queues"
    __table_args__ = (
        db.Index("ix_kitchen_queues_store", "store_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    store_id = db.Column(db.Integer, db.ForeignKey("store_settings.id"), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=localnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "storeId": self.store_id,
            "isActive": self.is_active,
            "createdAt": to_iso(self.created_at),
        }
