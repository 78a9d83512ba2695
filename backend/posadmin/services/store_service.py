# Overview: Service-layer operations for stores and their devices, dining options, queues and tenders.

from __future__ import annotations

from decimal import Decimal

from ..errors import ValidationError
from ..extensions import db
from ..models import DiningOption, KitchenQueue, PaymentType, PosDevice, StoreSettings
from ..validation import ModelValidationPolicy
from .crud_service import CrudResource

SYMBOL_POSITIONS = ("before", "after")


def _store_rules(patch: dict, instance) -> None:
    rate = patch.get("tax_rate")
    if rate is not None and not (0 <= rate <= Decimal("100")):
        raise ValidationError("taxRate must be between 0 and 100", details={"taxRate": "0-100"})

    places = patch.get("decimal_places")
    if places is not None and not (0 <= places <= 4):
        raise ValidationError("decimalPlaces must be between 0 and 4", details={"decimalPlaces": "0-4"})

    position = patch.get("currency_symbol_position")
    if position is not None and position not in SYMBOL_POSITIONS:
        raise ValidationError(
            "currencySymbolPosition must be 'before' or 'after'",
            details={"currencySymbolPosition": "invalid"},
        )

    decimal_sep = patch.get("decimal_separator", instance.decimal_separator if instance is not None else ".")
    thousands_sep = patch.get("thousands_separator", instance.thousands_separator if instance is not None else ",")
    if decimal_sep and decimal_sep == thousands_sep:
        raise ValidationError(
            "decimalSeparator and thousandsSeparator must differ",
            details={"thousandsSeparator": "same as decimalSeparator"},
        )


def _single_default_dining_option(instance: DiningOption) -> None:
    """One default dining option per store."""
    if not instance.is_default:
        return
    db.session.flush()
    (
        db.session.query(DiningOption)
        .filter(
            DiningOption.store_id == instance.store_id,
            DiningOption.id != instance.id,
            DiningOption.is_default.is_(True),
        )
        .update({"is_default": False}, synchronize_session=False)
    )


stores = CrudResource(
    model=StoreSettings,
    policy=ModelValidationPolicy(
        writable_fields=frozenset({
            "name", "branch", "address", "city", "state", "zip_code", "phone",
            "tax_rate", "logo", "show_logo", "show_cashier_name", "receipt_footer",
            "currency_code", "currency_symbol", "currency_symbol_position",
            "decimal_separator", "thousands_separator", "decimal_places", "is_active",
        }),
        required_on_create=frozenset({"name"}),
    ),
    label="Store",
    rules=_store_rules,
    soft_delete_field="is_active",
    filterable=("is_active",),
)

pos_devices = CrudResource(
    model=PosDevice,
    policy=ModelValidationPolicy(
        writable_fields=frozenset({"name", "store_id", "is_active"}),
        required_on_create=frozenset({"name", "store_id"}),
    ),
    label="POS device",
    references={"store_id": StoreSettings},
    filterable=("store_id",),
)

dining_options = CrudResource(
    model=DiningOption,
    policy=ModelValidationPolicy(
        writable_fields=frozenset({"name", "store_id", "available", "is_default"}),
        required_on_create=frozenset({"name", "store_id"}),
    ),
    label="Dining option",
    references={"store_id": StoreSettings},
    before_save=_single_default_dining_option,
    filterable=("store_id",),
)

kitchen_queues = CrudResource(
    model=KitchenQueue,
    policy=ModelValidationPolicy(
        writable_fields=frozenset({"name", "store_id", "is_active"}),
        required_on_create=frozenset({"name", "store_id"}),
    ),
    label="Kitchen queue",
    references={"store_id": StoreSettings},
    filterable=("store_id",),
)

payment_types = CrudResource(
    model=PaymentType,
    policy=ModelValidationPolicy(
        writable_fields=frozenset({"name", "code", "is_active"}),
        required_on_create=frozenset({"name", "code"}),
    ),
    label="Payment type",
    unique_fields=("code",),
    order_by="name",
)
