# Overview: Service-layer operations for categories, discounts, tax categories, allergens and modifiers.

from __future__ import annotations

from decimal import Decimal

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import (
    Allergen,
    Category,
    Discount,
    KitchenQueue,
    Modifier,
    ModifierOption,
    ProductModifier,
    StoreSettings,
    TaxCategory,
)
from ..validation import ModelValidationPolicy, apply_patch, require_positive, validate_payload
from .crud_service import CrudResource

DISCOUNT_TYPES = ("percent", "amount")
ALLERGEN_SEVERITIES = ("mild", "moderate", "severe")
HUNDRED = Decimal("100")


def _discount_rules(patch: dict, instance) -> None:
    discount_type = patch.get("type", instance.type if instance is not None else None)
    if discount_type not in DISCOUNT_TYPES:
        raise ValidationError("type must be 'percent' or 'amount'", details={"type": "invalid"})

    value = patch.get("value", instance.value if instance is not None else None)
    if value is None or value <= 0:
        raise ValidationError("value must be > 0", details={"value": "> 0"})
    if discount_type == "percent" and value > HUNDRED:
        raise ValidationError("A percent discount cannot exceed 100", details={"value": "<= 100"})


def _tax_rules(patch: dict, instance) -> None:
    rate = patch.get("rate")
    if rate is not None and not (0 <= rate <= HUNDRED):
        raise ValidationError("rate must be between 0 and 100", details={"rate": "0-100"})


def _single_default_tax(instance: TaxCategory) -> None:
    """Setting a tax category as default clears the previous default."""
    if not instance.is_default:
        return
    db.session.flush()
    (
        db.session.query(TaxCategory)
        .filter(TaxCategory.id != instance.id, TaxCategory.is_default.is_(True))
        .update({"is_default": False}, synchronize_session=False)
    )


def _allergen_rules(patch: dict, instance) -> None:
    if "severity" in patch and patch["severity"] not in ALLERGEN_SEVERITIES:
        raise ValidationError(
            "severity must be mild, moderate or severe",
            details={"severity": "invalid"},
        )


categories = CrudResource(
    model=Category,
    policy=ModelValidationPolicy(
        writable_fields=frozenset({"name", "color", "kitchen_queue_id"}),
        required_on_create=frozenset({"name"}),
    ),
    label="Category",
    unique_fields=("name",),
    references={"kitchen_queue_id": KitchenQueue},
    order_by="name",
)

discounts = CrudResource(
    model=Discount,
    policy=ModelValidationPolicy(
        writable_fields=frozenset({"name", "value", "type", "store_id", "restricted_access"}),
        required_on_create=frozenset({"name", "value", "type"}),
    ),
    label="Discount",
    references={"store_id": StoreSettings},
    rules=_discount_rules,
    order_by="name",
    filterable=("store_id",),
)

tax_categories = CrudResource(
    model=TaxCategory,
    policy=ModelValidationPolicy(
        writable_fields=frozenset({"name", "rate", "is_default"}),
        required_on_create=frozenset({"name", "rate"}),
    ),
    label="Tax category",
    unique_fields=("name",),
    rules=_tax_rules,
    before_save=_single_default_tax,
    order_by="name",
)

allergens = CrudResource(
    model=Allergen,
    policy=ModelValidationPolicy(
        writable_fields=frozenset({"name", "description", "severity"}),
        required_on_create=frozenset({"name"}),
    ),
    label="Allergen",
    unique_fields=("name",),
    rules=_allergen_rules,
    order_by="name",
)

modifiers = CrudResource(
    model=Modifier,
    policy=ModelValidationPolicy(
        writable_fields=frozenset({"name", "store_id"}),
        required_on_create=frozenset({"name"}),
    ),
    label="Modifier",
    references={"store_id": StoreSettings},
    order_by="name",
    filterable=("store_id",),
)

OPTION_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "price"}),
    required_on_create=frozenset({"name"}),
)


def _build_options(raw_options) -> list[ModifierOption]:
    if raw_options is None:
        return []
    if not isinstance(raw_options, list):
        raise ValidationError("options must be a list", details={"options": "list"})
    built = []
    for raw in raw_options:
        patch = validate_payload(model=ModifierOption, payload=raw, policy=OPTION_POLICY, partial=False)
        require_positive(patch, "price", allow_zero=True)
        option = ModifierOption()
        apply_patch(option, patch)
        built.append(option)
    return built


def create_modifier(payload: dict) -> Modifier:
    """Create a modifier and its options in one transaction."""
    payload = dict(payload or {})
    options = _build_options(payload.pop("options", None))
    patch = validate_payload(model=Modifier, payload=payload, policy=modifiers.policy, partial=False)
    modifiers.check_references(patch)

    modifier = Modifier()
    apply_patch(modifier, patch)
    modifier.options = options
    db.session.add(modifier)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return modifier


def update_modifier(modifier_id: int, payload: dict) -> Modifier:
    """Patch a modifier; an `options` list, when given, replaces all options."""
    payload = dict(payload or {})
    replace_options = "options" in payload
    options = _build_options(payload.pop("options", None))

    modifier = modifiers.get(modifier_id)
    patch = validate_payload(model=Modifier, payload=payload, policy=modifiers.policy, partial=True)
    modifiers.check_references(patch)
    apply_patch(modifier, patch)
    if replace_options:
        modifier.options = options
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return modifier


def _get_option(modifier_id: int, option_id: int) -> ModifierOption:
    option = db.session.query(ModifierOption).filter_by(id=option_id, modifier_id=modifier_id).first()
    if option is None:
        raise NotFoundError("Modifier option not found")
    return option


def add_option(modifier_id: int, payload: dict) -> ModifierOption:
    modifier = modifiers.get(modifier_id)
    (option,) = _build_options([payload])
    modifier.options.append(option)
    db.session.commit()
    return option


def update_option(modifier_id: int, option_id: int, payload: dict) -> ModifierOption:
    option = _get_option(modifier_id, option_id)
    patch = validate_payload(model=ModifierOption, payload=payload, policy=OPTION_POLICY, partial=True)
    require_positive(patch, "price", allow_zero=True)
    apply_patch(option, patch)
    db.session.commit()
    return option


def delete_option(modifier_id: int, option_id: int) -> None:
    option = _get_option(modifier_id, option_id)
    db.session.delete(option)
    db.session.commit()


def delete_modifier(modifier_id: int) -> None:
    """Delete a modifier, its options and its product links together."""
    modifier = modifiers.get(modifier_id)
    try:
        db.session.query(ProductModifier).filter_by(modifier_id=modifier.id).delete(synchronize_session=False)
        db.session.delete(modifier)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
