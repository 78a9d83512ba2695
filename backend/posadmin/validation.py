from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .time_utils import parse_iso_datetime

# Numeric(10, 2) upper bound
MAX_AMOUNT = Decimal("99999999.99")

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def to_snake(key: str) -> str:
    """displayName -> display_name; already-snake keys pass through."""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def to_camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.capitalize() for part in rest)


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: column keys clients are allowed to set (security boundary)
    - required_on_create: column keys required for POST
    """
    writable_fields: frozenset
    required_on_create: frozenset = frozenset()


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(field: str, col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict: reject floats, bools and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if re.fullmatch(r"-?\d+", stripped):
                return int(stripped)
        raise ValidationError(f"{field} must be an integer", details={field: "integer"})

    # Currency / rates: exact decimals, never floats in arithmetic
    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise ValidationError(f"{field} must be a number", details={field: "number"})
        try:
            # str() first so 0.1 stays 0.1 rather than its binary expansion
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field} must be a number", details={field: "number"})
        if not amount.is_finite():
            raise ValidationError(f"{field} must be a finite number", details={field: "number"})
        if abs(amount) > MAX_AMOUNT:
            raise ValidationError(f"{field} is out of range", details={field: "range"})
        scale = coltype.scale if coltype.scale is not None else 2
        return amount.quantize(Decimal(1).scaleb(-scale))

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        raise ValidationError(f"{field} must be a boolean", details={field: "boolean"})

    # Datetimes (accept ISO-8601 strings)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                dt = None
            if dt is not None:
                return dt
        raise ValidationError(f"{field} must be an ISO-8601 datetime", details={field: "datetime"})

    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{field} must be a string", details={field: "string"})
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming camelCase JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by column name.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    cols = _columns_by_key(model)
    by_column = {}
    for raw_key, raw in payload.items():
        key = to_snake(raw_key)
        if key not in policy.writable_fields or key not in cols:
            raise ValidationError(f"Field not allowed: {raw_key}", details={raw_key: "not allowed"})
        by_column[key] = (raw_key, raw)

    if not partial:
        missing = sorted(to_camel(f) for f in policy.required_on_create if f not in by_column)
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                details={f: "required" for f in missing},
            )

    patch: dict = {}
    for key, (raw_key, raw) in by_column.items():
        col = cols[key]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{raw_key} cannot be null", details={raw_key: "required"})
            patch[key] = None
            continue

        val = _coerce_value(raw_key, col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable and val == "":
            raise ValidationError(f"{raw_key} cannot be blank", details={raw_key: "required"})

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(
                    f"{raw_key} exceeds max length {col.type.length}",
                    details={raw_key: "too long"},
                )

        patch[key] = val

    return patch


def require_positive(patch: dict, field: str, *, allow_zero: bool = False) -> None:
    value = patch.get(field)
    if value is None:
        return
    if value < 0 or (value == 0 and not allow_zero):
        bound = ">= 0" if allow_zero else "> 0"
        raise ValidationError(f"{to_camel(field)} must be {bound}", details={to_camel(field): bound})


def apply_patch(instance, patch: dict) -> None:
    for key, value in patch.items():
        setattr(instance, key, value)
