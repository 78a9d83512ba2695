# Overview: Service-layer operations for shifts; encapsulates business logic.

"""
Shift Service

WHY: A cashier opens a shift with an expected cash float and closes it by
counting the drawer. A user has at most one active shift; a second start
is a conflict. Closed shifts cannot be closed again.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Shift, StoreSettings, User
from ..time_utils import localnow
from ..validation import ModelValidationPolicy, apply_patch, require_positive, validate_payload
from .report_filters import ReportFilters

START_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"store_id", "user_id", "expected_cash_amount", "notes"}),
    required_on_create=frozenset({"store_id"}),
)

UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"expected_cash_amount", "actual_cash_amount", "notes"}),
)

END_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"actual_cash_amount", "notes"}),
)


class ShiftConflictError(ConflictError):
    """The user already has an active shift."""


def get_active_shift(user_id: int) -> Shift | None:
    return db.session.query(Shift).filter_by(user_id=user_id, is_active=True).first()


def get_shift(shift_id: int) -> Shift:
    shift = db.session.get(Shift, shift_id)
    if shift is None:
        raise NotFoundError("Shift not found")
    return shift


def start_shift(payload: dict, *, user_id: int) -> Shift:
    """
    Open a shift for `user_id` (payload userId, when present, has already
    been authorized by the caller and overrides it).
    """
    patch = validate_payload(model=Shift, payload=payload, policy=START_POLICY, partial=False)
    require_positive(patch, "expected_cash_amount", allow_zero=True)
    user_id = patch.pop("user_id", None) or user_id

    if db.session.get(StoreSettings, patch["store_id"]) is None:
        raise ValidationError("storeId does not reference an existing store", details={"storeId": "not found"})
    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        raise ValidationError("userId does not reference an active user", details={"userId": "not found"})

    if get_active_shift(user_id) is not None:
        raise ShiftConflictError("User already has an active shift")

    shift = Shift(user_id=user_id, opening_time=localnow(), is_active=True)
    apply_patch(shift, patch)
    db.session.add(shift)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race against another start for the same user
        db.session.rollback()
        raise ShiftConflictError("User already has an active shift")
    return shift


def end_shift(shift_id: int, payload: dict | None = None) -> Shift:
    """Close an active shift, recording the counted cash."""
    shift = get_shift(shift_id)
    if not shift.is_active:
        raise ValidationError("Shift is already closed")

    patch = validate_payload(model=Shift, payload=payload or {}, policy=END_POLICY, partial=True)
    require_positive(patch, "actual_cash_amount", allow_zero=True)

    apply_patch(shift, patch)
    shift.closing_time = localnow()
    shift.is_active = False
    db.session.commit()
    return shift


def update_shift(shift_id: int, payload: dict) -> Shift:
    shift = get_shift(shift_id)
    patch = validate_payload(model=Shift, payload=payload, policy=UPDATE_POLICY, partial=True)
    require_positive(patch, "expected_cash_amount", allow_zero=True)
    require_positive(patch, "actual_cash_amount", allow_zero=True)
    apply_patch(shift, patch)
    db.session.commit()
    return shift


def delete_shift(shift_id: int) -> None:
    shift = get_shift(shift_id)
    db.session.delete(shift)
    db.session.commit()


def list_shifts(filters: ReportFilters, *, is_active: bool | None = None) -> list[Shift]:
    query = filters.apply(
        db.session.query(Shift),
        time_column=Shift.opening_time,
        store_column=Shift.store_id,
        employee_column=Shift.user_id,
    )
    if is_active is not None:
        query = query.filter(Shift.is_active.is_(is_active))
    return query.order_by(Shift.opening_time.desc(), Shift.id.desc()).all()
