# Overview: Service-layer operations for employee accounts.

"""
Employee (user) management.

Users are never physically deleted: deactivation keeps orders and shifts
attributable and revokes the user's refresh tokens. Access tokens already
issued remain valid until they expire.
"""

from __future__ import annotations

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import StoreSettings, User
from ..permissions import CASHIER
from ..validation import ModelValidationPolicy, apply_patch, validate_payload
from . import permission_service, token_service
from .auth_service import PasswordValidationError, hash_password

USER_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"username", "display_name", "role", "email", "phone", "store_id", "is_active"}),
    required_on_create=frozenset({"username", "display_name"}),
)


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def list_users(*, include_inactive: bool = False, store_id: int | None = None) -> list[User]:
    query = db.session.query(User)
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    if store_id is not None:
        query = query.filter(User.store_id == store_id)
    return query.order_by(User.username).all()


def _split_password(payload) -> tuple[dict, str | None]:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)
    return payload, payload.pop("password", None)


def _hash(password: str) -> str:
    try:
        return hash_password(password)
    except PasswordValidationError as e:
        raise ValidationError(str(e), details={"password": str(e)})


def _check_patch(patch: dict, user: User | None = None) -> None:
    if "role" in patch and not permission_service.role_exists(patch["role"]):
        raise ValidationError(f"Unknown role: {patch['role']}", details={"role": "unknown"})

    if patch.get("store_id") is not None and db.session.get(StoreSettings, patch["store_id"]) is None:
        raise ValidationError("storeId does not reference an existing store", details={"storeId": "not found"})

    if "username" in patch:
        query = db.session.query(User).filter(User.username == patch["username"])
        if user is not None:
            query = query.filter(User.id != user.id)
        if query.first() is not None:
            raise ConflictError("Username already exists")


def create_user(payload: dict) -> User:
    """Create an employee. Role defaults to cashier; password is required."""
    payload, password = _split_password(payload)
    if not password:
        raise ValidationError("Missing required fields: password", details={"password": "required"})

    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=False)
    patch.setdefault("role", CASHIER)
    _check_patch(patch)

    user = User()
    apply_patch(user, patch)
    user.password_hash = _hash(password)
    db.session.add(user)
    db.session.commit()
    return user


def update_user(user_id: int, payload: dict, *, acting_user_id: int | None = None) -> User:
    user = get_user(user_id)
    payload, password = _split_password(payload)
    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=True)
    _check_patch(patch, user)

    if patch.get("is_active") is False and user.id == acting_user_id:
        raise ValidationError("You cannot deactivate your own account")

    apply_patch(user, patch)
    if password:
        user.password_hash = _hash(password)
    db.session.commit()

    if user.is_active is False or password:
        token_service.revoke_all_for_user(user.id, "credentials changed" if password else "user deactivated")
    return user


def deactivate_user(user_id: int, *, acting_user_id: int | None = None) -> User:
    user = get_user(user_id)
    if user.id == acting_user_id:
        raise ValidationError("You cannot deactivate your own account")
    user.is_active = False
    db.session.commit()
    token_service.revoke_all_for_user(user.id, "user deactivated")
    return user


def count_users_with_role(role_name: str) -> int:
    return db.session.query(User).filter(User.role == role_name).count()
