# Overview: Service-layer operations for permission evaluation; pure checks over a role store.

"""
Role-based permission evaluation.

DESIGN PRINCIPLES:
- System roles (admin, manager, cashier) resolve from fixed definitions
  with no store lookup, so stored rows can never widen or narrow them.
- Any other role name is looked up by name in the injected RoleStore.
- Fail closed: unknown role, unreadable record or a store error all yield
  an empty permission set. Errors are logged, never raised to the caller.
- Read-only: evaluation never writes, so callers may run several checks
  and discard the ones they do not need.
- No caching: every check re-reads the store.
"""

from __future__ import annotations

import logging

from flask import has_app_context, current_app

from ..permissions import (
    PERMISSION_KEYS,
    SYSTEM_ROLE_PERMISSIONS,
    empty_permission_set,
    is_system_role,
    normalize_permission_record,
)
from .role_store import RoleStore, get_role_store

_fallback_logger = logging.getLogger(__name__)


class PermissionLookupError(Exception):
    """A role lookup failed (store unreachable or malformed data)."""


def _logger():
    return current_app.logger if has_app_context() else _fallback_logger


def _lookup(role_name: str, store: RoleStore) -> dict | None:
    """Stored permission record for a custom role; raises PermissionLookupError."""
    try:
        record = store.get_by_name(role_name)
    except Exception as exc:
        raise PermissionLookupError(f"Role lookup failed for {role_name!r}") from exc
    if record is None:
        return None
    if not isinstance(record.permissions, dict):
        raise PermissionLookupError(f"Malformed permissions for role {role_name!r}")
    return record.permissions


def load_permissions(role_name, store: RoleStore | None = None) -> dict:
    """
    Strict resolution: like resolve_permissions, but a failed lookup raises
    PermissionLookupError instead of collapsing to no permissions.
    """
    if is_system_role(role_name):
        return dict(SYSTEM_ROLE_PERMISSIONS[role_name])
    if not isinstance(role_name, str) or not role_name.strip():
        return empty_permission_set()

    if store is None:
        store = get_role_store()
    record = _lookup(role_name, store)
    if record is None:
        return empty_permission_set()
    return normalize_permission_record(record)


def resolve_permissions(role_name, store: RoleStore | None = None) -> dict:
    """
    Full closed permission record for a role name.

    Never raises: a lookup failure is logged and treated as no permissions.
    """
    try:
        return load_permissions(role_name, store)
    except PermissionLookupError:
        _logger().exception("Permission lookup failed; denying all for role %r", role_name)
        return empty_permission_set()


def evaluate(role_name, permission: str, store: RoleStore | None = None) -> bool:
    """
    Pure predicate: does `role_name` hold `permission`?

    Unknown permission codes are never granted.
    """
    if permission not in PERMISSION_KEYS:
        return False
    return resolve_permissions(role_name, store).get(permission) is True


def first_granted(role_name, permissions, store: RoleStore | None = None) -> str | None:
    """
    Check candidate permissions in order and return the first one held.

    Stops at the first grant. A lookup error on one candidate is logged and
    the next candidate is still tried.
    """
    for permission in permissions:
        if permission not in PERMISSION_KEYS:
            continue
        try:
            granted = load_permissions(role_name, store).get(permission) is True
        except PermissionLookupError:
            _logger().exception(
                "Permission check for %s failed for role %r; trying remaining candidates",
                permission,
                role_name,
            )
            continue
        if granted:
            return permission
    return None


def role_exists(role_name, store: RoleStore | None = None) -> bool:
    """True for system roles and for names present in the store."""
    if is_system_role(role_name):
        return True
    if not isinstance(role_name, str) or not role_name.strip():
        return False
    if store is None:
        store = get_role_store()
    return store.get_by_name(role_name) is not None
