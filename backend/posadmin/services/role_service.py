# Overview: Service-layer operations for roles; system role protection and custom role CRUD.

"""
Role management.

System roles (admin, manager, cashier) are defined in code. Their rows in
the roles table exist only so they show up in listings; they are flagged
is_system and cannot be edited or deleted (ForbiddenError). Custom role
names are unique, and may not reuse a system role name.
"""

from __future__ import annotations

from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Role
from ..permissions import (
    SYSTEM_ROLE_DESCRIPTIONS,
    SYSTEM_ROLE_NAMES,
    SYSTEM_ROLE_PERMISSIONS,
    is_system_role,
    normalize_permission_record,
    unknown_permission_keys,
)
from ..validation import ModelValidationPolicy, apply_patch, validate_payload
from .user_service import count_users_with_role

ROLE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "description"}),
    required_on_create=frozenset({"name"}),
)


def system_role_dict(name: str) -> dict:
    """A system role as served by the API, straight from the fixed definitions."""
    return {
        "id": None,
        "name": name,
        "description": SYSTEM_ROLE_DESCRIPTIONS[name],
        "isSystem": True,
        "permissions": dict(SYSTEM_ROLE_PERMISSIONS[name]),
        "createdAt": None,
        "updatedAt": None,
    }


def role_dict(role: Role) -> dict:
    data = role.to_dict()
    if role.is_system and is_system_role(role.name):
        # Never show stored flags for a system role
        data["permissions"] = dict(SYSTEM_ROLE_PERMISSIONS[role.name])
    else:
        data["permissions"] = normalize_permission_record(role.permissions)
    return data


def list_roles() -> list[dict]:
    """Stored roles, plus any system role whose row has not been seeded."""
    roles = db.session.query(Role).order_by(Role.is_system.desc(), Role.name).all()
    stored = {r.name for r in roles}
    missing = [system_role_dict(name) for name in SYSTEM_ROLE_NAMES if name not in stored]
    return missing + [role_dict(r) for r in roles]


def get_role(role_id: int) -> Role:
    role = db.session.get(Role, role_id)
    if role is None:
        raise NotFoundError("Role not found")
    return role


def get_role_by_name(name: str) -> dict:
    if is_system_role(name):
        return system_role_dict(name)
    role = db.session.query(Role).filter_by(name=name).first()
    if role is None:
        raise NotFoundError("Role not found")
    return role_dict(role)


def _permissions_from(payload: dict, *, required: bool):
    if "permissions" not in payload:
        if required:
            return normalize_permission_record({})
        return None
    record = payload["permissions"]
    if not isinstance(record, dict):
        raise ValidationError("permissions must be an object", details={"permissions": "object"})
    unknown = unknown_permission_keys(record)
    if unknown:
        raise ValidationError(
            f"Unknown permissions: {', '.join(unknown)}",
            details={"permissions": {k: "unknown" for k in unknown}},
        )
    bad = sorted(k for k, v in record.items() if not isinstance(v, bool))
    if bad:
        raise ValidationError(
            "Permission flags must be true or false",
            details={"permissions": {k: "boolean" for k in bad}},
        )
    return normalize_permission_record(record)


def _check_name(name: str, role_id: int | None = None) -> None:
    if is_system_role(name):
        raise ConflictError("Role name is reserved for a system role")
    query = db.session.query(Role).filter(Role.name == name)
    if role_id is not None:
        query = query.filter(Role.id != role_id)
    if query.first() is not None:
        raise ConflictError("Role name already exists")


def create_role(payload: dict) -> Role:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)
    permissions = _permissions_from(payload, required=True)
    payload.pop("permissions", None)

    patch = validate_payload(model=Role, payload=payload, policy=ROLE_POLICY, partial=False)
    _check_name(patch["name"])

    role = Role(is_system=False, permissions=permissions)
    apply_patch(role, patch)
    db.session.add(role)
    db.session.commit()
    return role


def update_role(role_id: int, payload: dict) -> Role:
    role = get_role(role_id)
    if role.is_system:
        raise ForbiddenError("System roles cannot be modified")
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    payload = dict(payload)
    permissions = _permissions_from(payload, required=False)
    payload.pop("permissions", None)
    patch = validate_payload(model=Role, payload=payload, policy=ROLE_POLICY, partial=True)

    if "name" in patch and patch["name"] != role.name:
        _check_name(patch["name"], role.id)
        if count_users_with_role(role.name):
            raise ConflictError("Role is assigned to users and cannot be renamed")

    apply_patch(role, patch)
    if permissions is not None:
        # Reassign so the JSON column is marked dirty
        role.permissions = permissions
    db.session.commit()
    return role


def delete_role(role_id: int) -> None:
    role = get_role(role_id)
    if role.is_system:
        raise ForbiddenError("System roles cannot be deleted")
    if count_users_with_role(role.name):
        raise ConflictError("Role is assigned to users and cannot be deleted")
    db.session.delete(role)
    db.session.commit()


def seed_system_roles() -> list[str]:
    """Create the listing rows for system roles that are missing. Idempotent."""
    created = []
    for name in SYSTEM_ROLE_NAMES:
        role = db.session.query(Role).filter_by(name=name).first()
        if role is None:
            db.session.add(Role(
                name=name,
                description=SYSTEM_ROLE_DESCRIPTIONS[name],
                is_system=True,
                permissions=dict(SYSTEM_ROLE_PERMISSIONS[name]),
            ))
            created.append(name)
        elif not role.is_system:
            role.is_system = True
    db.session.commit()
    return created
