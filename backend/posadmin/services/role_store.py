# Overview: Storage interface for custom roles plus SQL and in-memory backends.

"""
Role storage behind a small interface.

The permission evaluator only needs "find the stored role with this name".
Production reads the `roles` table (SqlRoleStore); tests and tooling can
hand the evaluator an InMemoryRoleStore instead. The active store lives in
app.extensions["role_store"], set by create_app, never in a module global.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from flask import current_app

from ..extensions import db
from ..models import Role

EXTENSION_KEY = "role_store"


@dataclass(frozen=True)
class RoleRecord:
    name: str
    permissions: dict = field(default_factory=dict)
    is_system: bool = False
    description: str | None = None


class RoleStore(Protocol):
    def get_by_name(self, name: str) -> RoleRecord | None:
        """Return the stored role, or None when absent. May raise on I/O errors."""


class SqlRoleStore:
    """Reads custom roles from the relational `roles` table on every call."""

    def get_by_name(self, name: str) -> RoleRecord | None:
        role = db.session.query(Role).filter_by(name=name).first()
        if role is None:
            return None
        return RoleRecord(
            name=role.name,
            permissions=role.permissions,
            is_system=bool(role.is_system),
            description=role.description,
        )


class InMemoryRoleStore:
    """Dict-backed store for tests and offline tooling."""

    def __init__(self, roles=None):
        self._roles: dict[str, RoleRecord] = {}
        for record in roles or ():
            self.put(record)

    def put(self, record: RoleRecord) -> None:
        self._roles[record.name] = record

    def remove(self, name: str) -> None:
        self._roles.pop(name, None)

    def get_by_name(self, name: str) -> RoleRecord | None:
        return self._roles.get(name)


def get_role_store() -> RoleStore:
    """The store configured on the current app (SQL unless replaced)."""
    store = current_app.extensions.get(EXTENSION_KEY)
    if store is None:
        store = SqlRoleStore()
        current_app.extensions[EXTENSION_KEY] = store
    return store
