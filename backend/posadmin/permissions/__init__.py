# Overview: Permission system package.
# Re-exports all public APIs for convenient imports.

from .definitions import PERMISSION_DEFINITIONS, PERMISSION_KEYS
from .roles import (
    ADMIN,
    MANAGER,
    CASHIER,
    SYSTEM_ROLE_NAMES,
    SYSTEM_ROLE_DESCRIPTIONS,
    SYSTEM_ROLE_PERMISSIONS,
    is_system_role,
)
from .helpers import (
    get_all_permission_codes,
    get_permission_definition,
    validate_permission_code,
    empty_permission_set,
    normalize_permission_record,
    unknown_permission_keys,
)

__all__ = [
    "PERMISSION_DEFINITIONS",
    "PERMISSION_KEYS",
    "ADMIN",
    "MANAGER",
    "CASHIER",
    "SYSTEM_ROLE_NAMES",
    "SYSTEM_ROLE_DESCRIPTIONS",
    "SYSTEM_ROLE_PERMISSIONS",
    "is_system_role",
    "get_all_permission_codes",
    "get_permission_definition",
    "validate_permission_code",
    "empty_permission_set",
    "normalize_permission_record",
    "unknown_permission_keys",
]
