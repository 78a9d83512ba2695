# Overview: Built-in role names and their immutable permission sets.

from types import MappingProxyType

from .definitions import PERMISSION_KEYS

ADMIN = "admin"
MANAGER = "manager"
CASHIER = "cashier"

SYSTEM_ROLE_NAMES = (ADMIN, MANAGER, CASHIER)

SYSTEM_ROLE_DESCRIPTIONS = {
    ADMIN: "Full access to every store function",
    MANAGER: "Runs the store; cannot change settings or manage users",
    CASHIER: "Rings up sales and looks up customers",
}


def _frozen(granted):
    return MappingProxyType({key: key in granted for key in PERMISSION_KEYS})


# Read-only mappings: the system sets cannot be altered at runtime
SYSTEM_ROLE_PERMISSIONS = MappingProxyType({
    ADMIN: _frozen(set(PERMISSION_KEYS)),
    MANAGER: _frozen(set(PERMISSION_KEYS) - {"canManageSettings", "canManageUsers"}),
    CASHIER: _frozen({"canManageOrders", "canViewCustomers"}),
})


def is_system_role(role_name) -> bool:
    return isinstance(role_name, str) and role_name in SYSTEM_ROLE_PERMISSIONS
