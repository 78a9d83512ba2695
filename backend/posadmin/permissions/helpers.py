# Overview: Utility functions for permission lookups and validation.

from .definitions import PERMISSION_DEFINITIONS, PERMISSION_KEYS


def get_all_permission_codes():
    """Get list of all permission codes."""
    return list(PERMISSION_KEYS)


def get_permission_definition(code):
    """Get full definition for a permission code."""
    for perm in PERMISSION_DEFINITIONS:
        if perm[0] == code:
            return {
                "code": perm[0],
                "name": perm[1],
                "description": perm[2],
            }
    return None


def validate_permission_code(code):
    """Check if a permission code is valid."""
    return code in PERMISSION_KEYS


def empty_permission_set() -> dict:
    """Every flag False: what an unknown or unreadable role gets."""
    return {key: False for key in PERMISSION_KEYS}


def normalize_permission_record(record) -> dict:
    """
    Coerce a stored permission record to the closed flag set.

    Unknown keys are dropped, missing keys are False, and only a literal
    True grants (so "true", 1 or "yes" in corrupted data do not).
    """
    result = empty_permission_set()
    if not isinstance(record, dict):
        return result
    for key in PERMISSION_KEYS:
        result[key] = record.get(key) is True
    return result


def unknown_permission_keys(record) -> list:
    """Keys in a client-supplied record that are not permission codes."""
    if not isinstance(record, dict):
        return []
    return sorted(k for k in record if k not in PERMISSION_KEYS)
