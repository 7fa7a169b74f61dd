"""
Ormur naming helpers — key casing between storage and access conventions.

Storage (the store, the wire) uses underscore_separated keys; the external
access view produced by the serializer uses camelCase keys. Both directions
go through ``inflection`` so that ``isCool`` and ``is_cool`` name the same
column.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Mapping

import inflection

__all__ = [
    "to_storage_key",
    "to_access_key",
    "snake_cased",
    "camel_cased",
    "is_uuid",
    "tableize",
]

# RFC 4122: versions 1-5, variant bits 10xx
_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def to_storage_key(key: str) -> str:
    """``isCool`` -> ``is_cool``."""
    return inflection.underscore(key)


def to_access_key(key: str) -> str:
    """``is_cool`` -> ``isCool``."""
    return inflection.camelize(key, False)


def snake_cased(obj: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``obj`` with every key in storage convention."""
    return {to_storage_key(key): value for key, value in obj.items()}


def camel_cased(obj: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``obj`` with every key in access convention."""
    return {to_access_key(key): value for key, value in obj.items()}


def is_uuid(value: Any) -> bool:
    """
    Check whether a value is a UUID string, as per RFC 4122.

    Args:
        value: The value to check.

    Returns:
        True if ``value`` is a string in canonical UUID form; otherwise False.
    """
    if not isinstance(value, str):
        return False
    return _UUID_RE.match(value) is not None


def tableize(class_name: str) -> str:
    """``UserProfile`` -> ``user_profiles``."""
    return inflection.tableize(class_name)
