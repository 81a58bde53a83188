"""
Allowlist filtering for group custom fields.
"""

from collections.abc import Collection, Mapping
from typing import Any


def filter_custom_fields(
    requested: Mapping[str, Any] | None, allowed: Collection[str]
) -> dict[str, str]:
    """
    Keep only the requested custom fields whose name is in `allowed`.

    Rejected names are dropped silently, and an empty `allowed` always
    produces an empty result. Values are stored as strings.

    Parameters
    ----------
    requested: Mapping[str, Any] | None
        The custom fields the caller asked to write.
    allowed: Collection[str]
        The field names that are currently editable.
    """
    if not requested or not allowed:
        return {}

    return {
        str(name): str(value)
        for name, value in requested.items()
        if str(name) in allowed
    }
