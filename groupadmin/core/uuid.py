"""
Identifiers for groups, users, notifications, and bulk jobs. uuid7 is not part
of the python standard library as of 3.12, so it comes from uuid_extensions.
"""

from uuid import UUID

from uuid_extensions import uuid7

__all__ = ["UUID", "uuid7"]
