"""
Meta functionality for the database.
"""

from .group import Group, GroupCustomField, GroupUser
from .notification import Notification
from .user import User

ALL_TABLES = (
    Group,
    GroupCustomField,
    GroupUser,
    Notification,
    User,
)
