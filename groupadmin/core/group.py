"""
Core group data models.
"""

from datetime import datetime
from enum import IntEnum

from pydantic import BaseModel

from groupadmin.core.uuid import UUID

from .user import UserData


class MembersVisibility(IntEnum):
    """
    Who may see the member list of a group.
    """

    PUBLIC = 0
    LOGGED_ON_USERS = 1
    MEMBERS = 2
    STAFF = 3
    OWNERS = 4


class GroupMemberData(BaseModel):
    user: UserData
    owner: bool


class GroupData(BaseModel):
    group_id: UUID
    group_name: str
    created_at: datetime
    automatic: bool
    primary_group: bool
    title: str | None
    grant_trust_level: int | None
    members_visibility_level: MembersVisibility
    allow_membership_requests: bool
    membership_request_template: str | None
    automatic_membership_email_domains: str | None
    custom_fields: dict[str, str]
    members: list[GroupMemberData]
