"""
Pydantic models for request/responses to APIs.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from groupadmin.core.group import MembersVisibility
from groupadmin.core.uuid import UUID


def split_tokens(value: str | list[str] | None) -> list[str]:
    """
    Accept either a comma-separated string or a list of identity tokens.
    """
    if value is None:
        return []

    if isinstance(value, str):
        value = [x.strip() for x in value.split(",")]

    return [x for x in value if x and x.strip()]


def added_message(added_count: int) -> str:
    if added_count == 1:
        return "1 user has been added to the group."

    return f"{added_count} users have been added to the group."


class BulkOutcome(BaseModel):
    added_count: int
    message: str
    users_not_added: list[str]

    @classmethod
    def from_count(cls, added_count: int, users_not_added: list[str]) -> "BulkOutcome":
        return cls(
            added_count=added_count,
            message=added_message(added_count),
            users_not_added=users_not_added,
        )


class BulkJobData(BaseModel):
    job_id: UUID
    group_id: UUID
    status: Literal["pending", "complete", "failed"]
    outcome: BulkOutcome | None = None
    error: str | None = None


class GroupCreationRequest(BaseModel):
    """
    Request model for creating a new group.
    """

    name: str = Field(min_length=1, max_length=60, pattern=r"^[\w .-]+$")
    usernames: list[str] = []
    owner_usernames: list[str] = []
    members_visibility_level: MembersVisibility = MembersVisibility.PUBLIC
    allow_membership_requests: bool = False
    membership_request_template: str | None = None
    primary_group: bool = False
    title: str | None = None
    grant_trust_level: int | None = Field(default=None, ge=0, le=4)
    automatic_membership_email_domains: str | None = None
    custom_fields: dict[str, Any] = {}

    @field_validator("usernames", "owner_usernames", mode="before")
    @classmethod
    def tokens(cls, value):
        return split_tokens(value)


class GroupCreationContent(BaseModel):
    group: GroupCreationRequest


class AddOwnersRequest(BaseModel):
    usernames: list[str] = []
    notify_users: bool = False

    @field_validator("usernames", mode="before")
    @classmethod
    def tokens(cls, value):
        return split_tokens(value)


class AddOwnersContent(BaseModel):
    group: AddOwnersRequest


class AddOwnersResponse(BaseModel):
    usernames: list[str]


class BulkAssignContent(BaseModel):
    group_id: UUID
    users: list[str] = []
    run_in_background: bool = False

    @field_validator("users", mode="before")
    @classmethod
    def tokens(cls, value):
        return split_tokens(value)


class AutomaticMembershipCountContent(BaseModel):
    id: UUID
    automatic_membership_email_domains: str = ""


class AutomaticMembershipCountResponse(BaseModel):
    user_count: int


class ModifyCustomFieldsContent(BaseModel):
    custom_fields: dict[str, Any] = {}


class SuccessResponse(BaseModel):
    success: str = "OK"
