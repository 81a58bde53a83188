"""
Group ORM
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Column, DateTime
from sqlmodel import Field, Relationship, SQLModel

from groupadmin.core.group import GroupData, GroupMemberData, MembersVisibility
from groupadmin.core.uuid import UUID, uuid7

if TYPE_CHECKING:
    from .user import User


class GroupUser(SQLModel, table=True):
    """
    A record of a user's group membership. Ownership is a flag on the
    membership rather than a separate relation.
    """

    __tablename__ = "group_user"

    group_id: Optional[UUID] = Field(
        primary_key=True, foreign_key="group.group_id", ondelete="CASCADE"
    )
    user_id: Optional[UUID] = Field(
        primary_key=True, foreign_key="user.user_id", ondelete="CASCADE"
    )
    owner: bool = False
    created_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True)),
        default_factory=lambda: datetime.now(timezone.utc),
    )

    group: "Group" = Relationship(back_populates="group_users")
    user: "User" = Relationship(sa_relationship_kwargs=dict(lazy="joined"))


class GroupCustomField(SQLModel, table=True):
    __tablename__ = "group_custom_field"

    group_id: Optional[UUID] = Field(
        primary_key=True, foreign_key="group.group_id", ondelete="CASCADE"
    )
    name: str = Field(primary_key=True)
    value: str = ""

    group: "Group" = Relationship(back_populates="custom_fields")


class Group(SQLModel, table=True):
    group_id: UUID = Field(primary_key=True, default_factory=uuid7)

    group_name: str = Field(unique=True)
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True)))

    # Automatic groups are provisioned by the system and are read-only
    # to administrators.
    automatic: bool = False

    primary_group: bool = False
    title: str | None = None
    grant_trust_level: int | None = None
    members_visibility_level: int = int(MembersVisibility.PUBLIC)
    allow_membership_requests: bool = False
    membership_request_template: str | None = None
    automatic_membership_email_domains: str | None = None

    group_users: list[GroupUser] = Relationship(
        back_populates="group",
        sa_relationship_kwargs=dict(lazy="selectin", cascade="all, delete-orphan"),
    )
    custom_fields: list[GroupCustomField] = Relationship(
        back_populates="group",
        sa_relationship_kwargs=dict(lazy="selectin", cascade="all, delete-orphan"),
    )

    @property
    def members(self) -> list["User"]:
        return [x.user for x in self.group_users]

    @property
    def owners(self) -> list["User"]:
        return [x.user for x in self.group_users if x.owner]

    def membership_for(self, user_id: UUID) -> GroupUser | None:
        """
        The membership record for `user_id`, if they are a member.
        """
        for group_user in self.group_users:
            if group_user.user_id == user_id:
                return group_user

        return None

    def add_membership(self, user: "User", owner: bool = False) -> GroupUser:
        """
        Add `user` to the group, or return their existing membership. The
        owner flag is only ever raised here, never cleared.

        Note that all changes to the local copy of this data (as performed by
        this function) must be committed to the database separately.
        """
        group_user = self.membership_for(user.user_id)

        if group_user is None:
            group_user = GroupUser(user_id=user.user_id, user=user, owner=owner)
            self.group_users.append(group_user)
        elif owner:
            group_user.owner = True

        return group_user

    def custom_field_dict(self) -> dict[str, str]:
        return {x.name: x.value for x in self.custom_fields}

    def set_custom_fields(self, fields: dict[str, str]):
        """
        Upsert the given custom fields. Callers are responsible for filtering
        `fields` through the editable field allowlist first.
        """
        existing = {x.name: x for x in self.custom_fields}

        for name, value in fields.items():
            if name in existing:
                existing[name].value = value
            else:
                self.custom_fields.append(GroupCustomField(name=name, value=value))

    def to_core(self) -> GroupData:
        """
        Convert this Group ORM object to a GroupData core object.
        """
        return GroupData(
            group_id=self.group_id,
            group_name=self.group_name,
            created_at=self.created_at,
            automatic=self.automatic,
            primary_group=self.primary_group,
            title=self.title,
            grant_trust_level=self.grant_trust_level,
            members_visibility_level=MembersVisibility(self.members_visibility_level),
            allow_membership_requests=self.allow_membership_requests,
            membership_request_template=self.membership_request_template,
            automatic_membership_email_domains=self.automatic_membership_email_domains,
            custom_fields=self.custom_field_dict(),
            members=[
                GroupMemberData(user=x.user.to_core(), owner=x.owner)
                for x in self.group_users
            ],
        )
