"""
Service layer for groups.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupadmin.core.fields import filter_custom_fields
from groupadmin.core.group import MembersVisibility
from groupadmin.core.uuid import UUID
from groupadmin.database.group import Group

from . import identity as identity_service
from .guard import guarded


class GroupNotFound(Exception):
    pass


class GroupExistsError(Exception):
    pass


def normalize_group_name(group_name: str) -> str:
    return group_name.strip().lower().replace(" ", "_")


async def create(
    group_name: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    usernames: list[str] = [],
    owner_usernames: list[str] = [],
    members_visibility_level: MembersVisibility = MembersVisibility.PUBLIC,
    allow_membership_requests: bool = False,
    membership_request_template: str | None = None,
    primary_group: bool = False,
    title: str | None = None,
    grant_trust_level: int | None = None,
    automatic_membership_email_domains: str | None = None,
    custom_fields: dict[str, Any] | None = None,
    allowed_custom_fields: frozenset[str] = frozenset(),
    automatic: bool = False,
) -> Group:
    """
    Create a new group.

    Parameters
    ----------
    group_name: str
        The new group.
    usernames: list[str]
        User names or emails of the initial members. Tokens that match no
        user are skipped.
    owner_usernames: list[str]
        User names or emails of the initial owners; they are made members too.
    custom_fields: dict[str, Any] | None
        Requested custom fields. Only those named in `allowed_custom_fields`
        are stored.
    allowed_custom_fields: frozenset[str]
        The currently editable custom field names.
    automatic: bool
        Whether this is a system-managed group. Only set while provisioning.

    Raises
    ------
    GroupExistsError
        If a group with this name already exists.
    """

    group_name = normalize_group_name(group_name)

    log = log.bind(
        group_name=group_name,
        number_of_members=len(usernames),
        number_of_owners=len(owner_usernames),
        automatic=automatic,
    )

    existing = await conn.execute(
        select(func.count()).select_from(Group).where(Group.group_name == group_name)
    )

    if existing.scalar_one() > 0:
        await log.ainfo("group.exists")
        raise GroupExistsError(f"Group {group_name} already exists")

    members = await identity_service.resolve(tokens=usernames, conn=conn, log=log)
    owners = await identity_service.resolve(tokens=owner_usernames, conn=conn, log=log)

    unresolved = members.not_found + owners.not_found

    if unresolved:
        await log.ainfo("group.create.users_not_found", users_not_found=unresolved)

    group = Group(
        group_name=group_name,
        created_at=datetime.now(tz=timezone.utc),
        automatic=automatic,
        primary_group=primary_group,
        title=title,
        grant_trust_level=grant_trust_level,
        members_visibility_level=int(members_visibility_level),
        allow_membership_requests=allow_membership_requests,
        membership_request_template=membership_request_template,
        automatic_membership_email_domains=automatic_membership_email_domains,
        group_users=[],
        custom_fields=[],
    )

    for user in members.found:
        group.add_membership(user)

    for user in owners.found:
        group.add_membership(user, owner=True)

    group.set_custom_fields(
        filter_custom_fields(requested=custom_fields, allowed=allowed_custom_fields)
    )

    try:
        conn.add(group)
        await conn.flush()
    except IntegrityError as e:
        log = log.bind(error=e)
        await log.ainfo("group.exists")
        raise GroupExistsError(f"Group {group_name} already exists")

    await log.ainfo("group.created", group_id=group.group_id)

    return group


async def get_group_list(
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> list[Group]:
    """
    Get a list of all groups.
    """
    result = await conn.execute(select(Group).order_by(Group.group_name))

    groups = result.unique().scalars().all()
    await log.adebug("group.listed", number_of_groups=len(groups))
    return groups


async def read_by_id(
    group_id: UUID,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Group:
    """
    Read a group by its ID.

    Parameters
    ----------
    group_id: UUID
        The ID of the group to read.
    conn: AsyncSession
        The database session.
    log: FilteringBoundLogger
        Logger instance.

    Raises
    ------
    GroupNotFound
        If the group does not exist.
    """
    log = log.bind(group_id=group_id)
    result = await conn.execute(select(Group).where(Group.group_id == group_id))
    group = result.unique().scalar_one_or_none()
    if not group:
        await log.ainfo("group.not_found")
        raise GroupNotFound(f"Group with id {group_id} not found")
    await log.adebug("group.found")
    return group


async def read_by_name(
    group_name: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Group:
    """
    Read a group by its name.

    Raises
    ------
    GroupNotFound
        If the group does not exist.
    """
    group_name = normalize_group_name(group_name)
    log = log.bind(group_name=group_name)
    result = await conn.execute(select(Group).where(Group.group_name == group_name))
    group = result.unique().scalar_one_or_none()
    if not group:
        await log.ainfo("group.not_found")
        raise GroupNotFound(f"Group with name {group_name} not found")
    await log.adebug("group.found")
    return group


# Every mutation of an existing group loads it through this reader.
read_mutable_by_id = guarded(read_by_id)


async def update_custom_fields(
    group_id: UUID,
    custom_fields: dict[str, Any],
    allowed_custom_fields: frozenset[str],
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Group:
    """
    Write custom fields on a group. Fields that are not currently editable
    are dropped without error.

    Raises
    ------
    GroupNotFound
        If the group does not exist.
    GroupImmutable
        If the group is automatic.
    """
    log = log.bind(group_id=group_id)
    group = await read_mutable_by_id(group_id=group_id, conn=conn, log=log)

    fields = filter_custom_fields(requested=custom_fields, allowed=allowed_custom_fields)
    group.set_custom_fields(fields)
    await conn.flush()

    await log.ainfo("group.custom_fields_updated", number_of_fields=len(fields))

    return group


async def delete_group(
    group_id: UUID,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> None:
    """
    Delete a group by its ID, along with its memberships and custom fields.
    Users whose primary group it was are left without one.

    Parameters
    ----------
    group_id: UUID
        The ID of the group to delete.
    conn: AsyncSession
        The database session.
    log: FilteringBoundLogger
        Logger instance.

    Raises
    ------
    GroupNotFound
        If the group does not exist.
    GroupImmutable
        If the group is automatic.
    """
    log = log.bind(group_id=group_id)
    group = await read_mutable_by_id(group_id=group_id, conn=conn, log=log)
    await conn.delete(group)
    await conn.flush()
    await log.ainfo("group.deleted")
