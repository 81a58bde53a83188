"""
Bulk assignment of users to a group.

Users are resolved in one transaction, then each resolved user is updated in
a transaction of their own: a failure for one user neither blocks nor rolls
back the others, and users that were already processed stay processed.
"""

import asyncio

from sqlalchemy.orm import noload
from structlog.typing import FilteringBoundLogger

from groupadmin.config.managers import AsyncSessionManager
from groupadmin.core.models import BulkOutcome
from groupadmin.core.uuid import UUID
from groupadmin.database.group import Group, GroupUser

from . import groups as groups_service
from . import identity as identity_service
from . import user as user_service


async def assign_user(
    group_id: UUID,
    user_id: UUID,
    manager: AsyncSessionManager,
    log: FilteringBoundLogger,
) -> None:
    """
    Add one user to the group and apply the group's defaults to them: the
    group becomes their primary group, they take the group's title, and their
    trust level is raised to the group's granted trust level.

    Only the group's own columns and this user's membership row are loaded,
    never the rest of the roster.
    """
    log = log.bind(user_id=user_id)

    async with manager.session() as conn:
        async with conn.begin():
            group = await conn.get(
                Group,
                group_id,
                options=[noload(Group.group_users), noload(Group.custom_fields)],
            )

            if group is None:
                await log.ainfo("group.not_found")
                raise groups_service.GroupNotFound(
                    f"Group with id {group_id} not found"
                )

            user = await user_service.read_by_id(user_id=user_id, conn=conn)

            membership = await conn.get(
                GroupUser, (group_id, user_id), options=[noload(GroupUser.user)]
            )

            if membership is None:
                conn.add(GroupUser(group_id=group_id, user_id=user_id))

            user.primary_group_id = group.group_id
            user.title = group.title
            user.raise_trust_level(group.grant_trust_level)

            conn.add(user)

    await log.adebug("bulk.user_assigned")


async def assign(
    group_id: UUID,
    tokens: list[str],
    manager: AsyncSessionManager,
    log: FilteringBoundLogger,
    concurrency: int = 4,
) -> BulkOutcome:
    """
    Assign the users named by `tokens` to a group.

    Parameters
    ----------
    group_id: UUID
        The ID of the group.
    tokens: list[str]
        User names (any case) and/or emails.
    manager: AsyncSessionManager
        Source of database sessions; every user gets their own.
    log: FilteringBoundLogger
        Logger instance.
    concurrency: int
        Maximum number of users processed at once.

    Returns
    -------
    BulkOutcome
        How many users were added, and the tokens that matched nobody, in
        their original order and casing.

    Raises
    ------
    GroupNotFound
        If the group does not exist.
    GroupImmutable
        If the group is automatic.
    """
    log = log.bind(group_id=group_id, number_of_tokens=len(tokens))

    async with manager.session() as conn:
        async with conn.begin():
            await groups_service.read_mutable_by_id(
                group_id=group_id, conn=conn, log=log
            )
            resolution = await identity_service.resolve(
                tokens=tokens, conn=conn, log=log
            )
            user_ids = [user.user_id for user in resolution.found]
            not_found = list(resolution.not_found)

    semaphore = asyncio.Semaphore(max(concurrency, 1))

    async def bounded(user_id: UUID) -> None:
        async with semaphore:
            await assign_user(group_id=group_id, user_id=user_id, manager=manager, log=log)

    results = await asyncio.gather(
        *(bounded(user_id) for user_id in user_ids), return_exceptions=True
    )

    added_count = 0

    for user_id, result in zip(user_ids, results):
        if isinstance(result, Exception):
            await log.aerror("bulk.user_failed", user_id=user_id, error=repr(result))
        else:
            added_count += 1

    outcome = BulkOutcome.from_count(added_count=added_count, users_not_added=not_found)

    await log.ainfo(
        "bulk.assigned",
        added_count=added_count,
        number_not_added=len(not_found),
        number_failed=len(user_ids) - added_count,
    )

    return outcome
