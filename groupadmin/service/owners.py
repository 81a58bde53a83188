"""
Service layer for group ownership. Owners are members whose membership
carries the owner flag.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupadmin.config.settings import Settings
from groupadmin.core.uuid import UUID

from . import groups as groups_service
from . import identity as identity_service
from .notifications import Notifier, notify_owners_added


async def add_owners(
    group_id: UUID,
    tokens: list[str],
    notifier: Notifier,
    settings: Settings,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    notify: bool = False,
) -> set[str]:
    """
    Make the users named by `tokens` owners of a group, adding them as members
    where needed. Existing owners are left as they are.

    Parameters
    ----------
    group_id: UUID
        The ID of the group.
    tokens: list[str]
        User names or emails. Tokens matching no user are skipped.
    notifier: Notifier
        Where owner notifications are sent.
    notify: bool
        Whether to send each resolved user a notification.

    Returns
    -------
    set[str]
        The user names of the resolved users.

    Raises
    ------
    GroupNotFound
        If the group does not exist.
    GroupImmutable
        If the group is automatic.
    """
    log = log.bind(group_id=group_id, number_of_tokens=len(tokens), notify=notify)
    group = await groups_service.read_mutable_by_id(
        group_id=group_id, conn=conn, log=log
    )

    resolution = await identity_service.resolve(tokens=tokens, conn=conn, log=log)

    for user in resolution.found:
        group.add_membership(user, owner=True)

    await conn.flush()

    if resolution.not_found:
        await log.ainfo(
            "group.owners.users_not_found", users_not_found=resolution.not_found
        )

    if notify:
        await notify_owners_added(
            group=group,
            owners=resolution.found,
            notifier=notifier,
            settings=settings,
            conn=conn,
            log=log,
        )

    await log.ainfo("group.owners_added", number_of_owners=len(resolution.found))

    return resolution.user_names


async def remove_owner(
    group_id: UUID,
    user_id: UUID,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> None:
    """
    Clear the owner flag of a user in a group. The user stays a member. Doing
    this for a user that is not an owner does nothing.

    Raises
    ------
    GroupNotFound
        If the group does not exist.
    GroupImmutable
        If the group is automatic.
    """
    log = log.bind(group_id=group_id, user_id=user_id)
    group = await groups_service.read_mutable_by_id(
        group_id=group_id, conn=conn, log=log
    )

    group_user = group.membership_for(user_id)

    if group_user is None or not group_user.owner:
        await log.ainfo("group.user_not_owner")
        return

    group_user.owner = False
    await conn.flush()
    await log.ainfo("group.owner_removed")
