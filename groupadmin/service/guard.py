"""
Automatic groups are managed by the system: their membership, ownership,
custom fields, and existence cannot be changed by administrators.
"""

import functools

from groupadmin.database.group import Group

AUTOMATIC_GROUP_MESSAGE = "You cannot modify an automatic group"


class GroupImmutable(Exception):
    pass


def check_mutable(group: Group) -> Group:
    """
    Raises
    ------
    GroupImmutable
        If `group` is an automatic group.
    """
    if group.automatic:
        raise GroupImmutable(AUTOMATIC_GROUP_MESSAGE)

    return group


def guarded(read_group):
    """
    Wrap a group reader (e.g. `groups.read_by_id`) so that the group it
    returns has already passed `check_mutable`. Mutating operations load
    their group through the wrapped reader, so none of them can skip the check.
    """

    @functools.wraps(read_group)
    async def wrapper(*args, log, **kwargs) -> Group:
        group = await read_group(*args, log=log, **kwargs)

        try:
            return check_mutable(group)
        except GroupImmutable:
            await log.ainfo("group.immutable", group_id=group.group_id)
            raise

    return wrapper
