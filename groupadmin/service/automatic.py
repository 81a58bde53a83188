"""
Estimates for automatic group membership by email domain.
"""

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupadmin.core.domains import parse_domains
from groupadmin.core.uuid import UUID
from groupadmin.database.user import User

from . import groups as groups_service


async def count_matching_users(
    domain_pattern: str | None,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> int:
    """
    Count the users whose email domain is any of the pipe-delimited domains
    in `domain_pattern`. Malformed domains match nobody.
    """
    domains = parse_domains(domain_pattern)
    log = log.bind(domain_pattern=domain_pattern, domains=domains)

    if not domains:
        await log.ainfo("automatic.no_valid_domains")
        return 0

    # Valid domains contain no LIKE wildcards, so they can be used directly.
    query = (
        select(func.count())
        .select_from(User)
        .where(or_(*(func.lower(User.email).like(f"%@{d}") for d in domains)))
    )
    count = (await conn.execute(query)).scalar_one()

    await log.adebug("automatic.counted", user_count=count)

    return count


async def estimate(
    group_id: UUID,
    domain_pattern: str | None,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> int:
    """
    Estimate how many current users an automatic membership rule would add to
    a group. This only reads, so automatic groups are allowed.

    Parameters
    ----------
    group_id: UUID
        The ID of the group the rule is for.
    domain_pattern: str | None
        Pipe-delimited email domains, e.g. ``a.org|b.com``.

    Raises
    ------
    GroupNotFound
        If the group does not exist.
    """
    log = log.bind(group_id=group_id)
    await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)

    count = await count_matching_users(
        domain_pattern=domain_pattern, conn=conn, log=log
    )

    await log.ainfo("automatic.estimated", user_count=count)

    return count
