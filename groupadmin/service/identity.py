"""
Resolution of user-supplied identity tokens (user names or emails) into users.
"""

from dataclasses import dataclass, field

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupadmin.database.user import User

# Distinct tokens per lookup query.
RESOLVE_CHUNK_SIZE = 1000


@dataclass(frozen=True)
class Resolved:
    token: str
    user: User


@dataclass(frozen=True)
class Unresolved:
    token: str


@dataclass
class IdentityResolution:
    """
    The outcome of resolving a list of tokens. `found` holds each matched user
    once, in the order they were first matched; `not_found` holds every
    unmatched token verbatim, in input order.
    """

    found: list[User] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)

    @property
    def user_names(self) -> set[str]:
        return {user.user_name for user in self.found}


def classify(
    tokens: list[str], candidates: list[User]
) -> list[Resolved | Unresolved]:
    """
    Match each token against the candidate users. User names are compared
    case-insensitively and win over emails, which are stored lower-cased.
    Surrounding whitespace is ignored for matching but kept in the token.
    """
    by_name = {user.user_name.lower(): user for user in candidates}
    by_email = {user.email: user for user in candidates if user.email}

    results = []

    for token in tokens:
        key = token.strip().lower()
        user = by_name.get(key) or by_email.get(key)

        if user is None:
            results.append(Unresolved(token=token))
        else:
            results.append(Resolved(token=token, user=user))

    return results


def chunked(keys: list[str], size: int):
    for start in range(0, len(keys), size):
        yield keys[start : start + size]


async def resolve(
    tokens: list[str],
    conn: AsyncSession,
    log: FilteringBoundLogger,
    chunk_size: int = RESOLVE_CHUNK_SIZE,
) -> IdentityResolution:
    """
    Resolve a mixed list of user names and emails into users. Tokens that
    match nobody are reported, never raised.

    Parameters
    ----------
    tokens: list[str]
        User names and/or emails, in any case. Blank tokens are ignored.
    conn: AsyncSession
        The database session.
    log: FilteringBoundLogger
        Logger instance.
    chunk_size: int
        Maximum number of distinct tokens looked up per query. Each token is
        bound twice, so this keeps large rosters under the driver's
        parameter limit.
    """
    tokens = [x for x in tokens if x and x.strip()]
    log = log.bind(number_of_tokens=len(tokens))

    resolution = IdentityResolution()

    if not tokens:
        await log.adebug("identity.nothing_to_resolve")
        return resolution

    keys = sorted({x.strip().lower() for x in tokens})
    candidates = []

    for chunk in chunked(keys, max(chunk_size, 1)):
        result = await conn.execute(
            select(User).where(
                or_(func.lower(User.user_name).in_(chunk), User.email.in_(chunk))
            )
        )
        candidates.extend(result.unique().scalars().all())

    seen = set()

    for outcome in classify(tokens, candidates):
        match outcome:
            case Resolved(user=user):
                if user.user_id not in seen:
                    seen.add(user.user_id)
                    resolution.found.append(user)
            case Unresolved(token=token):
                resolution.not_found.append(token)

    await log.adebug(
        "identity.resolved",
        number_found=len(resolution.found),
        number_not_found=len(resolution.not_found),
    )

    return resolution
