"""
Service layer for users
"""

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupadmin.core.user import UserData
from groupadmin.core.uuid import UUID
from groupadmin.database.user import MAXIMUM_TRUST_LEVEL, User


class UserNotFound(Exception):
    pass


class UserExistsError(Exception):
    pass


def normalize_email(email: str | None) -> str | None:
    if email is None:
        return None

    return email.strip().lower() or None


async def create(
    user_name: str,
    email: str | None,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    trust_level: int = 0,
    title: str | None = None,
) -> User:
    """
    Creates a user, if they do not exist. User names keep their casing but
    must be unique regardless of it.

    Raises
    ------
    UserExistsError
        If a user with this name (in any case) or email already exists.
    """

    user_name = user_name.strip()
    email = normalize_email(email)

    log = log.bind(user_name=user_name, email=email, trust_level=trust_level)

    try:
        await read_by_name(user_name=user_name, conn=conn)
    except UserNotFound:
        pass
    else:
        await log.ainfo("user.create.exists")
        raise UserExistsError(f"User with user name {user_name} already exists")

    user = User(
        user_name=user_name,
        email=email,
        trust_level=min(max(trust_level, 0), MAXIMUM_TRUST_LEVEL),
        title=title,
    )

    try:
        conn.add(user)
        await conn.flush()
    except IntegrityError:
        await log.ainfo("user.create.exists")
        raise UserExistsError(f"User with email {email} already exists")

    log = log.bind(user_id=user.user_id)
    await log.ainfo("user.created")

    return user


async def read_by_id(user_id: UUID, conn: AsyncSession) -> User:
    res = await conn.get(User, user_id)

    if res is None:
        raise UserNotFound(f"User with ID {user_id} not found in the database")

    return res


async def read_by_name(user_name: str, conn: AsyncSession) -> User:
    user_name = user_name.strip().lower()

    query = select(User).filter(func.lower(User.user_name) == user_name)
    res = (await conn.execute(query)).unique().scalar_one_or_none()

    if res is None:
        raise UserNotFound(f"User with name {user_name} not found in the database")

    return res


async def get_user_list(conn: AsyncSession) -> list[UserData]:
    """
    Get a list of all users registered to the system.
    """
    query = select(User)
    res = (await conn.execute(query)).unique().scalars().all()
    return [u.to_core() for u in res]


async def delete(user_id: UUID, conn: AsyncSession, log: FilteringBoundLogger):
    """
    Deletes the user. Their group memberships go with them.
    """
    user = await read_by_id(user_id=user_id, conn=conn)

    log = log.bind(user_id=user.user_id, user_name=user.user_name)

    await conn.delete(user)
    await conn.flush()

    await log.ainfo("user.deleted")
