"""
Core configuration
"""

from uuid import uuid4

import pytest_asyncio
import structlog

from groupadmin.config.settings import Settings
from groupadmin.service import groups as groups_service
from groupadmin.service import user as user_service
from groupadmin.service.registry import EditableFieldRegistry


def pytest_addoption(parser):
    parser.addoption(
        "--postgres",
        action="store_true",
        default=False,
        help="Run against a Postgres container instead of a sqlite file.",
    )


def unique_name(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:10]}"


@pytest_asyncio.fixture(scope="session")
def database_container(request, tmp_path_factory):
    if not request.config.getoption("--postgres"):
        yield {
            "database_type": "sqlite",
            "database_db": str(tmp_path_factory.mktemp("database") / "groupadmin.db"),
            "database_echo": False,
        }
        return

    from testcontainers.postgres import PostgresContainer

    with PostgresContainer() as container:
        yield {
            "database_type": "postgres",
            "database_user": container.username,
            "database_password": container.password,
            "database_port": container.get_exposed_port(container.port),
            "database_host": "localhost",
            "database_db": container.dbname,
            "database_echo": False,
        }


@pytest_asyncio.fixture(scope="session")
def server_settings(database_container):
    yield Settings(**database_container)


@pytest_asyncio.fixture(scope="session")
def database(server_settings: Settings):
    server_settings.sync_manager().create_all()


@pytest_asyncio.fixture(scope="session")
def session_manager(server_settings: Settings, database):
    yield server_settings.async_manager()


@pytest_asyncio.fixture(scope="session")
def logger():
    yield structlog.get_logger()


@pytest_asyncio.fixture(scope="session")
def registry():
    yield EditableFieldRegistry()


@pytest_asyncio.fixture(scope="session")
def create_user(session_manager, logger):
    """
    Creates a user with a unique name and returns its `UserData`.
    """

    async def create(trust_level: int = 0, email: str | None = None, user_name=None):
        user_name = user_name or unique_name("user")

        async with session_manager.session() as conn:
            async with conn.begin():
                user = await user_service.create(
                    user_name=user_name,
                    email=email or f"{user_name}@example.com",
                    trust_level=trust_level,
                    conn=conn,
                    log=logger,
                )

                user_data = user.to_core()

        return user_data

    yield create


@pytest_asyncio.fixture(scope="session")
def create_group(session_manager, logger):
    """
    Creates a group with a unique name and returns its `GroupData`.
    """

    async def create(**kwargs):
        kwargs.setdefault("group_name", unique_name("group"))

        async with session_manager.session() as conn:
            async with conn.begin():
                group = await groups_service.create(conn=conn, log=logger, **kwargs)

                group_data = group.to_core()

        return group_data

    yield create
