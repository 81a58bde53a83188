"""
Fixtures for the API tests: the app, wired to the test database.
"""

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from groupadmin.api import dependencies
from groupadmin.api.app import app
from groupadmin.service.jobs import BulkJobQueue
from groupadmin.service.notifications import OutboxNotifier


@pytest_asyncio.fixture(scope="session")
def api_bulk_jobs(server_settings, session_manager):
    yield BulkJobQueue(
        manager=session_manager, concurrency=server_settings.bulk_assign_concurrency
    )


@pytest_asyncio.fixture(scope="session")
async def client(server_settings, session_manager, registry, api_bulk_jobs):
    async def get_test_session():
        async with session_manager.session() as session:
            async with session.begin():
                yield session

    app.dependency_overrides[dependencies.SETTINGS] = lambda: server_settings
    app.dependency_overrides[dependencies.DATABASE_MANAGER] = lambda: session_manager
    app.dependency_overrides[dependencies.get_async_session] = get_test_session
    app.dependency_overrides[dependencies.BULK_JOBS] = lambda: api_bulk_jobs
    app.dependency_overrides[dependencies.allowed_custom_fields] = registry.allowed
    app.dependency_overrides[dependencies.get_notifier] = lambda: OutboxNotifier(
        sender_name=server_settings.system_sender_name
    )

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()
