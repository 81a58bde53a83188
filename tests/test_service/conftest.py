"""
Configuration variables and fixtures for the service layer tests.
"""

import pytest_asyncio

from groupadmin.config.settings import Settings
from groupadmin.service.jobs import BulkJobQueue
from groupadmin.service.notifications import OutboxNotifier


@pytest_asyncio.fixture(scope="session")
def notifier(server_settings: Settings):
    yield OutboxNotifier(sender_name=server_settings.system_sender_name)


@pytest_asyncio.fixture(scope="session")
def bulk_jobs(server_settings: Settings, session_manager):
    yield BulkJobQueue(
        manager=session_manager, concurrency=server_settings.bulk_assign_concurrency
    )
