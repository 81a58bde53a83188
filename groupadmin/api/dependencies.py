"""
Dependencies used by the API.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger
from structlog.typing import FilteringBoundLogger

from groupadmin.config.managers import AsyncSessionManager
from groupadmin.config.settings import Settings
from groupadmin.service.jobs import BulkJobQueue
from groupadmin.service.notifications import Notifier, OutboxNotifier
from groupadmin.service.registry import EditableFieldRegistry


@lru_cache
def SETTINGS():
    return Settings()


@lru_cache
def DATABASE_MANAGER() -> AsyncSessionManager:
    return SETTINGS().async_manager()


@lru_cache
def FIELD_REGISTRY() -> EditableFieldRegistry:
    return EditableFieldRegistry(names=SETTINGS().editable_group_custom_fields)


@lru_cache
def BULK_JOBS() -> BulkJobQueue:
    settings = SETTINGS()
    return BulkJobQueue(
        manager=DATABASE_MANAGER(),
        concurrency=settings.bulk_assign_concurrency,
        history=settings.bulk_job_history,
    )


async def get_async_session():
    async with DATABASE_MANAGER().session() as session:
        async with session.begin():
            yield session


def logger():
    return get_logger()


def get_notifier() -> Notifier:
    return OutboxNotifier(sender_name=SETTINGS().system_sender_name)


def allowed_custom_fields() -> frozenset[str]:
    return FIELD_REGISTRY().allowed()


SettingsDependency = Annotated[Settings, Depends(SETTINGS)]
DatabaseDependency = Annotated[AsyncSession, Depends(get_async_session)]
DatabaseManagerDependency = Annotated[AsyncSessionManager, Depends(DATABASE_MANAGER)]
LoggerDependency = Annotated[FilteringBoundLogger, Depends(logger)]
NotifierDependency = Annotated[Notifier, Depends(get_notifier)]
AllowedCustomFieldsDependency = Annotated[
    frozenset[str], Depends(allowed_custom_fields)
]
BulkJobsDependency = Annotated[BulkJobQueue, Depends(BULK_JOBS)]
