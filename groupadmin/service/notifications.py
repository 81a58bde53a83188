"""
Notification events emitted by the service layer.
"""

import abc
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupadmin.config.settings import Settings
from groupadmin.core.uuid import UUID
from groupadmin.database.group import Group
from groupadmin.database.notification import Notification
from groupadmin.database.user import User


class Notifier(abc.ABC):
    """
    The base class for notifiers. Downstream must implement:

    - notify: record or deliver a single message to a single user.
    """

    @abc.abstractmethod
    async def notify(
        self,
        recipient: User,
        subject: str,
        body: str,
        conn: AsyncSession,
        log: FilteringBoundLogger,
    ) -> None:
        raise NotImplementedError


class OutboxNotifier(Notifier):
    """
    Writes each notification to the outbox table, in the caller's transaction,
    with the system as the sender.
    """

    sender_name: str

    def __init__(self, sender_name: str):
        self.sender_name = sender_name

    async def notify(
        self,
        recipient: User,
        subject: str,
        body: str,
        conn: AsyncSession,
        log: FilteringBoundLogger,
    ) -> None:
        notification = Notification(
            sender_name=self.sender_name,
            recipient_user_id=recipient.user_id,
            subject=subject,
            body=body,
            created_at=datetime.now(timezone.utc),
        )

        conn.add(notification)

        await log.ainfo(
            "notification.queued",
            recipient_user_id=recipient.user_id,
            notification_id=notification.notification_id,
        )


async def notify_owners_added(
    group: Group,
    owners: list[User],
    notifier: Notifier,
    settings: Settings,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> None:
    """
    Tell each of `owners` that they are now an owner of `group`.
    """
    subject = settings.owner_notification_subject.format(group_name=group.group_name)
    body = settings.owner_notification_body.format(group_name=group.group_name)

    for owner in owners:
        await notifier.notify(
            recipient=owner, subject=subject, body=body, conn=conn, log=log
        )


async def read_for_user(user_id: UUID, conn: AsyncSession) -> list[Notification]:
    result = await conn.execute(
        select(Notification)
        .where(Notification.recipient_user_id == user_id)
        .order_by(Notification.created_at)
    )
    return list(result.scalars().all())
