"""
Outbox of notification events. Delivery is handled elsewhere.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel

from groupadmin.core.uuid import UUID, uuid7


class Notification(SQLModel, table=True):
    notification_id: UUID = Field(primary_key=True, default_factory=uuid7)

    sender_name: str
    recipient_user_id: UUID = Field(
        foreign_key="user.user_id", ondelete="CASCADE", index=True
    )
    subject: str
    body: str = ""
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True)))
