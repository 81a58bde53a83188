"""
Main settings object.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import URL

from .managers import AsyncSessionManager, SyncSessionManager


class Settings(BaseSettings):
    database_type: Literal["sqlite", "postgres"] = "sqlite"
    database_user: str | None = None
    database_password: str | None = None
    database_port: int | None = None
    database_host: str | None = None
    database_db: str = "groupadmin.db"

    database_echo: bool = False

    # Bulk assignment processes each user in its own transaction; this bounds
    # how many of those run at once.
    bulk_assign_concurrency: int = 4

    # Finished background bulk jobs kept for polling.
    bulk_job_history: int = 1000

    # Notifications sent on behalf of the system.
    system_sender_name: str = "system"
    owner_notification_subject: str = (
        "You have been added as an owner of the {group_name} group"
    )
    owner_notification_body: str = (
        "You are now an owner of the {group_name} group, and can manage "
        "its members."
    )

    # Custom field names that are editable from startup. More can be
    # registered at runtime; with none registered, no custom field writes
    # are accepted.
    editable_group_custom_fields: list[str] = []

    # System-managed groups, created read-only by `initial_setup`.
    automatic_groups: list[str] = [
        "everyone",
        "admins",
        "moderators",
        "staff",
        "trust_level_0",
        "trust_level_1",
        "trust_level_2",
        "trust_level_3",
        "trust_level_4",
    ]
    create_automatic_groups: bool = False

    # Development only
    create_example_users: bool = False

    model_config = SettingsConfigDict(env_prefix="GROUPADMIN_", env_file=".env")

    @property
    def sync_driver(self) -> str:
        match self.database_type:
            case "sqlite":
                return "sqlite"
            case "postgres":
                return "postgresql+psycopg"
            case _:
                raise ValueError

    @property
    def async_driver(self) -> str:
        match self.database_type:
            case "sqlite":
                return "sqlite+aiosqlite"
            case "postgres":
                return "postgresql+asyncpg"
            case _:
                raise ValueError

    @property
    def sync_uri(self) -> URL:
        return URL.create(
            drivername=self.sync_driver,
            username=self.database_user,
            password=self.database_password,
            host=self.database_host,
            port=self.database_port,
            database=self.database_db,
        )

    def sync_manager(self) -> SyncSessionManager:
        return SyncSessionManager(connection_url=self.sync_uri, echo=self.database_echo)

    @property
    def async_uri(self) -> URL:
        return URL.create(
            drivername=self.async_driver,
            username=self.database_user,
            password=self.database_password,
            host=self.database_host,
            port=self.database_port,
            database=self.database_db,
        )

    def async_manager(self) -> AsyncSessionManager:
        return AsyncSessionManager(
            connection_url=self.async_uri, echo=self.database_echo
        )
