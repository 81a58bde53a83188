"""
Initial setup of the service: the database tables and the system-managed
(automatic) groups. This is the only place groups are made automatic.
"""

from datetime import datetime, timezone

from sqlalchemy import select
from structlog import get_logger

from groupadmin.config.settings import Settings
from groupadmin.database.group import Group
from groupadmin.database.user import User
from groupadmin.service.groups import normalize_group_name

EXAMPLE_USERS = (
    ("admin", "admin@example.com", 4),
    ("moderator", "moderator@example.com", 3),
    ("member", "member@example.com", 1),
)


def initial_setup(settings: Settings):
    """
    Create the tables, then provision any automatic groups and example users
    that do not exist yet.
    """
    log = get_logger().bind(database_type=settings.database_type)

    manager = settings.sync_manager()
    manager.create_all()

    with manager.session() as conn:
        with conn.begin():
            if settings.create_automatic_groups:
                existing = set(conn.execute(select(Group.group_name)).scalars().all())

                for group_name in map(normalize_group_name, settings.automatic_groups):
                    if group_name in existing:
                        continue

                    conn.add(
                        Group(
                            group_name=group_name,
                            created_at=datetime.now(timezone.utc),
                            automatic=True,
                        )
                    )
                    log.info("setup.automatic_group_created", group_name=group_name)

            if settings.create_example_users:
                existing = set(conn.execute(select(User.user_name)).scalars().all())

                for user_name, email, trust_level in EXAMPLE_USERS:
                    if user_name in existing:
                        continue

                    conn.add(
                        User(user_name=user_name, email=email, trust_level=trust_level)
                    )
                    log.info("setup.example_user_created", user_name=user_name)

    log.info("setup.complete")
