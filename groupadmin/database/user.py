"""
ORM for user information.
"""

from sqlmodel import Field, SQLModel

from groupadmin.core.user import UserData
from groupadmin.core.uuid import UUID, uuid7

MAXIMUM_TRUST_LEVEL = 4


class User(SQLModel, table=True):
    user_id: UUID = Field(primary_key=True, default_factory=uuid7)

    user_name: str = Field(unique=True)
    # Always stored lower-cased, so matching is case-insensitive.
    email: str | None = Field(default=None, unique=True)

    trust_level: int = 0
    title: str | None = None
    primary_group_id: UUID | None = Field(
        default=None, foreign_key="group.group_id", ondelete="SET NULL"
    )

    def raise_trust_level(self, trust_level: int | None) -> bool:
        """
        Raise this user's trust level to `trust_level`. Trust levels are never
        lowered; returns whether the level changed.

        Note that all changes to the local copy of this data (as performed by
        this function) must be committed to the database separately.
        """
        if trust_level is None or self.trust_level >= trust_level:
            return False

        self.trust_level = min(trust_level, MAXIMUM_TRUST_LEVEL)
        return True

    def to_core(self) -> UserData:
        return UserData(
            user_id=self.user_id,
            user_name=self.user_name,
            email=self.email,
            trust_level=self.trust_level,
            title=self.title,
            primary_group_id=self.primary_group_id,
        )
