"""
A shared user object that is serialized.
"""

from pydantic import BaseModel

from groupadmin.core.uuid import UUID


class UserData(BaseModel):
    user_id: UUID
    user_name: str
    email: str | None
    trust_level: int
    title: str | None
    primary_group_id: UUID | None
