"""User model for SQLModel."""
import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from todays.models.task import utc_now


class User(SQLModel, table=True):
    """Account owning one remote document."""

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True,
        index=True
    )
    email: str = Field(unique=True, index=True, max_length=255)
    name: str | None = Field(default=None, max_length=255)
    password_hash: str = Field(max_length=255)
    created_at: datetime = Field(default_factory=utc_now)
