"""Local snapshot record for SQLModel."""
from datetime import datetime

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel

from todays.models.task import utc_now


class LocalSnapshotRecord(SQLModel, table=True):
    """Key-value row holding the device's JSON snapshot."""

    __tablename__ = "local_snapshot"

    key: str = Field(primary_key=True, max_length=64)
    payload: str = Field(sa_column=Column(Text, nullable=False))
    saved_at: datetime = Field(default_factory=utc_now)
