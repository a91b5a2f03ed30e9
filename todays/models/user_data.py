"""Stored remote document, one row per user."""
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from todays.models.task import utc_now


class UserData(SQLModel, table=True):
    __tablename__ = "user_data"

    user_id: str = Field(foreign_key="user.id", primary_key=True, max_length=64)
    data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    schema_version: int = Field(default=1)
    updated_at: datetime = Field(default_factory=utc_now, index=True)
