"""Remote document schemas shared by the replica service and the sync client."""
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from todays.models.task import Instant


class SyncSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RemoteDocument(SyncSchema):
    """One identity's stored snapshot."""
    identity: str
    data: Dict[str, Any]
    schema_version: int
    updated_at: Instant


class PushRequest(SyncSchema):
    """Whole-document replace sent by a client."""
    data: Dict[str, Any]
    schema_version: int = Field(ge=1)


class PushAck(SyncSchema):
    """Server acknowledgement of a stored document."""
    identity: str
    schema_version: int
    updated_at: Instant
