"""Durable storage for the local snapshot."""
import json
import logging
from pathlib import Path
from typing import Optional, Protocol, Union

from pydantic import ValidationError
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from todays.config import LOCAL_DB_PATH
from todays.models.local_snapshot import LocalSnapshotRecord
from todays.models.snapshot import Snapshot
from todays.models.task import utc_now

logger = logging.getLogger(__name__)


class SnapshotStorage(Protocol):
    def load(self) -> Optional[Snapshot]: ...

    def save(self, snapshot: Snapshot) -> None: ...


class SqlSnapshotStorage:
    """Keeps the snapshot as one JSON row in a local SQLite database."""

    def __init__(
        self,
        path: Union[str, Path, None] = None,
        *,
        key: str = "state",
        engine: Optional[Engine] = None,
    ):
        if engine is None:
            db_path = Path(path) if path is not None else LOCAL_DB_PATH
            db_path.parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(
                f"sqlite:///{db_path}",
                connect_args={"check_same_thread": False},
            )
        self.engine = engine
        self.key = key
        SQLModel.metadata.create_all(engine, tables=[LocalSnapshotRecord.__table__])

    def load(self) -> Optional[Snapshot]:
        with Session(self.engine) as session:
            record = session.get(LocalSnapshotRecord, self.key)
            payload = record.payload if record else None

        if payload is None:
            return None

        try:
            return Snapshot.from_document(json.loads(payload))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Stored snapshot '{self.key}' is unreadable, starting empty: {e}")
            return None

    def save(self, snapshot: Snapshot) -> None:
        payload = json.dumps(snapshot.to_document())
        with Session(self.engine) as session:
            record = session.get(LocalSnapshotRecord, self.key)
            if record is None:
                session.add(LocalSnapshotRecord(key=self.key, payload=payload))
            else:
                record.payload = payload
                record.saved_at = utc_now()
            session.commit()
