"""Storage of remote documents for the replica service."""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from todays.models.task import utc_now
from todays.models.user_data import UserData

logger = logging.getLogger(__name__)


class UserDataService:
    """Whole-document reads and writes, one document per user."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: str) -> Optional[UserData]:
        return self.session.get(UserData, user_id)

    def upsert(self, user_id: str, data: Dict[str, Any], schema_version: int) -> UserData:
        """Replace the user's document, creating it if needed."""
        row = self.get(user_id)
        if row is None:
            row = UserData(user_id=user_id)
        row.data = data
        row.schema_version = schema_version
        row.updated_at = utc_now()

        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        logger.info(f"Stored document for user {user_id} at {row.updated_at.isoformat()}")
        return row

    def create_if_absent(self, user_id: str, data: Dict[str, Any], schema_version: int) -> Optional[UserData]:
        """Store only when the user has no document; None if one already exists."""
        if self.get(user_id) is not None:
            return None

        row = UserData(
            user_id=user_id,
            data=data,
            schema_version=schema_version,
            updated_at=utc_now(),
        )
        self.session.add(row)
        try:
            self.session.commit()
        except IntegrityError:
            # Another request created it first
            self.session.rollback()
            return None
        self.session.refresh(row)
        logger.info(f"Created first document for user {user_id}")
        return row

    def delete(self, user_id: str) -> bool:
        row = self.get(user_id)
        if row is None:
            return False
        self.session.delete(row)
        self.session.commit()
        logger.info(f"Deleted document for user {user_id}")
        return True
