"""Initialize database tables."""
import logging

from sqlmodel import SQLModel

from todays.db.config import engine
from todays.models.user import User
from todays.models.user_data import UserData

logger = logging.getLogger(__name__)


def init_db(bind=None):
    """Create the replica tables; existing data is kept."""
    bind = bind or engine
    SQLModel.metadata.create_all(bind, tables=[User.__table__, UserData.__table__])
    logger.info("Replica tables ready")


if __name__ == "__main__":
    init_db()
