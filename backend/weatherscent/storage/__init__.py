# Storage layer
import logging

from weatherscent.core.config import Settings
from weatherscent.storage.base import Storage, StorageError
from weatherscent.storage.memory import MemoryStorage
from weatherscent.storage.sql import SqlStorage

logger = logging.getLogger(__name__)


def create_storage(settings: Settings) -> Storage:
    """
    Pick the storage implementation once, at process start.

    DATABASE_URL set -> relational storage, otherwise the seeded in-memory store.
    """
    if settings.database_url:
        logger.info("Using relational storage")
        return SqlStorage.from_url(settings.database_url, echo=settings.db_echo)

    logger.info("DATABASE_URL not set, using in-memory storage with sample data")
    return MemoryStorage()


__all__ = ["Storage", "StorageError", "MemoryStorage", "SqlStorage", "create_storage"]
