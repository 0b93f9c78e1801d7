"""
Engine and session handling for the template library and extraction runs.
"""
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from core.logger import get_logger
from .db_models import Base

logger = get_logger(__name__)


def _default_database_url() -> str:
    from config.settings import settings
    return settings.database_url


class DatabaseManager:
    """Owns one engine and hands out transactional sessions."""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or _default_database_url()

        connect_args = {}
        if self.database_url.startswith('sqlite'):
            # Sessions may be opened from worker threads
            connect_args['check_same_thread'] = False
        self.engine = create_engine(self.database_url, connect_args=connect_args)
        self.SessionLocal = sessionmaker(autoflush=False, bind=self.engine)

    def create_tables(self):
        Base.metadata.create_all(bind=self.engine)
        logger.info(f"Tables ready at {self.database_url}")

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Session committed on success, rolled back on error."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


_db_manager = None


def get_db_manager(database_url: Optional[str] = None) -> DatabaseManager:
    """Shared manager; database_url only matters on the first call."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager(database_url)
    return _db_manager


def init_database(database_url: Optional[str] = None):
    get_db_manager(database_url).create_tables()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Transactional session from the shared manager."""
    with get_db_manager().session() as session:
        yield session
