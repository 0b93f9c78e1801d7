"""Data access layer - Database models, connections and repositories."""

from .db_models import Base, TemplateRecord, ExtractionRun, ExtractionRecord
from .database import (
    DatabaseManager,
    get_db_manager,
    session_scope,
    init_database
)
from .repositories import TemplateRepository, ExtractionRunRepository

__all__ = [
    # Models
    'Base',
    'TemplateRecord',
    'ExtractionRun',
    'ExtractionRecord',

    # Database
    'DatabaseManager',
    'get_db_manager',
    'session_scope',
    'init_database',

    # Repositories
    'TemplateRepository',
    'ExtractionRunRepository'
]
