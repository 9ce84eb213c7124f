from pitch_sync.db.base import Base
from pitch_sync.db.engine import (
    DatabaseConfig,
    create_db_engine,
    create_session_factory,
    unit_of_work,
)

__all__ = [
    "Base",
    "DatabaseConfig",
    "create_db_engine",
    "create_session_factory",
    "unit_of_work",
]
