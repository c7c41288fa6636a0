"""SQLAlchemy persistence for the posting engine."""

from hera.infrastructure.persistence.sqlalchemy.engine import create_engine
from hera.infrastructure.persistence.sqlalchemy.init_db import (
    create_tables,
    drop_tables,
)

__all__ = ["create_engine", "create_tables", "drop_tables"]
