"""Storage layer: SQLite access for sources, premises, and niches."""

from premisehub.storage.connection import get_connection
from premisehub.storage.schema import init_db

__all__ = ["get_connection", "init_db"]
