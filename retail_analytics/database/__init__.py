"""
Database Module
"""
from .connection import (
    check_database_health,
    close_database,
    get_db,
    get_engine,
    get_session_factory,
    init_database,
)
from .models import Base

__all__ = [
    "Base",
    "check_database_health",
    "close_database",
    "get_db",
    "get_engine",
    "get_session_factory",
    "init_database",
]
