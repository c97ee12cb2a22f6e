"""
Database Module
"""
from .connection import close_database, get_db, get_engine, init_database
from .models import ArchiveBlob, ArchiveNumeric, Base
from .repository import ArchiveRepository

__all__ = [
    "init_database",
    "close_database",
    "get_db",
    "get_engine",
    "Base",
    "ArchiveNumeric",
    "ArchiveBlob",
    "ArchiveRepository",
]
