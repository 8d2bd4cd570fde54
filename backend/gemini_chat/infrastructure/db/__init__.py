"""
Database Infrastructure Package for Gemini Chat

Exports database utilities.
"""

from gemini_chat.infrastructure.db.database import (
    DatabaseManager,
    get_db_manager,
    get_session,
    init_db,
    close_db,
)


__all__ = [
    "DatabaseManager",
    "get_db_manager",
    "get_session",
    "init_db",
    "close_db",
]
