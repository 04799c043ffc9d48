"""
Core module - Configuration, database, security, and utilities.
"""

from alumni.core.config import settings
from alumni.core.database import Base, close_db, get_db, init_db
from alumni.core.redis import close_redis, init_redis

__all__ = [
    # Config
    "settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "close_db",
    # Redis
    "init_redis",
    "close_redis",
]
