"""
Users module - Member profiles, photos and preferences.
"""

from alumni.modules.users.models import User, UserPreferences, UserRole, UserStatus
from alumni.modules.users.repository import PreferencesRepository, UserRepository
from alumni.modules.users.router import router

__all__ = [
    "User",
    "UserPreferences",
    "UserRole",
    "UserStatus",
    "UserRepository",
    "PreferencesRepository",
    "router",
]
