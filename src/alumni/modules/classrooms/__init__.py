"""
Classrooms Module

Classroom reference data and user memberships (finding classmates).
"""

from .router import router, user_classrooms_router

__all__ = ["router", "user_classrooms_router"]
