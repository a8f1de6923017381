"""
Action Plan Service - Core Package
==================================

Core business logic, models, and schemas.
"""

from actionplan.core.config import settings
from actionplan.core.database import Base, get_db

__all__ = ["Base", "get_db", "settings"]
