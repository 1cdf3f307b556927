"""Database persistence infrastructure.

This module provides database-related functionality including:
- Base model for the rule table models
- Database connection and session management
- The rule repository (storage gateway)
"""

from rulestore.infrastructure.persistence.base import BaseModel
from rulestore.infrastructure.persistence.database import Database

__all__ = [
    "BaseModel",
    "Database",
]
