"""Declarative base for rule table models.

Rule tables use an auto-incrementing integer id (ordering only) and plain
string columns, so the base provides nothing but the shared metadata.

Usage:
    class AuditedRule(BaseModel):
        __tablename__ = "audited_rule"
        id: Mapped[int] = mapped_column(Integer, primary_key=True)
        ...
"""

from sqlalchemy.orm import DeclarativeBase


class BaseModel(DeclarativeBase):
    """Base class for all database models.

    This is an infrastructure concern; RuleRow in the domain layer does not
    inherit from or depend on this class.
    """
