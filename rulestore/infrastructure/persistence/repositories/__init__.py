"""Repository implementations for rule storage."""

from rulestore.infrastructure.persistence.repositories.rule_repository import (
    RuleRepository,
)

__all__ = [
    "RuleRepository",
]
