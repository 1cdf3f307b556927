"""Database models for rule storage."""

from rulestore.infrastructure.persistence.models.casbin_rule import (
    CasbinRule,
    rule_model,
    value_slots_of,
)

__all__ = [
    "CasbinRule",
    "rule_model",
    "value_slots_of",
]
