"""Domain entities."""

from rulestore.domain.entities.rule_row import RuleRow

__all__ = ["RuleRow"]
