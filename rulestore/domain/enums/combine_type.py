"""Condition combining strategies.

Used by conditions_to_query() to decide how raw boolean conditions (for
example those derived from an enforcer's allowed-object conditions) are
folded into a single WHERE clause.
"""

from enum import Enum


class CombineType(str, Enum):
    """How conditions are combined into one predicate."""

    OR = "or"
    AND = "and"
