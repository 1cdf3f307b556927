"""Domain value objects.

Immutable filter specifications used to narrow policy loads.
"""

from rulestore.domain.value_objects.rule_filter import (
    FILTER_COLUMNS,
    BatchFilter,
    Filter,
)

__all__ = ["BatchFilter", "FILTER_COLUMNS", "Filter"]
