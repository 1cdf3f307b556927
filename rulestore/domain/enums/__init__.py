"""Domain enums.

Available Enums:
    - CombineType: How raw conditions are folded into one predicate
    - TransactionState: Lifecycle of a transaction context
"""

from rulestore.domain.enums.combine_type import CombineType
from rulestore.domain.enums.transaction_state import TransactionState

__all__ = ["CombineType", "TransactionState"]
