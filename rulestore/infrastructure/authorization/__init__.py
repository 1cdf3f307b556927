"""Authorization infrastructure package.

This package contains the Casbin policy storage implementation:
- rule_codec.py: rule <-> fixed-width row encoding
- filter_builder.py: SQL predicates for filters, row matches and raw conditions
- policy_sync.py: moving rules between rows and a Casbin model
- sqlalchemy_adapter.py: Adapter implementing the pycasbin async adapter
- transaction_context.py: TransactionContext for independent transactions
"""

from rulestore.infrastructure.authorization.filter_builder import conditions_to_query
from rulestore.infrastructure.authorization.sqlalchemy_adapter import Adapter
from rulestore.infrastructure.authorization.transaction_context import (
    TransactionContext,
)

__all__ = [
    "Adapter",
    "TransactionContext",
    "conditions_to_query",
]
