"""Transaction context lifecycle.

    ACTIVE --commit--> COMMITTED     (terminal)
    ACTIVE --rollback--> ROLLED_BACK (terminal)

A failed operation leaves the context ACTIVE.
"""

from enum import Enum


class TransactionState(str, Enum):
    """Lifecycle state of a transaction context."""

    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"

    @property
    def is_terminal(self) -> bool:
        """True once the context was committed or rolled back."""
        return self is not TransactionState.ACTIVE
