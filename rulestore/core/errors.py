"""Policy store error hierarchy.

The adapter is driven by pycasbin, which expects failures as exceptions, so
these errors are raised rather than returned. Each carries a machine-readable
ErrorCode next to the human-readable message.

Error Hierarchy:
    PolicyStoreError (base)
    ├── RuleEncodingError (too many values, field index out of range)
    ├── PolicyMismatchError (old/new rule lists of different length)
    ├── UnsupportedFilterError (filter of unknown shape)
    ├── EmptyFieldFilterError (filtered delete with only empty values)
    ├── UnexpectedAdapterError (enforcer carries a foreign adapter)
    ├── RuleModelError (custom table model is unusable)
    └── TransactionError
        ├── TransactionFinishedError (commit/rollback after terminal state)
        ├── NestedTransactionError (lock re-entered from inside a closure)
        └── TransactionCancelledError (cancel event fired)
            └── TransactionTimeoutError (deadline elapsed)

Backend failures (sqlalchemy.exc.SQLAlchemyError) are never wrapped; they
reach the caller unchanged.
"""

from typing import Any

from rulestore.core.enums import ErrorCode


class PolicyStoreError(Exception):
    """Base error for all policy store failures.

    Attributes:
        code: Machine-readable error code (enum).
        message: Human-readable error message.
        details: Optional context for debugging.
    """

    code: ErrorCode = ErrorCode.POLICY_STORE_ERROR

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        """String representation of error."""
        return f"{self.code.value}: {self.message}"


class RuleEncodingError(PolicyStoreError):
    """Rule does not fit the fixed-width row layout."""

    code = ErrorCode.RULE_ENCODING_FAILED


class PolicyMismatchError(PolicyStoreError):
    """Old and new rule lists passed to a bulk update differ in length."""

    code = ErrorCode.POLICY_MISMATCH


class UnsupportedFilterError(PolicyStoreError):
    """Filter value is not a Filter, BatchFilter or sequence of Filters."""

    code = ErrorCode.UNSUPPORTED_FILTER


class EmptyFieldFilterError(PolicyStoreError):
    """Filtered delete/update where every field value is the empty string."""

    code = ErrorCode.EMPTY_FIELD_FILTER


class UnexpectedAdapterError(PolicyStoreError):
    """Enforcer handed to a transactional call does not use this adapter type."""

    code = ErrorCode.UNEXPECTED_ADAPTER


class RuleModelError(PolicyStoreError):
    """Rule table model is missing required columns or conflicts with another."""

    code = ErrorCode.INVALID_RULE_MODEL


class TransactionError(PolicyStoreError):
    """Base error for transaction protocol failures."""

    code = ErrorCode.TRANSACTION_FAILED


class TransactionFinishedError(TransactionError):
    """Transaction context was already committed or rolled back."""

    code = ErrorCode.TRANSACTION_FINISHED


class NestedTransactionError(TransactionError):
    """Top-level transaction requested while this task already holds the lock."""

    code = ErrorCode.NESTED_TRANSACTION


class TransactionCancelledError(TransactionError):
    """Caller cancelled the transaction context."""

    code = ErrorCode.TRANSACTION_CANCELLED


class TransactionTimeoutError(TransactionCancelledError):
    """Transaction context deadline elapsed."""

    code = ErrorCode.TRANSACTION_TIMEOUT
