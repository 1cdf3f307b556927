"""Policy store error codes (machine-readable).

Error codes follow ENTITY_ACTION_REASON naming convention and are carried by
every PolicyStoreError so callers can branch without string matching.

Categories:
- Encoding errors (RULE_*)
- Query errors (*_FILTER)
- Adapter wiring errors (UNEXPECTED_ADAPTER, INVALID_RULE_MODEL)
- Transaction errors (TRANSACTION_*, NESTED_TRANSACTION)
"""

from enum import Enum


class ErrorCode(Enum):
    """Policy store error codes (machine-readable)."""

    POLICY_STORE_ERROR = "policy_store_error"

    # Encoding errors
    RULE_ENCODING_FAILED = "rule_encoding_failed"
    POLICY_MISMATCH = "policy_mismatch"

    # Query errors
    UNSUPPORTED_FILTER = "unsupported_filter"
    EMPTY_FIELD_FILTER = "empty_field_filter"

    # Adapter wiring errors
    UNEXPECTED_ADAPTER = "unexpected_adapter"
    INVALID_RULE_MODEL = "invalid_rule_model"

    # Transaction errors
    TRANSACTION_FAILED = "transaction_failed"
    TRANSACTION_FINISHED = "transaction_finished"
    TRANSACTION_CANCELLED = "transaction_cancelled"
    TRANSACTION_TIMEOUT = "transaction_timeout"
    NESTED_TRANSACTION = "nested_transaction"
