"""Domain protocols (ports).

Structural (PEP 544) contracts implemented by infrastructure adapters.
"""

from rulestore.domain.protocols.logger_protocol import LoggerProtocol
from rulestore.domain.protocols.policy_store_protocol import (
    PolicyStoreProtocol,
    TransactionContextProtocol,
)

__all__ = [
    "LoggerProtocol",
    "PolicyStoreProtocol",
    "TransactionContextProtocol",
]
