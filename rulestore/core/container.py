"""Composition root for application-scoped singletons.

Adapter selection is centralized here so library code never constructs
infrastructure directly:
- get_logger(): structured logger (console adapter, JSON in testing/CI)

Usage:
    from rulestore.core.container import get_logger

    logger = get_logger()
    logger.info("policy_loaded", rules=12)
"""

from functools import lru_cache
from typing import TYPE_CHECKING

from rulestore.core.config import get_settings

if TYPE_CHECKING:
    from rulestore.domain.protocols.logger_protocol import LoggerProtocol


@lru_cache()
def get_logger() -> "LoggerProtocol":
    """Return the application-scoped logger singleton.

    - development/production: ConsoleAdapter (human-readable)
    - testing/ci: ConsoleAdapter (JSON)

    Returns:
        LoggerProtocol: Logger instance implementing the protocol.
    """
    from rulestore.infrastructure.logging.console_adapter import ConsoleAdapter

    settings = get_settings()
    env = (
        settings.environment.value
        if hasattr(settings.environment, "value")
        else str(settings.environment)
    )
    use_json = env in {"testing", "ci"}
    return ConsoleAdapter(use_json=use_json, level=settings.log_level)
