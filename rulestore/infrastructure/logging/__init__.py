"""Logging adapters implementing LoggerProtocol."""

from rulestore.infrastructure.logging.console_adapter import ConsoleAdapter

__all__ = ["ConsoleAdapter"]
