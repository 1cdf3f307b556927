"""Core enums package.

Exports all core-level enums for convenient importing.

Usage:
    from rulestore.core.enums import ErrorCode, Environment
"""

from rulestore.core.enums.environment import Environment
from rulestore.core.enums.error_code import ErrorCode

__all__ = ["ErrorCode", "Environment"]
