"""Error taxonomy for the bandit search.

Constructor validation of selector hyperparameters raises plain
``ValueError``; the exceptions here cover configuration and run-level
failures that abort a search before any step executes.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes."""
    CONFIG_UNKNOWN_ALGORITHM = "CFG_001"
    CONFIG_UNKNOWN_OPERATOR_SET = "CFG_002"
    CONFIG_INVALID_VALUE = "CFG_003"
    CONFIG_UNKNOWN_OPERATOR = "CFG_004"
    WARMUP_COMPILE_FAILED = "WRM_001"
    WARMUP_TESTS_FAILED = "WRM_002"


class BanditSearchError(Exception):
    """Base exception for fatal search errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": type(self).__name__,
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(BanditSearchError):
    """Unknown algorithm, operator set, or malformed configuration."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_UNKNOWN_OPERATOR_SET,
        **kwargs,
    ):
        super().__init__(message, code, **kwargs)


class WarmupFailedError(BanditSearchError):
    """The unmodified program does not compile or fails its tests."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.WARMUP_TESTS_FAILED,
        **kwargs,
    ):
        super().__init__(message, code, **kwargs)
