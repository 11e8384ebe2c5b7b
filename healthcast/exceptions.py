"""
Engine Exceptions.

Public entry points absorb every documented edge case; these exceptions are
raised by the strict internal helpers and caught at the seams where a
fallback exists. Only programmer errors are expected to reach a caller.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Engine error codes."""

    INTERNAL_ERROR = "E1000"
    INVALID_INPUT = "E1001"
    INSUFFICIENT_DATA = "E1002"
    SCORING_FAILED = "E2000"


class HealthCastError(Exception):
    """Base exception for the HealthCast engine."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class InvalidInputError(HealthCastError):
    """Input record cannot be scored as given."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            code=ErrorCode.INVALID_INPUT,
            details={"field": field} if field else {},
        )


class InsufficientDataError(HealthCastError):
    """Not enough samples for a statistical method."""

    def __init__(
        self,
        message: str = "Insufficient data for statistical method",
        required: Optional[int] = None,
        available: Optional[int] = None,
    ):
        super().__init__(
            message=message,
            code=ErrorCode.INSUFFICIENT_DATA,
            details={"required": required, "available": available},
        )


class ScoringError(HealthCastError):
    """A scoring strategy failed on otherwise valid input."""

    def __init__(self, strategy: str, message: str):
        super().__init__(
            message=f"{strategy}: {message}",
            code=ErrorCode.SCORING_FAILED,
            details={"strategy": strategy},
        )
