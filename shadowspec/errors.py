"""Module errors: structured error taxonomy for ShadowSpec."""
#
# PURPOSE:
# Provides error codes and a typed exception for the boundaries of the
# system: body decoding, transaction storage and configuration.
#
# The inference engine itself never raises; it degrades to placeholder
# schemas instead. Errors only surface where raw bytes or files enter.
#
# ERROR CODE FORMAT:
# - BODY_XXX: Request/response body decoding errors
# - TX_XXX: Transaction envelope errors
# - STORE_XXX: Transaction storage errors
# - CONFIG_XXX: Configuration errors
# - SYSTEM_XXX: Anything else
#
# USAGE:
#   from shadowspec.errors import ShadowSpecError, ErrorCode
#
#   raise ShadowSpecError(
#       ErrorCode.BODY_NOT_JSON,
#       "Response body is not valid JSON",
#       details={"path": "/users"}
#   )
#

import json
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    # Body Errors
    BODY_DECODE_FAILED = "BODY_001"
    BODY_NOT_JSON = "BODY_002"

    # Transaction Errors
    TRANSACTION_INVALID = "TX_001"

    # Storage Errors
    STORAGE_READ_FAILED = "STORE_001"
    STORAGE_WRITE_FAILED = "STORE_002"
    STORAGE_PARSE_ERROR = "STORE_003"

    # Config Errors
    CONFIG_INVALID = "CONFIG_001"
    CONFIG_PARSE_ERROR = "CONFIG_002"

    # System Errors
    SYSTEM_INTERNAL_ERROR = "SYSTEM_001"


class ShadowSpecError(Exception):
    """
    Base exception with structured error information.

    Attributes:
        code: ErrorCode enum value (e.g., "BODY_002")
        message: Human-readable error message
        details: Optional dictionary with additional context
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}

        # Build exception message with code for easy debugging
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ShadowSpecError":
        """
        Deserialize error from dictionary.

        Args:
            data: Dictionary with code, message, details

        Returns:
            ShadowSpecError instance
        """
        return cls(ErrorCode(data["code"]), data["message"], data.get("details", {}))


def handle_error(error: Exception, context: Optional[str] = None) -> ShadowSpecError:
    """
    Convert a generic exception to a ShadowSpecError.

    Args:
        error: The original exception
        context: Optional context string (e.g., "while reading session file")

    Returns:
        ShadowSpecError with appropriate code and message
    """
    if isinstance(error, ShadowSpecError):
        return error

    error_type = type(error).__name__

    if isinstance(error, json.JSONDecodeError):
        code = ErrorCode.BODY_NOT_JSON
    elif isinstance(error, UnicodeDecodeError):
        code = ErrorCode.BODY_DECODE_FAILED
    elif isinstance(error, PermissionError):
        code = ErrorCode.STORAGE_WRITE_FAILED
    elif isinstance(error, OSError):
        code = ErrorCode.STORAGE_READ_FAILED
    else:
        code = ErrorCode.SYSTEM_INTERNAL_ERROR

    message = str(error)
    if context:
        message = f"{context}: {message}"

    return ShadowSpecError(
        code=code,
        message=message,
        details={
            "original_type": error_type,
            "original_message": str(error),
        },
    )


__all__ = ["ErrorCode", "ShadowSpecError", "handle_error"]
