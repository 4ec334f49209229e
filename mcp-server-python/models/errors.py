"""
Error model for the AccessFlow job lifecycle tools.

Provides structured error codes, sanitized error messages, and the mapping
from error codes to HTTP status codes used by the inbound webhook.
"""

import os
import re
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    """Structured error codes shared by MCP tools and the webhook."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    PRECONDITION_FAILED = "PRECONDITION_FAILED"
    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


HTTP_STATUS_BY_CODE = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.PRECONDITION_FAILED: 409,
    ErrorCode.BACKEND_UNAVAILABLE: 500,
    ErrorCode.PARTIAL_FAILURE: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}


class ToolError(Exception):
    """Base exception for tool errors with structured error information."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        retryable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize a tool error.

        Args:
            code: The error code
            message: Human-readable error message
            retryable: Whether the operation can be retried
            original_error: The original exception if this wraps another error
            details: Extra structured context (unmet conditions, orphaned ids)
        """
        self.code = code
        self.message = message
        self.retryable = retryable
        self.original_error = original_error
        self.details = details or {}
        super().__init__(message)

    @property
    def http_status(self) -> int:
        return HTTP_STATUS_BY_CODE.get(self.code, 500)

    def to_dict(self) -> dict:
        """Convert error to dictionary format for MCP response."""
        error = {
            "code": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.details:
            error["details"] = self.details
        return {"error": error}


def sanitize_path(path: str) -> str:
    """
    Sanitize file paths to avoid exposing sensitive system details.

    Returns only the basename for absolute paths, keeps relative paths.
    """
    if os.path.isabs(path):
        return os.path.basename(path)
    return path


def sanitize_sql_error(error_msg: str) -> str:
    """
    Sanitize SQL error messages to remove sensitive details.

    Removes SQL fragments and absolute paths, keeping only actionable text.

    Args:
        error_msg: The original error message

    Returns:
        Sanitized error message
    """
    sanitized = re.sub(r'SQL:.*', '', error_msg, flags=re.IGNORECASE)
    sanitized = re.sub(r'"[^"]*SELECT[^"]*"', '[SQL query]', sanitized, flags=re.IGNORECASE)
    sanitized = re.sub(r"'[^']*SELECT[^']*'", '[SQL query]', sanitized, flags=re.IGNORECASE)
    sanitized = re.sub(
        r'\b(SELECT|INSERT|UPDATE|DELETE)\b.*', '[SQL query]', sanitized, flags=re.IGNORECASE
    )
    sanitized = re.sub(r'/[^\s]+/', '[path]/', sanitized)
    return sanitized.strip()


def sanitize_stack_trace(error_msg: str) -> str:
    """Keep only the first line of a multi-line error message."""
    lines = error_msg.split('\n')
    if lines:
        return lines[0].strip()
    return error_msg


def create_validation_error(message: str) -> ToolError:
    """
    Create a validation error.

    Args:
        message: Description of the validation failure

    Returns:
        ToolError with VALIDATION_ERROR code
    """
    return ToolError(code=ErrorCode.VALIDATION_ERROR, message=message, retryable=False)


def create_not_found_error(entity: str, record_id: Any) -> ToolError:
    """
    Create a not-found error for a missing record.

    Args:
        entity: Human name of the record type (e.g. "Job", "Deleted job")
        record_id: The id that was looked up

    Returns:
        ToolError with NOT_FOUND code
    """
    return ToolError(
        code=ErrorCode.NOT_FOUND,
        message=f"{entity} not found: {record_id}",
        retryable=False,
    )


def create_precondition_failed_error(message: str, unmet_conditions: List[str]) -> ToolError:
    """
    Create a precondition failure for a guarded status transition.

    The unmet conditions are named both in the message and in details so that
    callers can tell the user exactly what to fix before retrying.
    """
    return ToolError(
        code=ErrorCode.PRECONDITION_FAILED,
        message=f"{message} (unmet: {', '.join(unmet_conditions)})",
        retryable=False,
        details={"unmet_conditions": list(unmet_conditions)},
    )


def create_backend_error(
    message: str, retryable: bool = True, original_error: Optional[Exception] = None
) -> ToolError:
    """
    Create a record store failure.

    Args:
        message: Description of the store error
        retryable: Whether the operation can be retried
        original_error: The original exception

    Returns:
        ToolError with BACKEND_UNAVAILABLE code
    """
    sanitized_message = sanitize_sql_error(message)
    sanitized_message = sanitize_stack_trace(sanitized_message)

    return ToolError(
        code=ErrorCode.BACKEND_UNAVAILABLE,
        message=f"Record store error: {sanitized_message}",
        retryable=retryable,
        original_error=original_error,
    )


def create_partial_failure_error(
    operation: str,
    failed_step: str,
    details: Dict[str, Any],
    original_error: Optional[Exception] = None,
) -> ToolError:
    """
    Create a partial failure for a two-step lifecycle sequence.

    Raised when the first write committed but the second did not, leaving a
    record that an operator must reconcile.

    Args:
        operation: The lifecycle operation (soft_delete, restore)
        failed_step: Name of the step that failed
        details: Ids of the records left behind
        original_error: The error raised by the failed step
    """
    reason = ""
    if original_error is not None:
        reason = ": " + sanitize_stack_trace(str(getattr(original_error, "message", original_error)))
    ids = ", ".join(f"{key}={value}" for key, value in details.items())
    return ToolError(
        code=ErrorCode.PARTIAL_FAILURE,
        message=f"{operation} failed at step '{failed_step}' after earlier steps committed ({ids}){reason}",
        retryable=False,
        original_error=original_error,
        details={"operation": operation, "failed_step": failed_step, **details},
    )


def create_internal_error(message: str, original_error: Optional[Exception] = None) -> ToolError:
    """
    Create an internal error for unexpected exceptions.

    Args:
        message: Description of the internal error
        original_error: The original exception

    Returns:
        ToolError with INTERNAL_ERROR code
    """
    sanitized_message = sanitize_stack_trace(message)

    return ToolError(
        code=ErrorCode.INTERNAL_ERROR,
        message=f"Internal error: {sanitized_message}",
        retryable=True,
        original_error=original_error,
    )
