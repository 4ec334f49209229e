"""
Input validation utilities for AccessFlow tools.

Validates ids, actor identities, statuses, initials and timestamps, raising
VALIDATION_ERROR ToolErrors with messages that name the offending field.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from models.errors import create_validation_error
from models.job import INITIALS_PATTERN
from models.status import JobStatus, ALL_JOB_STATUSES_ORDERED


def validate_record_id(record_id: Any, field_name: str = "id") -> str:
    """
    Validate an opaque record id.

    Args:
        record_id: The id value to validate
        field_name: Name used in error messages

    Returns:
        Validated id string

    Raises:
        ToolError: If the id is missing, not a string, or blank
    """
    if record_id is None:
        raise create_validation_error(f"Invalid {field_name}: cannot be null")

    if not isinstance(record_id, str):
        raise create_validation_error(
            f"Invalid {field_name} type: expected string, got {type(record_id).__name__}"
        )

    if not record_id.strip():
        raise create_validation_error(f"Invalid {field_name}: cannot be empty")

    return record_id


def validate_actor(actor: Any, field_name: str) -> str:
    """
    Validate the identity of the user performing an action.

    The acting identity is always passed explicitly (``deleted_by``,
    ``restored_by``); there is no ambient session.
    """
    return validate_record_id(actor, field_name)


def validate_status(status: Any, field_name: str = "status") -> JobStatus:
    """
    Validate a status value against the five pipeline statuses.

    Matching is case-sensitive, as in stored documents.

    Raises:
        ToolError: If status is missing or not a pipeline status
    """
    if status is None:
        raise create_validation_error(f"Invalid {field_name}: cannot be null")

    if not isinstance(status, str):
        raise create_validation_error(
            f"Invalid {field_name} type: expected string, got {type(status).__name__}"
        )

    if not status:
        raise create_validation_error(f"Invalid {field_name}: cannot be empty")

    try:
        return JobStatus(status)
    except ValueError:
        allowed = ", ".join(s.value for s in ALL_JOB_STATUSES_ORDERED)
        raise create_validation_error(
            f"Invalid {field_name} value: '{status}'. Must be one of: {allowed}."
        )


def validate_initials(initials: Any) -> str:
    """Validate user initials: two or three uppercase letters."""
    if not isinstance(initials, str) or not INITIALS_PATTERN.match(initials):
        raise create_validation_error(
            "Invalid initials: must be 2 or 3 uppercase letters (e.g. 'AB' or 'ABC')"
        )
    return initials


def validate_service_height(height: Any) -> int:
    """Validate the saved job form services panel height."""
    if isinstance(height, bool) or not isinstance(height, int):
        raise create_validation_error(
            f"Invalid jobFormServiceHeight type: expected integer, got {type(height).__name__}"
        )
    if height < 0:
        raise create_validation_error(
            f"Invalid jobFormServiceHeight: {height} must be zero or positive"
        )
    return height


def get_current_utc_timestamp(now: Optional[datetime] = None) -> str:
    """
    Generate a UTC timestamp in ISO 8601 format with millisecond precision.

    Returns a timestamp string in the format: YYYY-MM-DDTHH:MM:SS.mmmZ
    Example: 2026-02-04T03:47:36.966Z

    Args:
        now: Optional instant to format instead of the current time

    Returns:
        ISO 8601 UTC timestamp string with millisecond precision and Z suffix
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_utc_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a stored ISO timestamp into an aware UTC datetime.

    Returns None for missing or unparseable values.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
