"""
Status update triggered by the inbound email automation.

The automation posts ``{"clockNumber": "ABC123", "newStatus": "Delivered"}``.
The job whose clock number/media name segment before the first ``/`` equals
``clockNumber`` gets the new status through the administrative override, so
the Finished guard and adjacency rules do not apply on this path.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from db.jobs_repository import JobsRepository
from db.record_store import RecordStore
from models.errors import (
    ErrorCode,
    ToolError,
    create_internal_error,
    create_validation_error,
)
from models.job import Job
from schemas.webhook import UpdateStatusFromEmailRequest
from utils.validation import validate_status

logger = logging.getLogger(__name__)


def parse_request(body: Any) -> UpdateStatusFromEmailRequest:
    """
    Validate the webhook body.

    Raises:
        ToolError: VALIDATION_ERROR naming what was received when a field
            is missing or the body is not an object
    """
    if not isinstance(body, dict):
        raise create_validation_error("Missing required fields. Request body must be a JSON object")
    try:
        return UpdateStatusFromEmailRequest.model_validate(body)
    except ValidationError as e:
        raise create_validation_error(
            "Missing required fields. "
            f"Received: clockNumber={body.get('clockNumber')}, newStatus={body.get('newStatus')}"
        ) from e


def update_status_from_email(body: Any, db_path: Optional[str] = None) -> Tuple[Job, str]:
    """
    Apply an email-triggered status update.

    Returns:
        (updated job, success message)

    Raises:
        ToolError: VALIDATION_ERROR for a bad body or status, NOT_FOUND when
            no job matches, BACKEND_UNAVAILABLE on store failure
    """
    request = parse_request(body)
    status = validate_status(request.new_status, "newStatus")
    clock_number = request.clock_number

    with RecordStore(db_path) as store:
        repo = JobsRepository(store)
        matches = repo.find_by_clock_number(clock_number)

        if not matches:
            raise ToolError(
                code=ErrorCode.NOT_FOUND,
                message=(
                    "No job found where the prefix of clockNumberMediaName "
                    f"matches '{clock_number}'."
                ),
            )

        target = matches[0]
        if len(matches) > 1:
            others = ", ".join(
                f"'{job.clock_number_media_name}' (ID: {job.id})" for job in matches[1:]
            )
            logger.warning(
                f"Multiple jobs ({len(matches)}) found with clockNumberMediaName prefix "
                f"'{clock_number}'. Updating the earliest created (ID: {target.id}, "
                f"Full Name: '{target.clock_number_media_name}'). Other matches: {others}."
            )

        job = repo.override_status(target.id, status)
        store.commit()

    message = (
        f"Successfully updated job (ID: '{job.id}') which matched prefix '{clock_number}' "
        f"(Full Clock Nr/Media Name: '{job.clock_number_media_name}') to status: "
        f"\"{job.status.value}\", updatedAt: \"{job.updated_at}\"."
    )
    logger.info(message)
    return job, message


def update_status_from_email_tool(args: Dict[str, Any]) -> Dict[str, Any]:
    """MCP wrapper: same contract as the webhook, returning a dict."""
    try:
        body = {key: value for key, value in args.items() if key != "db_path"}
        job, message = update_status_from_email(body, args.get("db_path"))
        return {"job_id": job.id, "status": job.status.value, "message": message}
    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()
