"""
MCP tool handlers for status moves.

advance_job_status and retreat_job_status go through the transition policy
(adjacent moves only, Delivered -> Finished guarded). override_job_status is
the administrative override: any status, no guards.
"""

from typing import Any, Dict, Optional

from pydantic import ValidationError

from db.jobs_repository import JobsRepository
from db.record_store import RecordStore
from models.errors import ToolError, create_internal_error, create_precondition_failed_error
from schemas.jobs import MoveJobStatusRequest, MoveJobStatusResponse, OverrideJobStatusRequest
from utils.pydantic_error_mapper import map_pydantic_validation_error
from utils.transition_policy import TransitionResult, plan_advance, plan_retreat
from utils.validation import validate_status


def build_response(
    job_id: str,
    previous_status: str,
    status: str,
    action: str,
    updated_at: str,
    signal: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a structured move response."""
    return MoveJobStatusResponse(
        job_id=job_id,
        previous_status=previous_status,
        status=status,
        action=action,
        signal=signal,
        updated_at=updated_at,
    ).model_dump(exclude_none=True)


def apply_move(repo: JobsRepository, job_id: str, direction: str) -> Dict[str, Any]:
    """
    Plan and apply one move on an open store.

    Steps:
    1. Load the job (NOT_FOUND if absent)
    2. Plan the move from its current status
    3. Boundary no-op: report the signal, write nothing
    4. Guard failure: raise PRECONDITION_FAILED, write nothing
    5. Otherwise write the target status through the repository

    Raises:
        ToolError: NOT_FOUND, PRECONDITION_FAILED
    """
    job = repo.get(job_id)
    plan: TransitionResult = plan_advance(job) if direction == "advance" else plan_retreat(job)

    if plan.is_noop:
        return build_response(
            job_id=job.id,
            previous_status=job.status.value,
            status=job.status.value,
            action="noop",
            signal=plan.signal,
            updated_at=job.updated_at,
        )

    if not plan.allowed:
        raise create_precondition_failed_error(
            f"Cannot move job {job.id} from {plan.current_status.value} "
            f"to {plan.target_status.value}",
            plan.unmet_conditions,
        )

    updated = repo.set_status(job.id, plan.target_status)
    return build_response(
        job_id=updated.id,
        previous_status=plan.current_status.value,
        status=updated.status.value,
        action="moved",
        updated_at=updated.updated_at,
    )


def _move(args: Dict[str, Any], direction: str) -> Dict[str, Any]:
    try:
        request = MoveJobStatusRequest.model_validate(args)
        with RecordStore(request.db_path) as store:
            response = apply_move(JobsRepository(store), request.job_id, direction)
            store.commit()
        return response

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()


def advance_job_status(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Move a job to the next pipeline status.

    Args:
        args: Dictionary containing parameters:
            - job_id (str): Job to move
            - db_path (str, optional): Database path override

    Returns:
        Dictionary with structure:
        {
            "job_id": str,
            "previous_status": str,
            "status": str,
            "action": "moved" | "noop",
            "signal": "at_terminal",   # only on no-op
            "updated_at": str
        }

        Delivered -> Finished without inSAP and a commercial description
        returns PRECONDITION_FAILED naming the unmet conditions.
    """
    return _move(args, "advance")


def retreat_job_status(args: Dict[str, Any]) -> Dict[str, Any]:
    """Move a job to the previous pipeline status (``signal: at_initial`` at Booked)."""
    return _move(args, "retreat")


def override_job_status(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Administrative override: set any status directly.

    Bypasses adjacency and the Finished guard. Intended for correcting
    mistakes; normal moves should use advance/retreat.

    Args:
        args: Dictionary containing parameters:
            - job_id (str): Job to update
            - status (str): One of Booked, Received, Encoded, Delivered, Finished
            - db_path (str, optional): Database path override
    """
    try:
        request = OverrideJobStatusRequest.model_validate(args)
        status = validate_status(request.status)

        with RecordStore(request.db_path) as store:
            repo = JobsRepository(store)
            previous = repo.get(request.job_id)
            updated = repo.override_status(request.job_id, status)
            store.commit()

        return build_response(
            job_id=updated.id,
            previous_status=previous.status.value,
            status=updated.status.value,
            action="overridden",
            updated_at=updated.updated_at,
        )

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()
