"""
MCP tool handlers for the soft-delete lifecycle.

soft_delete_job, list_deleted_jobs, restore_deleted_job, purge_deleted_job
and reconcile_deleted_jobs. A failure after the first committed step of a
soft delete or restore comes back as PARTIAL_FAILURE with the ids of the
records left behind in ``error.details``.
"""

from typing import Any, Dict

from pydantic import ValidationError

from config import get_config
from db.deleted_jobs_repository import DeletedJobsRepository
from db.record_store import RecordStore
from models.errors import ToolError, create_internal_error
from schemas.deleted_jobs import (
    ListDeletedJobsRequest,
    PurgeDeletedJobRequest,
    PurgeDeletedJobResponse,
    RestoreDeletedJobRequest,
    RestoreDeletedJobResponse,
    SoftDeleteJobRequest,
    SoftDeleteJobResponse,
)
from utils import job_lifecycle
from utils.pydantic_error_mapper import map_pydantic_validation_error


def soft_delete_job(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Move a job to the deleted jobs list.

    Args:
        args: Dictionary containing parameters:
            - job_id (str): Job to delete
            - deleted_by (str): Acting user id
            - reason (str, optional): Free-text reason
            - db_path (str, optional): Database path override

    Returns:
        {"job_id", "deleted_job_id", "deleted_by", "deleted_at"}
    """
    try:
        request = SoftDeleteJobRequest.model_validate(args)
        with RecordStore(request.db_path) as store:
            tombstone = job_lifecycle.soft_delete(
                store, request.job_id, request.deleted_by, request.reason or ""
            )
        return SoftDeleteJobResponse(
            job_id=tombstone.original_job_id,
            deleted_job_id=tombstone.id,
            deleted_by=tombstone.deleted_by,
            deleted_at=tombstone.deleted_at,
        ).model_dump()

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()


def list_deleted_jobs(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    List tombstones, most recently deleted first.

    Each entry is the full snapshot plus deletion metadata, ``purgeEligible``
    and ``purgeEligibleAt`` (deletedAt + the configured retention period).
    ``original_job_id`` narrows the list to the tombstones of one job.
    """
    try:
        request = ListDeletedJobsRequest.model_validate(args)
        retention_days = get_config().tombstone_retention_days
        with RecordStore(request.db_path) as store:
            entries = job_lifecycle.list_deleted_jobs(
                store, retention_days, original_job_id=request.original_job_id
            )
        return {
            "deleted_jobs": entries,
            "count": len(entries),
            "retention_days": retention_days,
        }

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()


def restore_deleted_job(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Restore a tombstone as a new job (new id, same fields and status).

    Args:
        args: Dictionary containing parameters:
            - deleted_job_id (str): Tombstone record id
            - restored_by (str): Acting user id
            - db_path (str, optional): Database path override
    """
    try:
        request = RestoreDeletedJobRequest.model_validate(args)
        with RecordStore(request.db_path) as store:
            original_job_id = DeletedJobsRepository(store).get(request.deleted_job_id).original_job_id
            job = job_lifecycle.restore(store, request.deleted_job_id, request.restored_by)
        return RestoreDeletedJobResponse(
            deleted_job_id=request.deleted_job_id,
            original_job_id=original_job_id,
            new_job_id=job.id,
            status=job.status.value,
        ).model_dump()

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()


def purge_deleted_job(args: Dict[str, Any]) -> Dict[str, Any]:
    """Permanently delete a tombstone. Irreversible; no confirmation here."""
    try:
        request = PurgeDeletedJobRequest.model_validate(args)
        with RecordStore(request.db_path) as store:
            tombstone = job_lifecycle.purge(store, request.deleted_job_id, request.purged_by)
        return PurgeDeletedJobResponse(
            deleted_job_id=tombstone.id,
            original_job_id=tombstone.original_job_id,
            purged=True,
        ).model_dump()

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()


def reconcile_deleted_jobs(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Report interrupted soft deletes and restores.

    Read-only: lists each issue with a suggested action for an operator.
    """
    try:
        request = ListDeletedJobsRequest.model_validate(args)
        with RecordStore(request.db_path) as store:
            issues = job_lifecycle.find_reconciliation_issues(store)
        return {"issues": issues, "count": len(issues)}

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()
