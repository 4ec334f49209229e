"""
MCP tool handlers for job CRUD and the report listing.

create_job, get_job, update_job and list_jobs. Each handler validates its
request, runs inside one record store transaction and returns either a
result dict or the structured ``{"error": {...}}`` dict.
"""

from typing import Any, Dict

from pydantic import ValidationError

from config import get_config
from db.jobs_repository import JobsRepository
from db.record_store import RecordStore
from db.user_prefs_repository import UserPrefsRepository
from models.errors import ToolError, create_internal_error
from models.job import JobCreateInput, JobUpdateInput, to_document
from schemas.jobs import CreateJobRequest, GetJobRequest, ListJobsRequest, UpdateJobRequest
from utils.job_filters import JobListFilter
from utils.pydantic_error_mapper import map_pydantic_validation_error


def create_job(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a job in status Booked.

    Args:
        args: Dictionary containing parameters:
            - job (dict): Job fields in camelCase (clockNumberMediaName,
              services, deliveryDate required). A ``status`` is ignored.
            - actor (str, optional): Acting user id; their saved initials
              fill an empty ``creator``
            - db_path (str, optional): Database path override

    Returns:
        {"job": {...}} with the assigned id and timestamps, or an error dict
    """
    try:
        request = CreateJobRequest.model_validate(args)
        data = JobCreateInput.model_validate(request.job)

        with RecordStore(request.db_path) as store:
            if request.actor and not data.creator.strip():
                initials = UserPrefsRepository(store).get(request.actor).initials
                if initials:
                    data.creator = initials

            job = JobsRepository(store).create(data)
            store.commit()

        return {"job": to_document(job)}

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()


def get_job(args: Dict[str, Any]) -> Dict[str, Any]:
    """Fetch one job by id. Returns {"job": {...}} or a NOT_FOUND error."""
    try:
        request = GetJobRequest.model_validate(args)
        with RecordStore(request.db_path) as store:
            job = JobsRepository(store).get(request.job_id)
        return {"job": to_document(job)}

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()


def update_job(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply a partial update to a job.

    Only the keys present in ``changes`` are written and updatedAt is always
    refreshed. The update is all-or-nothing: an invalid key or value rejects
    the whole patch and nothing is written.

    Args:
        args: Dictionary containing parameters:
            - job_id (str): Job to update
            - changes (dict): camelCase fields to overwrite. ``status`` is
              allowed and is written without transition guards.
            - db_path (str, optional): Database path override
    """
    try:
        request = UpdateJobRequest.model_validate(args)
        patch = JobUpdateInput.model_validate(request.changes)

        with RecordStore(request.db_path) as store:
            job = JobsRepository(store).update(request.job_id, patch)
            store.commit()

        return {"job": to_document(job)}

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()


def list_jobs(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Report listing: status, search and delivery-date filters plus a sort.

    Args:
        args: Dictionary containing parameters:
            - status_group (str, optional): "open" or "finished"
            - statuses (list[str], optional): explicit statuses
            - search_query (str, optional): case-insensitive substring
            - delivery_start_date / delivery_end_date (str, optional):
              inclusive ISO date bounds
            - sort_by (str, optional): column key (default updatedAt)
            - sort_direction (str, optional): "asc" or "desc"
            - db_path (str, optional): Database path override

    Returns:
        {"jobs": [...], "count": int}
    """
    try:
        request = ListJobsRequest.model_validate(args)
        job_filter = JobListFilter.model_validate(request.filter_args())
        tz = get_config().tzinfo

        with RecordStore(request.db_path) as store:
            jobs = JobsRepository(store).list(job_filter, tz)

        return {"jobs": [to_document(job) for job in jobs], "count": len(jobs)}

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()
