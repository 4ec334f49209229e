"""Pydantic schemas for the job CRUD, listing and status tools."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, field_validator

from schemas.common import (
    DbPathMixin,
    JobIdMixin,
    StrictIgnoreRequest,
    StrictResponse,
    validate_optional_non_empty_str,
)


class CreateJobRequest(DbPathMixin, StrictIgnoreRequest):
    """Request schema for create_job."""

    job: Dict[str, Any]
    actor: Optional[str] = None

    @field_validator("actor")
    @classmethod
    def validate_actor(cls, value: Optional[str]) -> Optional[str]:
        return validate_optional_non_empty_str(value)


class GetJobRequest(JobIdMixin, DbPathMixin, StrictIgnoreRequest):
    """Request schema for get_job."""


class UpdateJobRequest(JobIdMixin, DbPathMixin, StrictIgnoreRequest):
    """Request schema for update_job."""

    changes: Dict[str, Any]


class ListFilterMixin(BaseModel):
    """Report filter parameters shared by list_jobs and export_jobs_csv."""

    status_group: Optional[str] = None
    statuses: Optional[list[str]] = None
    search_query: Optional[str] = None
    delivery_start_date: Optional[str] = None
    delivery_end_date: Optional[str] = None
    sort_by: Optional[str] = None
    sort_direction: Optional[str] = None

    def filter_args(self) -> Dict[str, Any]:
        return {
            "status_group": self.status_group,
            "statuses": self.statuses,
            "search_query": self.search_query,
            "delivery_start_date": self.delivery_start_date,
            "delivery_end_date": self.delivery_end_date,
            "sort_by": self.sort_by,
            "sort_direction": self.sort_direction,
        }


class ListJobsRequest(ListFilterMixin, DbPathMixin, StrictIgnoreRequest):
    """Request schema for list_jobs."""


class GetJobBoardRequest(DbPathMixin, StrictIgnoreRequest):
    """Request schema for get_job_board."""

    status_group: str = "open"

    @field_validator("status_group")
    @classmethod
    def validate_status_group(cls, value: str) -> str:
        if value not in ("open", "finished"):
            raise ValueError("must be 'open' or 'finished'")
        return value


class MoveJobStatusRequest(JobIdMixin, DbPathMixin, StrictIgnoreRequest):
    """Request schema for advance_job_status and retreat_job_status."""


class OverrideJobStatusRequest(JobIdMixin, DbPathMixin, StrictIgnoreRequest):
    """Request schema for override_job_status."""

    status: str


class MoveJobStatusResponse(StrictResponse):
    """Response schema for guarded status moves and overrides."""

    job_id: str
    previous_status: str
    status: str
    action: str
    signal: Optional[str] = None
    updated_at: str


class ExportJobsCsvRequest(ListFilterMixin, DbPathMixin, StrictIgnoreRequest):
    """Request schema for export_jobs_csv."""

    output_path: Optional[str] = None

    @field_validator("output_path")
    @classmethod
    def validate_output_path(cls, value: Optional[str]) -> Optional[str]:
        return validate_optional_non_empty_str(value)


class ExportJobsCsvResponse(StrictResponse):
    """Response schema for export_jobs_csv."""

    filename: str
    row_count: int
    csv: str
    output_path: Optional[str] = None
