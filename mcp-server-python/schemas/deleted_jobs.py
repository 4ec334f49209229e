"""Pydantic schemas for the soft-delete lifecycle tools."""

from __future__ import annotations

from typing import Optional

from pydantic import field_validator

from schemas.common import (
    DbPathMixin,
    DeletedJobIdMixin,
    JobIdMixin,
    StrictIgnoreRequest,
    StrictResponse,
    validate_non_empty_str,
    validate_optional_non_empty_str,
)


class SoftDeleteJobRequest(JobIdMixin, DbPathMixin, StrictIgnoreRequest):
    """Request schema for soft_delete_job."""

    deleted_by: str
    reason: Optional[str] = None

    @field_validator("deleted_by")
    @classmethod
    def validate_deleted_by(cls, value: str) -> str:
        return validate_non_empty_str(value)


class RestoreDeletedJobRequest(DeletedJobIdMixin, DbPathMixin, StrictIgnoreRequest):
    """Request schema for restore_deleted_job."""

    restored_by: str

    @field_validator("restored_by")
    @classmethod
    def validate_restored_by(cls, value: str) -> str:
        return validate_non_empty_str(value)


class PurgeDeletedJobRequest(DeletedJobIdMixin, DbPathMixin, StrictIgnoreRequest):
    """Request schema for purge_deleted_job."""

    purged_by: Optional[str] = None

    @field_validator("purged_by")
    @classmethod
    def validate_purged_by(cls, value: Optional[str]) -> Optional[str]:
        return validate_optional_non_empty_str(value)


class ListDeletedJobsRequest(DbPathMixin, StrictIgnoreRequest):
    """Request schema for list_deleted_jobs and reconcile_deleted_jobs."""

    original_job_id: Optional[str] = None

    @field_validator("original_job_id")
    @classmethod
    def validate_original_job_id(cls, value: Optional[str]) -> Optional[str]:
        return validate_optional_non_empty_str(value)


class SoftDeleteJobResponse(StrictResponse):
    """Response schema for soft_delete_job."""

    job_id: str
    deleted_job_id: str
    deleted_by: str
    deleted_at: str


class RestoreDeletedJobResponse(StrictResponse):
    """Response schema for restore_deleted_job."""

    deleted_job_id: str
    original_job_id: str
    new_job_id: str
    status: str


class PurgeDeletedJobResponse(StrictResponse):
    """Response schema for purge_deleted_job."""

    deleted_job_id: str
    original_job_id: str
    purged: bool
