"""
Tombstone repository for soft-deleted jobs (``deleted_jobs`` table).

Like the job repository it never commits; the lifecycle manager decides
where each step ends.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from db.jobs_repository import fields_to_row, row_to_fields
from db.record_store import RecordStore
from models.errors import create_not_found_error
from models.job import SNAPSHOT_FIELDS, DeletedJob, Job
from utils.validation import get_current_utc_timestamp


def row_to_deleted_job(row: Dict[str, Any]) -> DeletedJob:
    return DeletedJob.model_validate(row_to_fields(row))


class DeletedJobsRepository:
    """Create, read and remove tombstones."""

    def __init__(self, store: RecordStore):
        self.store = store

    def find(self, deleted_job_id: str) -> Optional[DeletedJob]:
        row = self.store.get("deleted_jobs", deleted_job_id)
        return row_to_deleted_job(row) if row is not None else None

    def get(self, deleted_job_id: str) -> DeletedJob:
        """
        Fetch a tombstone by its own record id.

        Raises:
            ToolError: NOT_FOUND if the tombstone does not exist
        """
        deleted_job = self.find(deleted_job_id)
        if deleted_job is None:
            raise create_not_found_error("Deleted job", deleted_job_id)
        return deleted_job

    def create_from_job(
        self,
        job: Job,
        deleted_by: str,
        reason: str = "",
        now: Optional[datetime] = None,
    ) -> DeletedJob:
        """Write a full snapshot of ``job`` plus deletion metadata."""
        row = fields_to_row(job.snapshot())
        row["id"] = str(uuid.uuid4())
        row["original_job_id"] = job.id
        row["deleted_by"] = deleted_by
        row["deleted_at"] = get_current_utc_timestamp(now)
        row["deletion_reason"] = reason or ""
        self.store.insert("deleted_jobs", row)
        return row_to_deleted_job(row)

    def delete(self, deleted_job_id: str) -> bool:
        """Permanently remove a tombstone. Returns False if it was already gone."""
        return self.store.delete("deleted_jobs", deleted_job_id) > 0

    def list_all(self) -> List[DeletedJob]:
        """Every tombstone, most recent deletion first."""
        rows = self.store.select("deleted_jobs", order_by="deleted_at DESC, id ASC")
        return [row_to_deleted_job(row) for row in rows]

    def find_by_original_job_id(self, original_job_id: str) -> List[DeletedJob]:
        """
        Tombstones created from a given job id.

        Scans every tombstone: there is no index on original_job_id, which is
        fine for the small number of deleted jobs kept at any one time.
        """
        return [
            deleted_job
            for deleted_job in self.list_all()
            if deleted_job.original_job_id == original_job_id
        ]


def snapshot_of(deleted_job: DeletedJob) -> Dict[str, Any]:
    """The job fields to restore from a tombstone."""
    return {name: getattr(deleted_job, name) for name in SNAPSHOT_FIELDS}
