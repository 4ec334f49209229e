"""
Job repository: maps Job models to and from ``jobs`` rows in the record store.

The repository never commits. Callers own the transaction boundary so that
multi-step lifecycle flows can commit each step on its own.
"""

import logging
import uuid
from datetime import datetime, tzinfo
from typing import Any, Dict, List, Optional

from db.record_store import RecordStore
from models.errors import create_not_found_error, create_validation_error
from models.job import (
    SNAPSHOT_FIELDS,
    Job,
    JobCreateInput,
    JobUpdateInput,
    dump_services_json,
    load_services_json,
)
from models.status import INITIAL_STATUS, JobStatus
from utils.job_filters import JobListFilter, apply_list_filter
from utils.validation import get_current_utc_timestamp

logger = logging.getLogger(__name__)

BOOLEAN_FIELDS = ("priority", "on_hold", "in_sap", "stellar_task")
NULLABLE_FIELDS = ("rate", "adjusted", "inputter", "verifier", "extcosts", "billingnotes")


def fields_to_row(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert snapshot fields (attribute names, model values) to row columns.

    Services become ``services_json``, booleans become 0/1, statuses their
    string value. A None written to a non-nullable text column is stored as
    the empty string.
    """
    row: Dict[str, Any] = {}
    for name, value in fields.items():
        if name == "services":
            row["services_json"] = dump_services_json(value or [])
        elif name in BOOLEAN_FIELDS:
            row[name] = 1 if value else 0
        elif name == "status":
            row[name] = JobStatus(value).value
        elif value is None and name not in NULLABLE_FIELDS:
            row[name] = ""
        else:
            row[name] = value
    return row


def row_to_fields(row: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a jobs or deleted_jobs row back to model attribute values."""
    fields: Dict[str, Any] = {}
    for column, value in row.items():
        if column == "services_json":
            fields["services"] = load_services_json(value)
        elif column in BOOLEAN_FIELDS:
            fields[column] = bool(value)
        else:
            fields[column] = value
    return fields


def row_to_job(row: Dict[str, Any]) -> Job:
    return Job.model_validate(row_to_fields(row))


class JobsRepository:
    """
    CRUD over active jobs.

    Raw removal (``delete``) and status-preserving inserts
    (``insert_snapshot``) exist for the soft-delete lifecycle only; every
    other caller goes through ``create``/``update`` or the status paths.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def find(self, job_id: str) -> Optional[Job]:
        row = self.store.get("jobs", job_id)
        return row_to_job(row) if row is not None else None

    def get(self, job_id: str) -> Job:
        """
        Fetch a job by id.

        Raises:
            ToolError: NOT_FOUND if no active job has this id
        """
        job = self.find(job_id)
        if job is None:
            raise create_not_found_error("Job", job_id)
        return job

    def create(self, data: JobCreateInput, now: Optional[datetime] = None) -> Job:
        """
        Persist a new job.

        Status is forced to Booked regardless of input. createdAt and
        updatedAt share one timestamp.
        """
        timestamp = get_current_utc_timestamp(now)
        fields = {name: getattr(data, name) for name in SNAPSHOT_FIELDS if name != "status"}
        fields["status"] = INITIAL_STATUS
        return self._insert(fields, timestamp)

    def insert_snapshot(self, snapshot: Dict[str, Any], now: Optional[datetime] = None) -> Job:
        """
        Create a job from a tombstone snapshot, keeping its status.

        A new id and fresh timestamps are assigned; the snapshot's former id
        is never reused.
        """
        missing = [name for name in SNAPSHOT_FIELDS if name not in snapshot]
        if missing:
            raise create_validation_error(
                f"Snapshot is missing fields: {', '.join(sorted(missing))}"
            )
        timestamp = get_current_utc_timestamp(now)
        return self._insert({name: snapshot[name] for name in SNAPSHOT_FIELDS}, timestamp)

    def _insert(self, fields: Dict[str, Any], timestamp: str) -> Job:
        row = fields_to_row(fields)
        row["id"] = str(uuid.uuid4())
        row["created_at"] = timestamp
        row["updated_at"] = timestamp
        self.store.insert("jobs", row)
        return row_to_job(row)

    def update(self, job_id: str, patch: JobUpdateInput, now: Optional[datetime] = None) -> Job:
        """
        Merge the explicitly set fields of ``patch`` onto a job.

        updatedAt is rewritten even when the patch is empty. A ``status`` in
        the patch is written as-is, without transition guards.
        """
        self.get(job_id)
        row = fields_to_row(patch.patch_fields())
        row["updated_at"] = get_current_utc_timestamp(now)
        self.store.update("jobs", job_id, row)
        return self.get(job_id)

    def set_status(self, job_id: str, status: JobStatus, now: Optional[datetime] = None) -> Job:
        """Write a status that has already passed the transition engine."""
        self.get(job_id)
        self.store.update(
            "jobs",
            job_id,
            {"status": JobStatus(status).value, "updated_at": get_current_utc_timestamp(now)},
        )
        return self.get(job_id)

    def override_status(
        self, job_id: str, status: JobStatus, now: Optional[datetime] = None
    ) -> Job:
        """
        Administrative override: write any status without transition guards.

        Used by the inbound email automation and for manual correction. Skipping
        statuses and finishing without the Finished guard are both allowed here.
        """
        job = self.set_status(job_id, status, now)
        logger.info(f"Administrative status override: job {job_id} -> {job.status.value}")
        return job

    def delete(self, job_id: str) -> bool:
        """Remove an active job row. Returns False if it was already gone."""
        return self.store.delete("jobs", job_id) > 0

    def list_all(self) -> List[Job]:
        """Every active job in creation order."""
        rows = self.store.select("jobs", order_by="created_at ASC, id ASC")
        return [row_to_job(row) for row in rows]

    def list(self, job_filter: JobListFilter, tz: tzinfo) -> List[Job]:
        """Filtered and sorted view of active jobs."""
        return apply_list_filter(self.list_all(), job_filter, tz)

    def find_by_clock_number(self, clock_number: str) -> List[Job]:
        """
        Find jobs whose name segment before the first ``/`` equals ``clock_number``.

        ``ABC123`` matches ``ABC123/Trailer`` and ``ABC123`` but not
        ``ABC1234/Trailer``. Results are ordered by createdAt then id.
        """
        rows = self.store.select(
            "jobs",
            where=(
                "clock_number_media_name = ? "
                "OR substr(clock_number_media_name, 1, length(?) + 1) = ? || '/'"
            ),
            params=(clock_number, clock_number, clock_number),
            order_by="created_at ASC, id ASC",
        )
        jobs = [row_to_job(row) for row in rows]
        # A clock number containing "/" can prefix-match in SQL without being the first segment
        return [job for job in jobs if job.clock_number_media_name.split("/", 1)[0] == clock_number]

    def save_imported(self, job: Job) -> None:
        """Insert or replace a job keeping its id, status and timestamps (import only)."""
        row = fields_to_row(job.snapshot())
        row["id"] = job.id
        row["created_at"] = job.created_at
        row["updated_at"] = job.updated_at
        self.store.upsert("jobs", row)
