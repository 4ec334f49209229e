"""
Soft-delete lifecycle: soft delete, restore, purge and reconciliation.

Soft delete and restore are two separately committed steps each:

    soft_delete: write tombstone  -> commit -> remove job       -> commit
    restore:     create new job   -> commit -> remove tombstone -> commit

The first step always comes first so that a failure never loses data. A
failure in the second step leaves a duplicate behind and is raised as
PARTIAL_FAILURE naming both records. ``find_reconciliation_issues`` lists
every such leftover so an operator can finish or undo the sequence.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from db.deleted_jobs_repository import DeletedJobsRepository, snapshot_of
from db.jobs_repository import JobsRepository
from db.record_store import RecordStore
from models.errors import ToolError, create_partial_failure_error
from models.job import DeletedJob, Job, to_document
from utils.validation import get_current_utc_timestamp, parse_utc_timestamp, validate_actor

logger = logging.getLogger(__name__)

ISSUE_SOFT_DELETE_INCOMPLETE = "soft_delete_incomplete"
ISSUE_RESTORE_SUSPECTED_INCOMPLETE = "restore_suspected_incomplete"


def soft_delete(
    store: RecordStore,
    job_id: str,
    deleted_by: str,
    reason: str = "",
    now: Optional[datetime] = None,
) -> DeletedJob:
    """
    Move a job into a tombstone.

    Args:
        store: Open record store
        job_id: Active job to delete
        deleted_by: Identity of the acting user
        reason: Optional free-text deletion reason
        now: Deletion instant (defaults to the current time)

    Returns:
        The tombstone that was written

    Raises:
        ToolError: NOT_FOUND if the job does not exist, PARTIAL_FAILURE if
            the tombstone was written but the job could not be removed
    """
    validate_actor(deleted_by, "deleted_by")
    jobs = JobsRepository(store)
    deleted_jobs = DeletedJobsRepository(store)

    # Step 1: snapshot
    job = jobs.get(job_id)
    tombstone = deleted_jobs.create_from_job(job, deleted_by, reason, now)
    store.commit()

    # Step 2: remove from the active set
    try:
        removed = jobs.delete(job_id)
        store.commit()
    except ToolError as e:
        logger.error(
            f"Soft delete of job {job_id} by {deleted_by} left tombstone {tombstone.id} "
            f"while the job is still active: {e.message}"
        )
        raise create_partial_failure_error(
            operation="soft_delete",
            failed_step="remove_job",
            details={"tombstone_id": tombstone.id, "job_id": job_id},
            original_error=e,
        ) from e

    if not removed:
        logger.warning(f"Job {job_id} disappeared before soft delete removed it")

    logger.info(
        f"Job {job_id} ({job.clock_number_media_name}) soft-deleted by {deleted_by} "
        f"as tombstone {tombstone.id}"
    )
    return tombstone


def restore(
    store: RecordStore,
    deleted_job_id: str,
    restored_by: str,
    now: Optional[datetime] = None,
) -> Job:
    """
    Recreate a job from a tombstone, then consume the tombstone.

    The new job gets a new id and fresh timestamps; every other field,
    status included, comes from the snapshot.

    Raises:
        ToolError: NOT_FOUND if the tombstone does not exist, PARTIAL_FAILURE
            if the job was recreated but the tombstone could not be removed
    """
    validate_actor(restored_by, "restored_by")
    jobs = JobsRepository(store)
    deleted_jobs = DeletedJobsRepository(store)

    # Step 1: recreate
    tombstone = deleted_jobs.get(deleted_job_id)
    job = jobs.insert_snapshot(snapshot_of(tombstone), now)
    store.commit()

    # Step 2: consume the tombstone
    try:
        deleted_jobs.delete(deleted_job_id)
        store.commit()
    except ToolError as e:
        logger.error(
            f"Restore of tombstone {deleted_job_id} by {restored_by} created job {job.id} "
            f"but left the tombstone in place: {e.message}"
        )
        raise create_partial_failure_error(
            operation="restore",
            failed_step="remove_tombstone",
            details={"tombstone_id": deleted_job_id, "restored_job_id": job.id},
            original_error=e,
        ) from e

    logger.info(
        f"Tombstone {deleted_job_id} restored by {restored_by} as job {job.id} "
        f"(originally {tombstone.original_job_id})"
    )
    return job


def purge(store: RecordStore, deleted_job_id: str, purged_by: Optional[str] = None) -> DeletedJob:
    """
    Permanently delete a tombstone.

    Unconditional: the retention period is advisory and confirmation is the
    caller's concern.

    Raises:
        ToolError: NOT_FOUND if the tombstone does not exist
    """
    deleted_jobs = DeletedJobsRepository(store)
    tombstone = deleted_jobs.get(deleted_job_id)
    deleted_jobs.delete(deleted_job_id)
    store.commit()
    logger.info(
        f"Tombstone {deleted_job_id} (job {tombstone.original_job_id}) purged"
        + (f" by {purged_by}" if purged_by else "")
    )
    return tombstone


def purge_eligible_at(deleted_job: DeletedJob, retention_days: int) -> Optional[datetime]:
    deleted_at = parse_utc_timestamp(deleted_job.deleted_at)
    if deleted_at is None:
        return None
    return deleted_at + timedelta(days=retention_days)


def list_deleted_jobs(
    store: RecordStore,
    retention_days: int,
    now: Optional[datetime] = None,
    original_job_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Tombstones newest first, each with its purge eligibility.

    A tombstone becomes eligible once it is ``retention_days`` old. With
    ``original_job_id`` only the tombstones taken from that job are listed.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    repo = DeletedJobsRepository(store)
    if original_job_id is None:
        deleted_jobs = repo.list_all()
    else:
        deleted_jobs = repo.find_by_original_job_id(original_job_id)

    entries = []
    for deleted_job in deleted_jobs:
        eligible_at = purge_eligible_at(deleted_job, retention_days)
        entry = to_document(deleted_job)
        entry["purgeEligible"] = eligible_at is not None and now >= eligible_at
        entry["purgeEligibleAt"] = (
            get_current_utc_timestamp(eligible_at) if eligible_at is not None else None
        )
        entries.append(entry)
    return entries


def find_reconciliation_issues(store: RecordStore) -> List[Dict[str, Any]]:
    """
    Join tombstones against active jobs to find interrupted sequences.

    - ``soft_delete_incomplete``: the tombstone's original job is still active.
    - ``restore_suspected_incomplete``: an active job created after the
      deletion carries exactly the tombstone's snapshot fields, which is what
      a restore that failed to consume its tombstone leaves behind. A job
      re-booked under the same clock number with different details is not
      reported.
    """
    active_jobs = JobsRepository(store).list_all()
    active_by_id = {job.id: job for job in active_jobs}

    issues: List[Dict[str, Any]] = []
    for tombstone in DeletedJobsRepository(store).list_all():
        if tombstone.original_job_id in active_by_id:
            issues.append(
                {
                    "kind": ISSUE_SOFT_DELETE_INCOMPLETE,
                    "deletedJobId": tombstone.id,
                    "originalJobId": tombstone.original_job_id,
                    "activeJobId": tombstone.original_job_id,
                    "clockNumberMediaName": tombstone.clock_number_media_name,
                    "suggestedAction": (
                        "purge the tombstone, then soft-delete the active job again "
                        "if it should be deleted"
                    ),
                }
            )
            continue

        deleted_at = parse_utc_timestamp(tombstone.deleted_at)
        if deleted_at is None:
            continue
        snapshot = snapshot_of(tombstone)
        for job in active_jobs:
            created_at = parse_utc_timestamp(job.created_at)
            if (
                created_at is not None
                and created_at > deleted_at
                and job.snapshot() == snapshot
            ):
                issues.append(
                    {
                        "kind": ISSUE_RESTORE_SUSPECTED_INCOMPLETE,
                        "deletedJobId": tombstone.id,
                        "originalJobId": tombstone.original_job_id,
                        "activeJobId": job.id,
                        "clockNumberMediaName": tombstone.clock_number_media_name,
                        "suggestedAction": "purge the tombstone if the active job is the restored copy",
                    }
                )

    return issues
