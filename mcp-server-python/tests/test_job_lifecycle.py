"""
Tests for the soft-delete lifecycle: soft delete, restore, purge and
reconciliation of interrupted sequences.
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from db.deleted_jobs_repository import DeletedJobsRepository
from db.jobs_repository import JobsRepository
from db.record_store import RecordStore
from models.errors import ErrorCode, ToolError, create_backend_error
from models.job import JobCreateInput
from models.status import JobStatus
from utils import job_lifecycle

DELETED_AT = datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)
RESTORED_AT = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "accessflow.db")


def seed_job(db_path, name="ABC123/Trailer", status=JobStatus.BOOKED):
    with RecordStore(db_path) as store:
        repo = JobsRepository(store)
        job = repo.create(
            JobCreateInput.model_validate(
                {
                    "clockNumberMediaName": name,
                    "services": [{"name": "Other", "customName": "Dubbing", "notes": "FR"}],
                    "deliveryDate": "2026-03-04",
                    "client": "Acme",
                    "rate": 90,
                }
            ),
            now=datetime(2026, 2, 1, tzinfo=timezone.utc),
        )
        if status != JobStatus.BOOKED:
            job = repo.set_status(job.id, status)
        store.commit()
    return job


class TestSoftDelete:
    """Tests for soft_delete."""

    def test_moves_job_into_tombstone(self, db_path):
        job = seed_job(db_path, status=JobStatus.ENCODED)

        with RecordStore(db_path) as store:
            tombstone = job_lifecycle.soft_delete(store, job.id, "user-7", "duplicate", now=DELETED_AT)

        with RecordStore(db_path) as store:
            assert JobsRepository(store).find(job.id) is None
            stored = DeletedJobsRepository(store).get(tombstone.id)

        assert stored.original_job_id == job.id
        assert stored.deleted_by == "user-7"
        assert stored.deleted_at == "2026-03-01T10:00:00.000Z"
        assert stored.deletion_reason == "duplicate"
        assert stored.snapshot() == job.snapshot()

    def test_missing_job(self, db_path):
        with RecordStore(db_path) as store:
            with pytest.raises(ToolError) as exc_info:
                job_lifecycle.soft_delete(store, "missing", "user-7")
        assert exc_info.value.code == ErrorCode.NOT_FOUND

    def test_blank_actor_rejected(self, db_path):
        job = seed_job(db_path)
        with RecordStore(db_path) as store:
            with pytest.raises(ToolError) as exc_info:
                job_lifecycle.soft_delete(store, job.id, " ")
        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR

    def test_second_step_failure_is_partial_failure(self, db_path):
        job = seed_job(db_path)

        with patch.object(
            JobsRepository, "delete", side_effect=create_backend_error("disk I/O error")
        ):
            with RecordStore(db_path) as store:
                with pytest.raises(ToolError) as exc_info:
                    job_lifecycle.soft_delete(store, job.id, "user-7", now=DELETED_AT)

        error = exc_info.value
        assert error.code == ErrorCode.PARTIAL_FAILURE
        assert error.details["failed_step"] == "remove_job"
        assert error.details["job_id"] == job.id

        # Tombstone was committed before the failure; the job is still active
        with RecordStore(db_path) as store:
            assert JobsRepository(store).find(job.id) is not None
            assert DeletedJobsRepository(store).find(error.details["tombstone_id"]) is not None
            issues = job_lifecycle.find_reconciliation_issues(store)

        assert len(issues) == 1
        assert issues[0]["kind"] == job_lifecycle.ISSUE_SOFT_DELETE_INCOMPLETE
        assert issues[0]["activeJobId"] == job.id


class TestRestore:
    """Tests for restore."""

    def test_restores_under_new_id_with_same_fields(self, db_path):
        job = seed_job(db_path, status=JobStatus.DELIVERED)
        with RecordStore(db_path) as store:
            tombstone = job_lifecycle.soft_delete(store, job.id, "user-7", now=DELETED_AT)

        with RecordStore(db_path) as store:
            restored = job_lifecycle.restore(store, tombstone.id, "user-8", now=RESTORED_AT)

        assert restored.id != job.id
        assert restored.status == JobStatus.DELIVERED
        assert restored.snapshot() == job.snapshot()
        assert restored.created_at == "2026-03-02T10:00:00.000Z"

        with RecordStore(db_path) as store:
            assert DeletedJobsRepository(store).find(tombstone.id) is None
            assert JobsRepository(store).get(restored.id) == restored

    def test_missing_tombstone(self, db_path):
        with RecordStore(db_path) as store:
            with pytest.raises(ToolError) as exc_info:
                job_lifecycle.restore(store, "missing", "user-8")
        assert exc_info.value.code == ErrorCode.NOT_FOUND
        assert exc_info.value.message == "Deleted job not found: missing"

    def test_second_step_failure_is_partial_failure(self, db_path):
        job = seed_job(db_path)
        with RecordStore(db_path) as store:
            tombstone = job_lifecycle.soft_delete(store, job.id, "user-7", now=DELETED_AT)

        with patch.object(
            DeletedJobsRepository, "delete", side_effect=create_backend_error("database is locked")
        ):
            with RecordStore(db_path) as store:
                with pytest.raises(ToolError) as exc_info:
                    job_lifecycle.restore(store, tombstone.id, "user-8", now=RESTORED_AT)

        error = exc_info.value
        assert error.code == ErrorCode.PARTIAL_FAILURE
        assert error.details["failed_step"] == "remove_tombstone"
        restored_id = error.details["restored_job_id"]

        with RecordStore(db_path) as store:
            assert JobsRepository(store).find(restored_id) is not None
            issues = job_lifecycle.find_reconciliation_issues(store)

        assert [issue["kind"] for issue in issues] == [
            job_lifecycle.ISSUE_RESTORE_SUSPECTED_INCOMPLETE
        ]
        assert issues[0]["activeJobId"] == restored_id
        assert issues[0]["deletedJobId"] == tombstone.id

    def test_rebooked_job_with_same_name_is_not_reported(self, db_path):
        job = seed_job(db_path)
        with RecordStore(db_path) as store:
            job_lifecycle.soft_delete(store, job.id, "user-7", now=DELETED_AT)
            JobsRepository(store).create(
                JobCreateInput.model_validate(
                    {
                        "clockNumberMediaName": job.clock_number_media_name,
                        "services": [{"name": "BSL"}],
                        "deliveryDate": "2026-03-20",
                        "client": "Acme",
                    }
                ),
                now=RESTORED_AT,
            )
            store.commit()

            assert job_lifecycle.find_reconciliation_issues(store) == []

class TestPurgeAndList:
    """Tests for purge and list_deleted_jobs."""

    def test_purge_removes_tombstone_permanently(self, db_path):
        job = seed_job(db_path)
        with RecordStore(db_path) as store:
            tombstone = job_lifecycle.soft_delete(store, job.id, "user-7")
            purged = job_lifecycle.purge(store, tombstone.id, "admin")

        assert purged.id == tombstone.id
        with RecordStore(db_path) as store:
            assert DeletedJobsRepository(store).find(tombstone.id) is None
            assert JobsRepository(store).find(job.id) is None

    def test_purge_missing(self, db_path):
        with RecordStore(db_path) as store:
            with pytest.raises(ToolError) as exc_info:
                job_lifecycle.purge(store, "missing")
        assert exc_info.value.code == ErrorCode.NOT_FOUND

    def test_list_newest_first_with_purge_eligibility(self, db_path):
        old_job = seed_job(db_path, name="OLD001/Spot")
        new_job = seed_job(db_path, name="NEW001/Spot")
        with RecordStore(db_path) as store:
            job_lifecycle.soft_delete(
                store, old_job.id, "user-7", now=datetime(2026, 1, 1, tzinfo=timezone.utc)
            )
            job_lifecycle.soft_delete(store, new_job.id, "user-7", now=DELETED_AT)

            entries = job_lifecycle.list_deleted_jobs(
                store, retention_days=30, now=datetime(2026, 3, 5, tzinfo=timezone.utc)
            )

        assert [entry["clockNumberMediaName"] for entry in entries] == [
            "NEW001/Spot",
            "OLD001/Spot",
        ]
        assert entries[0]["purgeEligible"] is False
        assert entries[0]["purgeEligibleAt"] == "2026-03-31T10:00:00.000Z"
        assert entries[1]["purgeEligible"] is True
        assert entries[1]["originalJobId"] == old_job.id

    def test_no_issues_after_clean_sequences(self, db_path):
        job = seed_job(db_path)
        with RecordStore(db_path) as store:
            tombstone = job_lifecycle.soft_delete(store, job.id, "user-7", now=DELETED_AT)
            assert job_lifecycle.find_reconciliation_issues(store) == []
            job_lifecycle.restore(store, tombstone.id, "user-7", now=RESTORED_AT)
            assert job_lifecycle.find_reconciliation_issues(store) == []
