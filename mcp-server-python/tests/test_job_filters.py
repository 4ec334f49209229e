"""
Unit tests for the listing and filter engine.

Board bucketing and ordering, status filters, search, delivery date ranges,
report sorting and the sort toggle.
"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from models.errors import ErrorCode, ToolError
from models.job import Job
from models.status import JobStatus
from utils.dates import DeliveryBucket, delivery_bucket, parse_calendar_day, today_in
from utils.job_filters import (
    JobListFilter,
    apply_list_filter,
    build_board,
    filter_by_statuses,
    matches_search,
    next_sort_state,
    partition,
    sort_report,
)

LONDON = ZoneInfo("Europe/London")
TODAY = date(2026, 3, 10)


def make_job(job_id, name="ABC123/Trailer", status=JobStatus.BOOKED, **fields) -> Job:
    data = {
        "id": job_id,
        "clock_number_media_name": name,
        "status": status,
        "delivery_date": "2026-03-10",
        "created_at": "2026-03-01T09:00:00.000Z",
        "updated_at": "2026-03-01T09:00:00.000Z",
    }
    data.update(fields)
    return Job.model_validate(data)


class TestCalendarDays:
    """Tests for delivery date parsing and bucketing."""

    def test_date_only(self):
        assert parse_calendar_day("2026-03-10", LONDON) == date(2026, 3, 10)

    def test_aware_datetime_converted_to_reference_zone(self):
        # 23:30 UTC in summer is 00:30 the next day in London
        assert parse_calendar_day("2026-07-01T23:30:00Z", LONDON) == date(2026, 7, 2)

    def test_unparseable(self):
        assert parse_calendar_day("next tuesday", LONDON) is None
        assert parse_calendar_day("", LONDON) is None

    def test_buckets(self):
        assert delivery_bucket("2026-03-09", TODAY, LONDON) == DeliveryBucket.OVERDUE
        assert delivery_bucket("2026-03-10", TODAY, LONDON) == DeliveryBucket.TODAY
        assert delivery_bucket("2026-03-11", TODAY, LONDON) == DeliveryBucket.FUTURE
        assert delivery_bucket("soon", TODAY, LONDON) == DeliveryBucket.INVALID

    def test_today_in_reference_zone(self):
        now = datetime(2026, 7, 1, 23, 30, tzinfo=timezone.utc)
        assert today_in(LONDON, now) == date(2026, 7, 2)


class TestBoard:
    """Tests for build_board."""

    def test_overdue_before_today_regardless_of_name(self):
        a_media = make_job("a", name="A-Media", delivery_date="2026-03-10")
        z_media = make_job("z", name="Z-Media", delivery_date="2026-03-09")

        board = build_board([a_media, z_media], "open", TODAY, LONDON)

        booked = board[JobStatus.BOOKED]
        assert [entry.job.clock_number_media_name for entry in booked] == ["Z-Media", "A-Media"]
        assert booked[0].is_overdue is True
        assert booked[1].is_overdue is False

    def test_bucket_order_then_name(self):
        jobs = [
            make_job("1", name="B", delivery_date="garbage"),
            make_job("2", name="C", delivery_date="2026-04-01"),
            make_job("3", name="A", delivery_date="2026-04-01"),
            make_job("4", name="D", delivery_date="2026-03-10"),
            make_job("5", name="E", delivery_date="2026-01-01"),
        ]
        board = build_board(jobs, "open", TODAY, LONDON)
        assert [entry.job.id for entry in board[JobStatus.BOOKED]] == ["5", "4", "3", "2", "1"]

    def test_open_board_has_every_open_column(self):
        board = build_board([], "open", TODAY, LONDON)
        assert list(board) == [
            JobStatus.BOOKED,
            JobStatus.RECEIVED,
            JobStatus.ENCODED,
            JobStatus.DELIVERED,
        ]
        assert all(entries == [] for entries in board.values())

    def test_finished_jobs_never_overdue(self):
        job = make_job("f", status=JobStatus.FINISHED, delivery_date="2020-01-01")
        board = build_board([job], "finished", TODAY, LONDON)

        entry = board[JobStatus.FINISHED][0]
        assert entry.bucket == DeliveryBucket.OVERDUE
        assert entry.is_overdue is False
        assert entry.to_dict()["isOverdue"] is False

    def test_open_board_excludes_finished(self):
        jobs = [make_job("o"), make_job("f", status=JobStatus.FINISHED)]
        board = build_board(jobs, "open", TODAY, LONDON)
        assert [e.job.id for entries in board.values() for e in entries] == ["o"]


class TestStatusFilters:
    """Tests for partition and filter_by_statuses."""

    def test_partition(self):
        jobs = [
            make_job("b", status=JobStatus.BOOKED),
            make_job("d", status=JobStatus.DELIVERED),
            make_job("f", status=JobStatus.FINISHED),
        ]
        open_jobs, finished_jobs = partition(jobs)
        assert [job.id for job in open_jobs] == ["b", "d"]
        assert [job.id for job in finished_jobs] == ["f"]

    def test_group_and_statuses_intersect(self):
        jobs = [
            make_job("b", status=JobStatus.BOOKED),
            make_job("r", status=JobStatus.RECEIVED),
            make_job("f", status=JobStatus.FINISHED),
        ]
        result = filter_by_statuses(jobs, "open", [JobStatus.RECEIVED, JobStatus.FINISHED])
        assert [job.id for job in result] == ["r"]


class TestSearch:
    """Tests for matches_search."""

    def test_case_insensitive_over_scalar_fields(self):
        job = make_job("1", client="Acme Films", production_notes="Needs QC pass")
        assert matches_search(job, "acme")
        assert matches_search(job, "NEEDS qc")
        assert not matches_search(job, "globex")

    def test_matches_service_parts(self):
        job = make_job(
            "1",
            services=[
                {"name": "Audio Description", "subService": "Premix", "notes": "welsh track"},
                {"name": "Other", "customName": "Dubbing"},
            ],
        )
        assert matches_search(job, "audio description")
        assert matches_search(job, "premix")
        assert matches_search(job, "WELSH")
        assert matches_search(job, "dubbing")

    def test_matches_booleans_and_status(self):
        job = make_job("1", status=JobStatus.ENCODED, in_sap=True)
        assert matches_search(job, "encoded")
        assert matches_search(job, "true")

    def test_blank_query_matches_everything(self):
        assert matches_search(make_job("1"), "   ")
        assert matches_search(make_job("1"), None)


class TestReportSort:
    """Tests for sort_report and next_sort_state."""

    def test_default_is_updated_at_descending(self):
        jobs = [
            make_job("old", updated_at="2026-03-01T09:00:00.000Z"),
            make_job("new", updated_at="2026-03-05T09:00:00.000Z"),
        ]
        assert [job.id for job in sort_report(jobs, None, None, LONDON)] == ["new", "old"]

    def test_missing_values_last_in_both_directions(self):
        jobs = [
            make_job("none", client=""),
            make_job("b", client="beta"),
            make_job("a", client="Alpha"),
        ]
        assert [j.id for j in sort_report(jobs, "client", "asc", LONDON)] == ["a", "b", "none"]
        assert [j.id for j in sort_report(jobs, "client", "desc", LONDON)] == ["b", "a", "none"]

    def test_delivery_date_sorts_by_day_with_invalid_last(self):
        jobs = [
            make_job("bad", delivery_date="TBC"),
            make_job("late", delivery_date="2026-04-01"),
            make_job("early", delivery_date="2026-03-01T10:00:00Z"),
        ]
        ordered = sort_report(jobs, "deliveryDate", None, LONDON)
        assert [job.id for job in ordered] == ["early", "late", "bad"]

    def test_status_sorts_by_pipeline_order(self):
        jobs = [
            make_job("f", status=JobStatus.FINISHED),
            make_job("b", status=JobStatus.BOOKED),
            make_job("e", status=JobStatus.ENCODED),
        ]
        assert [j.id for j in sort_report(jobs, "status", "asc", LONDON)] == ["b", "e", "f"]

    def test_numeric_column_with_missing(self):
        jobs = [make_job("x", rate=None), make_job("y", rate=50), make_job("z", rate=7.5)]
        assert [j.id for j in sort_report(jobs, "rate", "asc", LONDON)] == ["z", "y", "x"]

    def test_toggle_cycle(self):
        state = next_sort_state(None, "client")
        assert state == ("client", "asc")
        state = next_sort_state(state, "client")
        assert state == ("client", "desc")
        assert next_sort_state(state, "client") is None
        assert next_sort_state(("client", "desc"), "agency") == ("agency", "asc")

    def test_toggle_unknown_column(self):
        with pytest.raises(ToolError) as exc_info:
            next_sort_state(None, "services")
        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR


class TestApplyListFilter:
    """Tests for the combined report filter."""

    def test_inclusive_delivery_range_excludes_invalid_dates(self):
        jobs = [
            make_job("before", delivery_date="2026-02-28"),
            make_job("start", delivery_date="2026-03-01"),
            make_job("end", delivery_date="2026-03-31"),
            make_job("after", delivery_date="2026-04-01"),
            make_job("bad", delivery_date="TBC"),
        ]
        job_filter = JobListFilter(
            delivery_start_date="2026-03-01",
            delivery_end_date="2026-03-31",
            sort_by="deliveryDate",
        )
        result = apply_list_filter(jobs, job_filter, LONDON)
        assert [job.id for job in result] == ["start", "end"]

    def test_no_range_keeps_every_delivery_date(self):
        jobs = [
            make_job("tbc", delivery_date="TBC"),
            make_job("blank", delivery_date=""),
            make_job("dated", delivery_date="2026-03-04"),
        ]
        result = apply_list_filter(jobs, JobListFilter(), LONDON)
        assert sorted(job.id for job in result) == ["blank", "dated", "tbc"]

    def test_open_ended_range(self):
        jobs = [make_job("a", delivery_date="2026-02-28"), make_job("b", delivery_date="2026-03-02")]
        result = apply_list_filter(jobs, JobListFilter(delivery_start_date="2026-03-01"), LONDON)
        assert [job.id for job in result] == ["b"]

    def test_bad_range_bound(self):
        with pytest.raises(ToolError) as exc_info:
            apply_list_filter([], JobListFilter(delivery_end_date="31/03/2026"), LONDON)
        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert "delivery_end_date" in exc_info.value.message

    def test_search_and_status_combined(self):
        jobs = [
            make_job("1", client="Acme", status=JobStatus.BOOKED),
            make_job("2", client="Acme", status=JobStatus.FINISHED),
            make_job("3", client="Globex", status=JobStatus.BOOKED),
        ]
        job_filter = JobListFilter(status_group="open", search_query="ACME")
        assert [job.id for job in apply_list_filter(jobs, job_filter, LONDON)] == ["1"]

    def test_unknown_sort_field_rejected(self):
        with pytest.raises(ValueError):
            JobListFilter(sort_by="services")
