"""
Listing and filter engine for job views.

Two views are produced from the same set of active jobs:

- the board: one column per status, ordered by delivery bucket
  (overdue, today, future, invalid) and then by clock number/media name;
- the report: free-text search, an inclusive delivery-date range and a
  single-column sort with a three-state toggle.

Everything here is pure and works on Job models already loaded from the
record store. "Today" is always passed in by the caller.
"""

from datetime import date, tzinfo
from typing import Any, Dict, Iterable, List, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

from models.errors import create_validation_error
from models.job import Job, OtherService, to_document
from models.status import (
    FINISHED_JOB_STATUSES,
    OPEN_JOB_STATUSES,
    JobStatus,
    status_index,
)
from utils.dates import BUCKET_ORDER, DeliveryBucket, delivery_bucket, parse_calendar_day

StatusGroup = Literal["open", "finished"]
SortDirection = Literal["asc", "desc"]

STATUS_GROUPS: Dict[str, Sequence[JobStatus]] = {
    "open": OPEN_JOB_STATUSES,
    "finished": FINISHED_JOB_STATUSES,
}

# Report column key -> Job attribute
SORTABLE_FIELDS: Dict[str, str] = {
    "clockNumberMediaName": "clock_number_media_name",
    "orderNumber": "order_number",
    "client": "client",
    "agency": "agency",
    "deliveryDate": "delivery_date",
    "poReference": "po_reference",
    "destination": "destination",
    "productionNotes": "production_notes",
    "creator": "creator",
    "checker": "checker",
    "commercialDescription": "commercial_description",
    "status": "status",
    "priority": "priority",
    "onHold": "on_hold",
    "inSAP": "in_sap",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "rate": "rate",
    "extcosts": "extcosts",
}

DEFAULT_SORT_FIELD = "updatedAt"
DESCENDING_BY_DEFAULT = {"createdAt", "updatedAt"}


class JobListFilter(BaseModel):
    """Report view filter. Every criterion is optional."""

    model_config = ConfigDict(extra="forbid")

    status_group: Optional[StatusGroup] = None
    statuses: Optional[List[JobStatus]] = None
    search_query: Optional[str] = None
    delivery_start_date: Optional[str] = None
    delivery_end_date: Optional[str] = None
    sort_by: Optional[str] = None
    sort_direction: Optional[SortDirection] = None

    @field_validator("sort_by")
    @classmethod
    def validate_sort_by(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in SORTABLE_FIELDS:
            allowed = ", ".join(SORTABLE_FIELDS)
            raise ValueError(f"'{value}' is not sortable. Must be one of: {allowed}")
        return value


def partition(jobs: Iterable[Job]) -> Tuple[List[Job], List[Job]]:
    """Split jobs into (open, finished)."""
    open_jobs: List[Job] = []
    finished_jobs: List[Job] = []
    for job in jobs:
        if job.status in FINISHED_JOB_STATUSES:
            finished_jobs.append(job)
        else:
            open_jobs.append(job)
    return open_jobs, finished_jobs


def filter_by_statuses(
    jobs: Iterable[Job],
    status_group: Optional[str] = None,
    statuses: Optional[Iterable[JobStatus]] = None,
) -> List[Job]:
    """Keep jobs in the status group and/or explicit status list (intersection when both)."""
    allowed = set(JobStatus)
    if status_group is not None:
        allowed &= set(STATUS_GROUPS[status_group])
    if statuses is not None:
        allowed &= set(statuses)
    return [job for job in jobs if job.status in allowed]


# Board ---------------------------------------------------------------------


class BoardEntry:
    """A job placed on the board with its delivery bucket."""

    def __init__(self, job: Job, bucket: DeliveryBucket):
        self.job = job
        self.bucket = bucket

    @property
    def is_overdue(self) -> bool:
        # Finished work is never shown as overdue
        return self.bucket == DeliveryBucket.OVERDUE and self.job.status != JobStatus.FINISHED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job": to_document(self.job),
            "deliveryBucket": self.bucket.value,
            "isOverdue": self.is_overdue,
        }


def board_sort_key(job: Job, today: date, tz: tzinfo) -> Tuple[int, str]:
    bucket = delivery_bucket(job.delivery_date, today, tz)
    return BUCKET_ORDER[bucket], job.clock_number_media_name


def sort_board_column(jobs: Iterable[Job], today: date, tz: tzinfo) -> List[Job]:
    """Order one status column: bucket first, then clock number/media name."""
    return sorted(jobs, key=lambda job: board_sort_key(job, today, tz))


def build_board(
    jobs: Iterable[Job], status_group: str, today: date, tz: tzinfo
) -> Dict[JobStatus, List[BoardEntry]]:
    """
    Build the board for a status group.

    Every status of the group gets a column, even when empty, in pipeline
    order.
    """
    columns: Dict[JobStatus, List[Job]] = {status: [] for status in STATUS_GROUPS[status_group]}
    for job in jobs:
        if job.status in columns:
            columns[job.status].append(job)

    return {
        status: [
            BoardEntry(job, delivery_bucket(job.delivery_date, today, tz))
            for job in sort_board_column(column_jobs, today, tz)
        ]
        for status, column_jobs in columns.items()
    }


# Search --------------------------------------------------------------------


def _render_scalar(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, JobStatus):
        return value.value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def search_text(job: Job) -> str:
    """Lower-cased concatenation of every scalar field and each service's parts."""
    parts: List[str] = []
    for name in Job.model_fields:
        if name == "services":
            continue
        rendered = _render_scalar(getattr(job, name))
        if rendered is not None:
            parts.append(rendered)

    for service in job.services:
        service_parts = [service.name, service.sub_service, service.notes]
        if isinstance(service, OtherService):
            service_parts.append(service.custom_name)
        parts.append(" ".join(service_parts))

    return "\n".join(parts).lower()


def matches_search(job: Job, query: Optional[str]) -> bool:
    """Case-insensitive substring match. A blank query matches every job."""
    if query is None or not query.strip():
        return True
    return query.strip().lower() in search_text(job)


# Delivery date range -------------------------------------------------------


def parse_date_bound(value: Optional[str], field_name: str, tz: tzinfo) -> Optional[date]:
    """
    Parse a date range bound.

    Raises:
        ToolError: VALIDATION_ERROR if the bound is set but unparseable
    """
    if value is None or not value.strip():
        return None
    day = parse_calendar_day(value, tz)
    if day is None:
        raise create_validation_error(
            f"Invalid {field_name}: '{value}' is not an ISO date (YYYY-MM-DD)"
        )
    return day


def within_delivery_range(
    job: Job, start: Optional[date], end: Optional[date], tz: tzinfo
) -> bool:
    """
    Inclusive calendar-day range check on deliveryDate.

    With no bound every job passes. With any bound a job whose deliveryDate
    is missing or unparseable is excluded.
    """
    if start is None and end is None:
        return True
    day = parse_calendar_day(job.delivery_date, tz)
    if day is None:
        return False
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


# Report sort ---------------------------------------------------------------


def default_direction(sort_by: str) -> str:
    return "desc" if sort_by in DESCENDING_BY_DEFAULT else "asc"


def _sort_value(job: Job, sort_by: str, tz: tzinfo) -> Any:
    """Comparable value for a column, or None when the value is missing."""
    value = getattr(job, SORTABLE_FIELDS[sort_by])
    if value is None or value == "":
        return None
    if sort_by == "deliveryDate":
        return parse_calendar_day(value, tz)
    if sort_by == "status":
        return status_index(value)
    if isinstance(value, str):
        return (value.casefold(), value)
    return value


def sort_report(
    jobs: Iterable[Job],
    sort_by: Optional[str],
    sort_direction: Optional[str],
    tz: tzinfo,
) -> List[Job]:
    """
    Sort the report by one column.

    Without a column the report is ordered by updatedAt. Without a direction,
    createdAt/updatedAt sort newest first and every other column ascending.
    Missing values go last in both directions.
    """
    field = sort_by or DEFAULT_SORT_FIELD
    direction = sort_direction or default_direction(field)

    present: List[Tuple[Any, Job]] = []
    missing: List[Job] = []
    for job in jobs:
        value = _sort_value(job, field, tz)
        if value is None:
            missing.append(job)
        else:
            present.append((value, job))

    present.sort(key=lambda pair: pair[0], reverse=(direction == "desc"))
    return [job for _, job in present] + missing


def next_sort_state(
    current: Optional[Tuple[str, str]], column: str
) -> Optional[Tuple[str, str]]:
    """
    Three-state column toggle for the report header.

    Clicking the sorted column cycles ascending -> descending -> unsorted.
    Clicking any other column starts at ascending.
    """
    if column not in SORTABLE_FIELDS:
        raise create_validation_error(f"Invalid sort column: '{column}'")
    if current is None or current[0] != column:
        return (column, "asc")
    if current[1] == "asc":
        return (column, "desc")
    return None


def apply_list_filter(jobs: Iterable[Job], job_filter: JobListFilter, tz: tzinfo) -> List[Job]:
    """Apply status, search and date criteria, then sort."""
    start = parse_date_bound(job_filter.delivery_start_date, "delivery_start_date", tz)
    end = parse_date_bound(job_filter.delivery_end_date, "delivery_end_date", tz)

    selected = filter_by_statuses(jobs, job_filter.status_group, job_filter.statuses)
    selected = [
        job
        for job in selected
        if matches_search(job, job_filter.search_query)
        and within_delivery_range(job, start, end, tz)
    ]
    return sort_report(selected, job_filter.sort_by, job_filter.sort_direction, tz)
