"""
CSV rendering for the job report.

Column set and value formatting follow the reporting screen's export:
dates as ``YYYY-MM-DD HH:MM:SS`` and services in their
detailed ``name (subService): notes`` form joined by ``; ``.
"""

import csv
import io
from datetime import date, datetime, time, tzinfo
from typing import Any, Callable, Iterable, List, Optional, Tuple

from models.job import Job

CSV_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_csv_date(value: Optional[str], tz: tzinfo) -> str:
    """
    Render a stored date or timestamp for CSV.

    Date-only values render at midnight. Aware timestamps are shown in the
    reference timezone.
    """
    if not value:
        return "N/A"
    text = value.strip()
    try:
        if len(text) == 10:
            parsed = datetime.combine(date.fromisoformat(text), time.min)
        else:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return "Invalid Date"
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz)
    return parsed.strftime(CSV_DATE_FORMAT)


def format_services(job: Job) -> str:
    """Detailed services text: ``name (subService): notes`` joined by ``; ``."""
    if not job.services:
        return "N/A"
    rendered = []
    for service in job.services:
        detail = service.display_name
        if service.sub_service:
            detail += f" ({service.sub_service})"
        if service.notes:
            detail += f": {service.notes}"
        rendered.append(detail)
    return "; ".join(rendered)


def _plain(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# (header, renderer)
REPORT_COLUMNS: List[Tuple[str, Callable[[Job, tzinfo], str]]] = [
    ("Delivery Date", lambda job, tz: format_csv_date(job.delivery_date, tz)),
    ("Client", lambda job, tz: _plain(job.client)),
    ("Commercial Desc.", lambda job, tz: _plain(job.commercial_description)),
    ("Clock Nr/Media Name", lambda job, tz: _plain(job.clock_number_media_name)),
    ("Distributor", lambda job, tz: _plain(job.destination)),
    ("Agency", lambda job, tz: _plain(job.agency)),
    ("Services", lambda job, tz: format_services(job)),
    ("Rate (£)", lambda job, tz: _plain(job.rate)),
    ("Order No.", lambda job, tz: _plain(job.order_number)),
    ("PO No.", lambda job, tz: _plain(job.po_reference)),
    ("Ext. Costs (£)", lambda job, tz: _plain(job.extcosts)),
    ("Creator", lambda job, tz: _plain(job.creator)),
    ("Checker", lambda job, tz: _plain(job.checker)),
]


def render_jobs_csv(jobs: Iterable[Job], tz: tzinfo) -> str:
    """Render jobs as CSV text with a header row, in the order given."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([header for header, _ in REPORT_COLUMNS])
    for job in jobs:
        writer.writerow([render(job, tz) for _, render in REPORT_COLUMNS])
    return buffer.getvalue()


def report_filename(today: date) -> str:
    return f"job_report_{today.isoformat()}.csv"
