"""
MCP tool handler for export_jobs_csv.

Renders the report listing as CSV using the same filters and sort as
list_jobs. The CSV text is always returned; with ``output_path`` it is also
written to disk atomically.
"""

from typing import Any, Dict

from pydantic import ValidationError

from config import get_config
from db.jobs_repository import JobsRepository
from db.record_store import RecordStore
from models.errors import ToolError, create_internal_error
from schemas.jobs import ExportJobsCsvRequest, ExportJobsCsvResponse
from utils.csv_export import render_jobs_csv, report_filename
from utils.dates import today_in
from utils.file_ops import atomic_write, resolve_report_target
from utils.job_filters import JobListFilter
from utils.pydantic_error_mapper import map_pydantic_validation_error


def export_jobs_csv(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Export the filtered report as CSV.

    Args:
        args: Dictionary containing parameters:
            - the list_jobs filter parameters (status_group, statuses,
              search_query, delivery_start_date, delivery_end_date,
              sort_by, sort_direction)
            - output_path (str, optional): File or directory to write to. A
              directory gets the suggested ``job_report_<date>.csv`` name.
            - db_path (str, optional): Database path override

    Returns:
        {"filename": str, "row_count": int, "csv": str, "output_path": str?}
    """
    try:
        request = ExportJobsCsvRequest.model_validate(args)
        job_filter = JobListFilter.model_validate(request.filter_args())
        tz = get_config().tzinfo

        with RecordStore(request.db_path) as store:
            jobs = JobsRepository(store).list(job_filter, tz)

        content = render_jobs_csv(jobs, tz)
        filename = report_filename(today_in(tz))

        written_path = None
        if request.output_path:
            target = resolve_report_target(request.output_path, filename)
            written_path = str(atomic_write(target, content))

        return ExportJobsCsvResponse(
            filename=filename,
            row_count=len(jobs),
            csv=content,
            output_path=written_path,
        ).model_dump(exclude_none=True)

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()
