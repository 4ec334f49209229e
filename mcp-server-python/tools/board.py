"""
MCP tool handler for get_job_board.

Returns the kanban view of a status group: one column per status, each
ordered overdue -> due today -> future -> unparseable delivery date, then by
clock number/media name.
"""

from typing import Any, Dict

from pydantic import ValidationError

from config import get_config
from db.jobs_repository import JobsRepository
from db.record_store import RecordStore
from models.errors import ToolError, create_internal_error
from schemas.jobs import GetJobBoardRequest
from utils.dates import DeliveryBucket, today_in
from utils.job_filters import build_board
from utils.pydantic_error_mapper import map_pydantic_validation_error


def get_job_board(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build the board for open or finished jobs.

    Args:
        args: Dictionary containing parameters:
            - status_group (str, optional): "open" (default) or "finished"
            - db_path (str, optional): Database path override

    Returns:
        {
            "status_group": str,
            "today": "YYYY-MM-DD",      # in the reference timezone
            "columns": [
                {"status": str, "count": int, "dueTodayCount": int,
                 "jobs": [{"job": {...}, "deliveryBucket": str, "isOverdue": bool}]}
            ]
        }
    """
    try:
        request = GetJobBoardRequest.model_validate(args)
        tz = get_config().tzinfo
        today = today_in(tz)

        with RecordStore(request.db_path) as store:
            jobs = JobsRepository(store).list_all()

        board = build_board(jobs, request.status_group, today, tz)
        columns = [
            {
                "status": status.value,
                "count": len(entries),
                "dueTodayCount": sum(entry.bucket == DeliveryBucket.TODAY for entry in entries),
                "jobs": [entry.to_dict() for entry in entries],
            }
            for status, entries in board.items()
        ]
        return {
            "status_group": request.status_group,
            "today": today.isoformat(),
            "columns": columns,
        }

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()
