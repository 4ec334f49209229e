#!/usr/bin/env python3
"""
MCP Server entry point for the AccessFlow job lifecycle tools.

This server exposes the job tracker used by the post-production team: job
CRUD, the status board, guarded status moves, soft delete with restore and
purge, CSV reporting and per-user preferences. All state lives in a single
SQLite record store.

Usage:
    python server.py

The server runs in stdio mode by default, which is the standard transport
for MCP servers that are invoked by LLM agents.
"""

import logging
from mcp.server.fastmcp import FastMCP
from tools.jobs import create_job, get_job, update_job, list_jobs
from tools.board import get_job_board
from tools.move_job_status import advance_job_status, retreat_job_status, override_job_status
from tools.deleted_jobs import (
    soft_delete_job,
    list_deleted_jobs,
    restore_deleted_job,
    purge_deleted_job,
    reconcile_deleted_jobs,
)
from tools.export_jobs_csv import export_jobs_csv
from tools.user_prefs import get_user_prefs, save_user_prefs, touch_last_active
from tools.update_status_from_email import update_status_from_email_tool
from config import get_config
from models.job import DESTINATION_OPTIONS, SUB_SERVICE_OPTIONS

# Create FastMCP server instance
config = get_config()
mcp = FastMCP(
    name=config.server_name,
    instructions=(
        "This server provides tools for AccessFlow job tracking. "
        "\n\n"
        "JOB PIPELINE:\n"
        "Every job moves through Booked -> Received -> Encoded -> Delivered -> Finished. "
        "New jobs always start as Booked. "
        "Use advance_job_status and retreat_job_status to move a job one step; moving to "
        "Finished requires inSAP=true and a non-empty commercialDescription. "
        "Use override_job_status only for administrative corrections; it skips those checks."
        "\n\n"
        "VIEWS:\n"
        "Use get_job_board for the open or finished board grouped by status with overdue flags. "
        "Use list_jobs for the filtered, searchable, sortable report and export_jobs_csv to "
        "download the same report as CSV."
        "\n\n"
        "DELETION:\n"
        "soft_delete_job moves a job into the deleted-jobs archive. restore_deleted_job brings it "
        "back under a new id. purge_deleted_job removes the archived copy permanently. "
        "reconcile_deleted_jobs reports jobs left behind by an interrupted delete or restore."
    ),
)


def _compact(**kwargs) -> dict:
    """Only forward parameters that were explicitly provided."""
    return {key: value for key, value in kwargs.items() if value is not None}


@mcp.tool(
    name="create_job",
    description=(
        "Create a job in the Booked state. Requires services (at least one) and deliveryDate. "
        "An empty creator is filled from the acting user's saved initials. "
        f"Usual subService values: {', '.join(SUB_SERVICE_OPTIONS)}; "
        f"usual destinations: {', '.join(DESTINATION_OPTIONS)} (both accept free text)."
    ),
)
def create_job_tool(
    job: dict,
    actor: str | None = None,
    db_path: str | None = None,
) -> dict:
    """
    Create a new job.

    Args:
        job: Job fields in camelCase, e.g.
            {
                "clockNumberMediaName": "ABC123/Trailer",
                "services": [{"name": "Closed Captions", "subService": "Original", "notes": ""}],
                "deliveryDate": "2026-03-04",
                "client": "Acme",
                "inSAP": false
            }
            Any ``status`` supplied here is ignored.
        actor: Acting user id. Used to prefill ``creator`` from saved initials.
        db_path: Optional database path override (default: data/accessflow.db).

    Returns:
        {"job": {...camelCase job document with id, status, createdAt, updatedAt...}}

        On error, returns:
        {
            "error": {
                "code": str,         # VALIDATION_ERROR, BACKEND_UNAVAILABLE, INTERNAL_ERROR
                "message": str,
                "retryable": bool
            }
        }
    """
    return create_job(_compact(job=job, actor=actor, db_path=db_path))


@mcp.tool(name="get_job", description="Fetch a single job by id.")
def get_job_tool(job_id: str, db_path: str | None = None) -> dict:
    """Return {"job": {...}} or a NOT_FOUND error."""
    return get_job(_compact(job_id=job_id, db_path=db_path))


@mcp.tool(
    name="update_job",
    description=(
        "Overwrite fields of an existing job. Fields not named in changes are left as they are; "
        "updatedAt is always refreshed. Status changes here are administrative."
    ),
)
def update_job_tool(job_id: str, changes: dict, db_path: str | None = None) -> dict:
    """
    Patch a job.

    Args:
        job_id: Job to update.
        changes: camelCase fields to overwrite. Unknown fields are rejected and
            nothing is written.
        db_path: Optional database path override.

    Returns:
        {"job": {...}} with the stored document after the update.
    """
    return update_job(_compact(job_id=job_id, changes=changes, db_path=db_path))


@mcp.tool(
    name="list_jobs",
    description=(
        "Report listing with status filters, case-insensitive search over every field, "
        "an inclusive delivery date range and single-column sorting. Missing values sort last."
    ),
)
def list_jobs_tool(
    status_group: str | None = None,
    statuses: list[str] | None = None,
    search_query: str | None = None,
    delivery_start_date: str | None = None,
    delivery_end_date: str | None = None,
    sort_by: str | None = None,
    sort_direction: str | None = None,
    db_path: str | None = None,
) -> dict:
    """
    List jobs for the report view.

    Args:
        status_group: "open" (Booked..Delivered) or "finished".
        statuses: Explicit statuses; intersected with status_group when both given.
        search_query: Substring matched case-insensitively against every field,
            including service names, sub-services and notes.
        delivery_start_date: Inclusive lower bound, YYYY-MM-DD.
        delivery_end_date: Inclusive upper bound, YYYY-MM-DD.
        sort_by: camelCase column key, e.g. deliveryDate, client, status
            (default: updatedAt).
        sort_direction: "asc" or "desc". Defaults to desc for createdAt and
            updatedAt, asc otherwise.
        db_path: Optional database path override.

    Returns:
        {"jobs": [{...}, ...], "count": int}
    """
    return list_jobs(
        _compact(
            status_group=status_group,
            statuses=statuses,
            search_query=search_query,
            delivery_start_date=delivery_start_date,
            delivery_end_date=delivery_end_date,
            sort_by=sort_by,
            sort_direction=sort_direction,
            db_path=db_path,
        )
    )


@mcp.tool(
    name="get_job_board",
    description=(
        "Board view grouped into one column per status. Cards are ordered overdue first, then "
        "due today, then future, then invalid dates; open jobs past their delivery day are "
        "flagged overdue. Each column reports its job count and dueTodayCount."
    ),
)
def get_job_board_tool(status_group: str | None = None, db_path: str | None = None) -> dict:
    """
    Args:
        status_group: "open" (default) or "finished".
        db_path: Optional database path override.

    Returns:
        {
            "status_group": str,
            "today": "YYYY-MM-DD",
            "columns": [
                {"status": "Booked", "count": int,
                 "jobs": [{"job": {...}, "deliveryBucket": str, "isOverdue": bool}]}
            ]
        }
    """
    return get_job_board(_compact(status_group=status_group, db_path=db_path))


@mcp.tool(
    name="advance_job_status",
    description=(
        "Move a job one step forward in the pipeline. Delivered -> Finished requires "
        "inSAP=true and a non-empty commercialDescription. A Finished job is left unchanged."
    ),
)
def advance_job_status_tool(job_id: str, db_path: str | None = None) -> dict:
    """
    Advance a job by one status.

    Returns:
        {
            "job_id": str,
            "previous_status": str,
            "status": str,
            "action": "moved" | "noop",
            "signal": "at_terminal",      # only when action is noop
            "updated_at": str
        }

        A blocked move returns PRECONDITION_FAILED with
        error.details.unmet_conditions listing in_sap_not_set and/or
        commercial_description_empty.
    """
    return advance_job_status(_compact(job_id=job_id, db_path=db_path))


@mcp.tool(
    name="retreat_job_status",
    description="Move a job one step back in the pipeline. A Booked job is left unchanged.",
)
def retreat_job_status_tool(job_id: str, db_path: str | None = None) -> dict:
    """Retreat a job by one status; same response shape as advance_job_status."""
    return retreat_job_status(_compact(job_id=job_id, db_path=db_path))


@mcp.tool(
    name="override_job_status",
    description=(
        "Set any status directly, bypassing adjacency and the Finished requirements. "
        "For administrative corrections only."
    ),
)
def override_job_status_tool(job_id: str, status: str, db_path: str | None = None) -> dict:
    """
    Args:
        job_id: Job to update.
        status: One of Booked, Received, Encoded, Delivered, Finished.
        db_path: Optional database path override.
    """
    return override_job_status(_compact(job_id=job_id, status=status, db_path=db_path))


@mcp.tool(
    name="soft_delete_job",
    description=(
        "Move a job into the deleted-jobs archive with a full snapshot, the deleting user "
        "and a timestamp. The job disappears from every view."
    ),
)
def soft_delete_job_tool(
    job_id: str,
    deleted_by: str,
    reason: str | None = None,
    db_path: str | None = None,
) -> dict:
    """
    Soft delete a job.

    The archive entry is written before the job is removed. If removal
    fails after the archive entry exists, a PARTIAL_FAILURE error is
    returned with both ids in error.details; reconcile_deleted_jobs will
    report the pair until it is resolved.

    Returns:
        {"job_id": str, "deleted_job_id": str, "deleted_by": str, "deleted_at": str}
    """
    return soft_delete_job(
        _compact(job_id=job_id, deleted_by=deleted_by, reason=reason, db_path=db_path)
    )


@mcp.tool(
    name="list_deleted_jobs",
    description=(
        "List archived jobs, newest deletion first, with purge eligibility. "
        "Pass original_job_id to find the archive entries of a specific deleted job."
    ),
)
def list_deleted_jobs_tool(original_job_id: str | None = None, db_path: str | None = None) -> dict:
    """Return {"deleted_jobs": [...], "count": int, "retention_days": int}."""
    return list_deleted_jobs(_compact(original_job_id=original_job_id, db_path=db_path))


@mcp.tool(
    name="restore_deleted_job",
    description=(
        "Restore an archived job as a new job (new id, fresh timestamps, original status) "
        "and remove the archive entry."
    ),
)
def restore_deleted_job_tool(
    deleted_job_id: str,
    restored_by: str,
    db_path: str | None = None,
) -> dict:
    """
    Returns:
        {
            "deleted_job_id": str,
            "original_job_id": str,
            "new_job_id": str,
            "status": str
        }
    """
    return restore_deleted_job(
        _compact(deleted_job_id=deleted_job_id, restored_by=restored_by, db_path=db_path)
    )


@mcp.tool(
    name="purge_deleted_job",
    description="Permanently remove an archived job. This cannot be undone.",
)
def purge_deleted_job_tool(
    deleted_job_id: str,
    purged_by: str | None = None,
    db_path: str | None = None,
) -> dict:
    return purge_deleted_job(
        _compact(deleted_job_id=deleted_job_id, purged_by=purged_by, db_path=db_path)
    )


@mcp.tool(
    name="reconcile_deleted_jobs",
    description=(
        "Report jobs that exist both live and in the archive, left behind by an interrupted "
        "delete or restore. Read-only."
    ),
)
def reconcile_deleted_jobs_tool(db_path: str | None = None) -> dict:
    return reconcile_deleted_jobs(_compact(db_path=db_path))


@mcp.tool(
    name="export_jobs_csv",
    description=(
        "Export the filtered report as CSV with the standard report columns. Accepts the "
        "same filters as list_jobs. Optionally writes the file to output_path."
    ),
)
def export_jobs_csv_tool(
    status_group: str | None = None,
    statuses: list[str] | None = None,
    search_query: str | None = None,
    delivery_start_date: str | None = None,
    delivery_end_date: str | None = None,
    sort_by: str | None = None,
    sort_direction: str | None = None,
    output_path: str | None = None,
    db_path: str | None = None,
) -> dict:
    """
    Export the report as CSV.

    Args:
        (list_jobs filters): see list_jobs.
        output_path: File or directory. A directory receives
            job_report_<YYYY-MM-DD>.csv.
        db_path: Optional database path override.

    Returns:
        {"filename": str, "row_count": int, "csv": str, "output_path": str?}
    """
    return export_jobs_csv(
        _compact(
            status_group=status_group,
            statuses=statuses,
            search_query=search_query,
            delivery_start_date=delivery_start_date,
            delivery_end_date=delivery_end_date,
            sort_by=sort_by,
            sort_direction=sort_direction,
            output_path=output_path,
            db_path=db_path,
        )
    )


@mcp.tool(name="get_user_prefs", description="Read a user's saved initials, form layout and last activity.")
def get_user_prefs_tool(user_id: str, db_path: str | None = None) -> dict:
    return get_user_prefs(_compact(user_id=user_id, db_path=db_path))


@mcp.tool(
    name="save_user_prefs",
    description=(
        "Save a user's initials (2-3 uppercase letters) and/or the job form services panel "
        "height in pixels."
    ),
)
def save_user_prefs_tool(
    user_id: str,
    initials: str | None = None,
    job_form_service_height: int | None = None,
    db_path: str | None = None,
) -> dict:
    """Return {"prefs": {...}} after saving."""
    return save_user_prefs(
        _compact(
            user_id=user_id,
            initials=initials,
            job_form_service_height=job_form_service_height,
            db_path=db_path,
        )
    )


@mcp.tool(
    name="touch_last_active",
    description="Record user activity. Writes are throttled to one per configured interval.",
)
def touch_last_active_tool(user_id: str, db_path: str | None = None) -> dict:
    return touch_last_active(_compact(user_id=user_id, db_path=db_path))


@mcp.tool(
    name="update_status_from_email",
    description=(
        "Apply the status named in a notification email to the job whose clock number "
        "(the part of clockNumberMediaName before '/') matches. Bypasses transition checks."
    ),
)
def update_status_from_email_mcp_tool(
    clockNumber: str,
    newStatus: str,
    db_path: str | None = None,
) -> dict:
    """Returns {"job_id", "status", "message"} or a structured error."""
    return update_status_from_email_tool(
        _compact(clockNumber=clockNumber, newStatus=newStatus, db_path=db_path)
    )


def main():
    """
    Main entry point for the MCP server.

    Runs the server in stdio mode, which is the standard transport
    for MCP servers that are invoked by LLM agents.
    """
    # Load and setup configuration
    config.setup_logging()

    # Log startup information
    logger = logging.getLogger(__name__)
    logger.info("Starting AccessFlow MCP Server")
    logger.info(f"Server name: {config.server_name}")
    logger.info(f"Database path: {config.db_path}")

    # Validate configuration and log warnings
    warnings = config.validate()
    for warning in warnings:
        logger.warning(warning)

    # Start the server
    logger.info("Server starting in stdio mode")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
