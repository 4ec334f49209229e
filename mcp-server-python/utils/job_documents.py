"""
Normalization of job documents exported from the hosted document stores.

Two export shapes are accepted:

- Firestore documents: ``services`` is a native array and timestamps may be
  ``{"_seconds": ..., "_nanoseconds": ...}`` objects.
- Amplify DataStore records: ``services`` is a JSON-encoded string and
  timestamps are ISO strings.

Both are mapped onto the Job model, preserving id, status and timestamps
when they are present and valid.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from models.errors import ToolError, create_validation_error
from models.job import Job, ServiceName
from models.status import INITIAL_STATUS, JobStatus
from utils.pydantic_error_mapper import map_pydantic_validation_error
from utils.validation import get_current_utc_timestamp, parse_utc_timestamp

logger = logging.getLogger(__name__)

CATALOGUE_NAMES = {name.value for name in ServiceName}
TEXT_FIELDS = (
    "orderNumber",
    "client",
    "agency",
    "poReference",
    "destination",
    "productionNotes",
    "creator",
    "checker",
    "commercialDescription",
)
BOOLEAN_FIELDS = ("priority", "onHold", "inSAP", "stellarTask")
NUMBER_FIELDS = ("rate", "adjusted", "extcosts")
OPTIONAL_TEXT_FIELDS = ("inputter", "verifier", "billingnotes")


def normalize_text(value: Any) -> str:
    """
    Normalize a value to a clean string.

    Returns the stripped string, or an empty string if value is None.
    """
    if value is None:
        return ""
    return str(value).strip()


def normalize_timestamp(value: Any) -> Optional[str]:
    """
    Convert an exported timestamp to ``YYYY-MM-DDTHH:MM:SS.mmmZ``.

    Accepts ISO strings and Firestore timestamp objects (with or without the
    leading underscore on ``seconds``/``nanoseconds``). Returns None when the
    value is missing or unrecognized.
    """
    if isinstance(value, dict):
        seconds = value.get("_seconds", value.get("seconds"))
        nanos = value.get("_nanoseconds", value.get("nanoseconds", 0)) or 0
        if not isinstance(seconds, (int, float)):
            return None
        instant = datetime.fromtimestamp(seconds + nanos / 1e9, tz=timezone.utc)
        return get_current_utc_timestamp(instant)

    if isinstance(value, str):
        parsed = parse_utc_timestamp(value.strip())
        return get_current_utc_timestamp(parsed) if parsed is not None else None

    return None


def normalize_delivery_date(value: Any) -> str:
    """Delivery dates keep their stored text; Firestore timestamps become ISO."""
    if isinstance(value, dict):
        return normalize_timestamp(value) or ""
    return normalize_text(value)


def normalize_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = normalize_text(value)
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def normalize_services(raw: Any) -> List[Dict[str, Any]]:
    """
    Decode services from a native list or a JSON string.

    Names outside the catalogue become ``Other`` with the name kept as the
    custom name; an ``Other`` service without a custom name is labelled
    ``Other``. A ``customSubService`` replaces a sub-service of ``Other``.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw) if raw.strip() else []
        except json.JSONDecodeError:
            logger.warning(f"Unreadable services JSON dropped: {raw[:80]!r}")
            raw = []
    if not isinstance(raw, list):
        return []

    services = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        name = normalize_text(item.get("name"))
        custom_name = normalize_text(item.get("customName"))
        sub_service = normalize_text(item.get("subService"))
        custom_sub_service = normalize_text(item.get("customSubService"))
        if sub_service == "Other" and custom_sub_service:
            sub_service = custom_sub_service

        if name not in CATALOGUE_NAMES:
            custom_name = custom_name or name or "Other"
            name = ServiceName.OTHER.value

        service = {"name": name, "subService": sub_service, "notes": normalize_text(item.get("notes"))}
        if name == ServiceName.OTHER.value:
            service["customName"] = custom_name or "Other"
        services.append(service)
    return services


def normalize_job_document(document: Dict[str, Any], now: Optional[datetime] = None) -> Job:
    """
    Map one exported document onto a Job.

    Raises:
        ToolError: VALIDATION_ERROR when the document cannot form a job
            (for example a blank clockNumberMediaName)
    """
    fallback_timestamp = get_current_utc_timestamp(now)

    status_raw = normalize_text(document.get("status"))
    try:
        status = JobStatus(status_raw)
    except ValueError:
        if status_raw:
            logger.warning(f"Unknown status {status_raw!r} imported as {INITIAL_STATUS.value}")
        status = INITIAL_STATUS

    created_at = normalize_timestamp(document.get("createdAt")) or fallback_timestamp
    updated_at = normalize_timestamp(document.get("updatedAt")) or created_at

    payload: Dict[str, Any] = {
        "id": normalize_text(document.get("id")) or str(uuid.uuid4()),
        "clockNumberMediaName": normalize_text(document.get("clockNumberMediaName")),
        "services": normalize_services(document.get("services")),
        "status": status,
        "createdAt": created_at,
        "updatedAt": updated_at,
    }
    for field in TEXT_FIELDS:
        payload[field] = normalize_text(document.get(field))
    payload["deliveryDate"] = normalize_delivery_date(document.get("deliveryDate"))
    for field in BOOLEAN_FIELDS:
        payload[field] = bool(document.get(field))
    for field in NUMBER_FIELDS:
        payload[field] = normalize_number(document.get(field))
    for field in OPTIONAL_TEXT_FIELDS:
        value = document.get(field)
        payload[field] = normalize_text(value) if value is not None else None

    try:
        job = Job.model_validate(payload)
    except ValidationError as e:
        raise map_pydantic_validation_error(e) from e

    if not job.clock_number_media_name:
        raise create_validation_error("Invalid clockNumberMediaName: cannot be empty")
    return job


def normalize_job_documents(
    documents: List[Any], now: Optional[datetime] = None
) -> Tuple[List[Job], List[Dict[str, Any]]]:
    """
    Normalize a whole export.

    Returns:
        (jobs, skipped) where each skipped entry is ``{"index", "id", "reason"}``
    """
    jobs: List[Job] = []
    skipped: List[Dict[str, Any]] = []
    for index, document in enumerate(documents):
        if not isinstance(document, dict):
            skipped.append({"index": index, "id": None, "reason": "not an object"})
            continue
        try:
            jobs.append(normalize_job_document(document, now))
        except ToolError as e:
            skipped.append({"index": index, "id": document.get("id"), "reason": e.message})
    return jobs, skipped
