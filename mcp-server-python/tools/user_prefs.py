"""
MCP tool handlers for per-user preferences.

get_user_prefs, save_user_prefs and touch_last_active. Records are keyed by
user id and created on first write.
"""

from typing import Any, Dict

from pydantic import ValidationError

from config import get_config
from db.record_store import RecordStore
from db.user_prefs_repository import UserPrefsRepository
from models.errors import ToolError, create_internal_error, create_validation_error
from models.job import to_document
from schemas.user_prefs import SaveUserPrefsRequest, UserIdRequest
from utils.pydantic_error_mapper import map_pydantic_validation_error


def get_user_prefs(args: Dict[str, Any]) -> Dict[str, Any]:
    """Return a user's preferences; unset preferences are null."""
    try:
        request = UserIdRequest.model_validate(args)
        with RecordStore(request.db_path) as store:
            prefs = UserPrefsRepository(store).get(request.user_id)
        return {"prefs": to_document(prefs)}

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()


def save_user_prefs(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Save initials and/or the job form services panel height.

    Args:
        args: Dictionary containing parameters:
            - user_id (str): User to update
            - initials (str, optional): 2 or 3 uppercase letters
            - job_form_service_height (int, optional): non-negative pixels
            - db_path (str, optional): Database path override
    """
    try:
        request = SaveUserPrefsRequest.model_validate(args)
        if request.initials is None and request.job_form_service_height is None:
            raise create_validation_error(
                "Nothing to save: provide initials and/or job_form_service_height"
            )

        with RecordStore(request.db_path) as store:
            repo = UserPrefsRepository(store)
            if request.initials is not None:
                repo.save_initials(request.user_id, request.initials)
            if request.job_form_service_height is not None:
                repo.save_job_form_service_height(
                    request.user_id, request.job_form_service_height
                )
            prefs = repo.get(request.user_id)
            store.commit()

        return {"prefs": to_document(prefs)}

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()


def touch_last_active(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Heartbeat for user activity.

    Writes lastActive unless the stored value is younger than the configured
    throttle. Returns {"updated": bool, "prefs": {...}}.
    """
    try:
        request = UserIdRequest.model_validate(args)
        throttle_seconds = get_config().last_active_throttle_seconds

        with RecordStore(request.db_path) as store:
            repo = UserPrefsRepository(store)
            updated = repo.touch_last_active(request.user_id, throttle_seconds)
            prefs = repo.get(request.user_id)
            store.commit()

        return {"updated": updated, "prefs": to_document(prefs)}

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except ToolError as e:
        return e.to_dict()

    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()
