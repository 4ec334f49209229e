"""
Per-user preferences (``user_prefs`` table), one record per user id.

Every write is an upsert: the first save creates the record and later saves
only touch the columns they name.
"""

from datetime import datetime, timedelta
from typing import Optional

from db.record_store import RecordStore
from models.job import UserPrefs
from utils.validation import (
    get_current_utc_timestamp,
    parse_utc_timestamp,
    validate_initials,
    validate_record_id,
    validate_service_height,
)


class UserPrefsRepository:
    """Read and upsert user preferences."""

    def __init__(self, store: RecordStore):
        self.store = store

    def get(self, user_id: str) -> UserPrefs:
        """Return saved prefs, or an empty record when the user has none yet."""
        validate_record_id(user_id, "user_id")
        row = self.store.get("user_prefs", user_id)
        if row is None:
            return UserPrefs(user_id=user_id)
        return UserPrefs.model_validate(row)

    def save_initials(self, user_id: str, initials: str) -> UserPrefs:
        validate_record_id(user_id, "user_id")
        self.store.upsert(
            "user_prefs", {"user_id": user_id, "initials": validate_initials(initials)}
        )
        return self.get(user_id)

    def save_job_form_service_height(self, user_id: str, height: int) -> UserPrefs:
        validate_record_id(user_id, "user_id")
        self.store.upsert(
            "user_prefs",
            {"user_id": user_id, "job_form_service_height": validate_service_height(height)},
        )
        return self.get(user_id)

    def touch_last_active(
        self,
        user_id: str,
        throttle_seconds: int,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Record user activity.

        Skipped when the stored lastActive is younger than ``throttle_seconds``.

        Returns:
            True if lastActive was written, False if throttled
        """
        timestamp = get_current_utc_timestamp(now)
        current = self.get(user_id)
        previous = parse_utc_timestamp(current.last_active)
        written_at = parse_utc_timestamp(timestamp)

        if previous is not None and written_at - previous < timedelta(seconds=throttle_seconds):
            return False

        self.store.upsert("user_prefs", {"user_id": user_id, "last_active": timestamp})
        return True
