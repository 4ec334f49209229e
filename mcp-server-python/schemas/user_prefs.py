"""Pydantic schemas for the user preference tools."""

from __future__ import annotations

from typing import Optional

from pydantic import field_validator

from schemas.common import DbPathMixin, StrictIgnoreRequest, validate_non_empty_str


class UserIdRequest(DbPathMixin, StrictIgnoreRequest):
    """Request schema for get_user_prefs and touch_last_active."""

    user_id: str

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, value: str) -> str:
        return validate_non_empty_str(value)


class SaveUserPrefsRequest(UserIdRequest):
    """Request schema for save_user_prefs. At least one preference must be given."""

    initials: Optional[str] = None
    job_form_service_height: Optional[int] = None
