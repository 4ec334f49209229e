"""Pydantic schemas for the inbound email-to-status webhook."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UpdateStatusFromEmailRequest(BaseModel):
    """Body posted by the mail automation: ``{"clockNumber", "newStatus"}``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    clock_number: str = Field(alias="clockNumber")
    new_status: str = Field(alias="newStatus")

    @field_validator("clock_number", "new_status", mode="before")
    @classmethod
    def require_present(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("cannot be empty")
        return value
