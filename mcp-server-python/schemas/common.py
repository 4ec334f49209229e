"""Shared schema primitives for MCP tool request/response models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


def validate_optional_non_empty_str(value: Optional[str]) -> Optional[str]:
    """Validate optional string fields that cannot be empty/whitespace."""
    if value is None:
        return None
    if not value.strip():
        raise ValueError("cannot be empty")
    return value


def validate_non_empty_str(value: str) -> str:
    """Validate required string fields that cannot be empty/whitespace."""
    if not value.strip():
        raise ValueError("cannot be empty")
    return value


class StrictIgnoreRequest(BaseModel):
    """Request base with strict typing and ignored unknown fields."""

    model_config = ConfigDict(extra="ignore", strict=True)


class StrictResponse(BaseModel):
    """Response/result base with strict typing and forbidden unknown fields."""

    model_config = ConfigDict(extra="forbid")


class DbPathMixin(BaseModel):
    """Reusable db_path field validation."""

    db_path: Optional[str] = None

    @field_validator("db_path")
    @classmethod
    def validate_db_path(cls, value: Optional[str]) -> Optional[str]:
        return validate_optional_non_empty_str(value)


class JobIdMixin(BaseModel):
    """Reusable job_id field validation."""

    job_id: str

    @field_validator("job_id")
    @classmethod
    def validate_job_id(cls, value: str) -> str:
        return validate_non_empty_str(value)


class DeletedJobIdMixin(BaseModel):
    """Reusable deleted_job_id field validation."""

    deleted_job_id: str

    @field_validator("deleted_job_id")
    @classmethod
    def validate_deleted_job_id(cls, value: str) -> str:
        return validate_non_empty_str(value)
