"""
Domain models for AccessFlow jobs, tombstones and user preferences.

Attributes are snake_case in Python; every model also accepts and emits the
camelCase names used by the persisted documents (``clockNumberMediaName``,
``inSAP``, ``deliveryDate`` ...), so records exported from the original
document stores round-trip unchanged.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from models.status import JobStatus


class ServiceName(str, Enum):
    """The fixed catalogue of services a job can book."""

    CLOSED_CAPTIONS = "Closed Captions"
    AUDIO_DESCRIPTION = "Audio Description"
    OPEN_CAPTIONS = "Open Captions"
    TRANSLATION = "Translation"
    TRANSCRIPTION = "Transcription"
    TRANSCREATION = "Transcreation"
    BSL = "BSL"
    PROOFREADING = "Proofreading"
    OTHER = "Other"


SUB_SERVICE_OPTIONS = [
    "Original",
    "Re-Edit",
    "Cutdown",
    "Re-encode",
    "DTT",
    "Premix",
    "Mono AD",
    "Other",
]

DESTINATION_OPTIONS = ["XR Delivery", "XR UK Delivery", "Access", "Peach"]

INITIALS_PATTERN = re.compile(r"^[A-Z]{2,3}$")


class CamelModel(BaseModel):
    """Base model accepting both snake_case and camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StandardService(CamelModel):
    """A service from the catalogue other than ``Other``."""

    name: Literal[
        "Closed Captions",
        "Audio Description",
        "Open Captions",
        "Translation",
        "Transcription",
        "Transcreation",
        "BSL",
        "Proofreading",
    ]
    sub_service: str = ""
    notes: str = ""

    @property
    def display_name(self) -> str:
        return self.name


class OtherService(CamelModel):
    """An ad-hoc service; the custom name is what gets displayed."""

    name: Literal["Other"]
    custom_name: str
    sub_service: str = ""
    notes: str = ""

    @field_validator("custom_name")
    @classmethod
    def validate_custom_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("customName cannot be empty when service name is 'Other'")
        return value

    @property
    def display_name(self) -> str:
        return self.custom_name


ServiceDetail = Annotated[Union[StandardService, OtherService], Field(discriminator="name")]

services_adapter = TypeAdapter(List[ServiceDetail])


def dump_services_json(services: List[Any]) -> str:
    """Encode services as the JSON array stored in the record store."""
    return services_adapter.dump_json(services, by_alias=True).decode("utf-8")


def load_services_json(raw: Optional[str]) -> List[Any]:
    """Decode the stored JSON array back into service variants."""
    if not raw:
        return []
    return services_adapter.validate_json(raw)


class JobFields(CamelModel):
    """Job payload shared by live jobs and their tombstone snapshots."""

    clock_number_media_name: str
    order_number: str = ""
    services: List[ServiceDetail] = Field(default_factory=list)
    client: str = ""
    agency: str = ""
    delivery_date: str = ""
    po_reference: str = ""
    destination: str = ""
    production_notes: str = ""
    creator: str = ""
    checker: str = ""
    commercial_description: str = ""
    priority: bool = False
    on_hold: bool = False
    in_sap: bool = Field(default=False, alias="inSAP")
    stellar_task: bool = False
    rate: Optional[float] = None
    adjusted: Optional[float] = None
    inputter: Optional[str] = None
    verifier: Optional[str] = None
    extcosts: Optional[float] = None
    billingnotes: Optional[str] = None


SNAPSHOT_FIELDS = list(JobFields.model_fields) + ["status"]


class Job(JobFields):
    """A trackable unit of media-delivery work."""

    id: str
    status: JobStatus
    created_at: str
    updated_at: str

    def snapshot(self) -> dict:
        """Return every snapshot field (everything except id and timestamps)."""
        return {name: getattr(self, name) for name in SNAPSHOT_FIELDS}


class DeletedJob(JobFields):
    """A tombstone: full snapshot of a soft-deleted job plus deletion metadata."""

    id: str
    original_job_id: str
    status: JobStatus
    deleted_by: str
    deleted_at: str
    deletion_reason: str = ""

    def snapshot(self) -> dict:
        return {name: getattr(self, name) for name in SNAPSHOT_FIELDS}


class UserPrefs(CamelModel):
    """Per-user settings, one record per user id."""

    user_id: str
    initials: Optional[str] = None
    last_active: Optional[str] = None
    job_form_service_height: Optional[int] = None


def _require_non_empty(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        raise ValueError("cannot be empty")
    return value


class JobCreateInput(JobFields):
    """
    Input for creating a job.

    Unknown keys are ignored, including ``status``: new jobs always start
    in Booked.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    services: List[ServiceDetail]
    delivery_date: str

    @field_validator("clock_number_media_name")
    @classmethod
    def validate_clock_number(cls, value: str) -> str:
        return _require_non_empty(value)

    @field_validator("delivery_date")
    @classmethod
    def validate_delivery_date(cls, value: str) -> str:
        return _require_non_empty(value)

    @field_validator("services")
    @classmethod
    def validate_services(cls, value: List[Any]) -> List[Any]:
        if not value:
            raise ValueError("at least one service is required")
        return value


class JobUpdateInput(CamelModel):
    """
    Partial update for a job. Only the keys present are written.

    ``status`` may be included: a direct status write is the administrative
    override path and bypasses the transition guards.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    clock_number_media_name: Optional[str] = None
    order_number: Optional[str] = None
    services: Optional[List[ServiceDetail]] = None
    client: Optional[str] = None
    agency: Optional[str] = None
    delivery_date: Optional[str] = None
    po_reference: Optional[str] = None
    destination: Optional[str] = None
    production_notes: Optional[str] = None
    creator: Optional[str] = None
    checker: Optional[str] = None
    commercial_description: Optional[str] = None
    status: Optional[JobStatus] = None
    priority: Optional[bool] = None
    on_hold: Optional[bool] = None
    in_sap: Optional[bool] = Field(default=None, alias="inSAP")
    stellar_task: Optional[bool] = None
    rate: Optional[float] = None
    adjusted: Optional[float] = None
    inputter: Optional[str] = None
    verifier: Optional[str] = None
    extcosts: Optional[float] = None
    billingnotes: Optional[str] = None

    @field_validator("clock_number_media_name")
    @classmethod
    def validate_clock_number(cls, value: Optional[str]) -> Optional[str]:
        return _require_non_empty(value)

    @field_validator("delivery_date")
    @classmethod
    def validate_delivery_date(cls, value: Optional[str]) -> Optional[str]:
        return _require_non_empty(value)

    @field_validator("services")
    @classmethod
    def validate_services(cls, value: Optional[List[Any]]) -> Optional[List[Any]]:
        if not value:
            raise ValueError("at least one service is required")
        return value

    @field_validator("status", "priority", "on_hold", "in_sap", "stellar_task", mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("cannot be null")
        return value

    def patch_fields(self) -> dict:
        """Return only the fields the caller explicitly set."""
        return {name: getattr(self, name) for name in self.model_fields_set}


def to_document(model: BaseModel) -> dict:
    """Serialize a model with camelCase keys and JSON-safe values."""
    return model.model_dump(by_alias=True, mode="json")
