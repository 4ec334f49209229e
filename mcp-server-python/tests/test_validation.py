"""
Unit tests for input validation functions.

Tests validation of record ids, statuses, initials, service panel height,
timestamp helpers and the mapping of pydantic errors to ToolErrors.
"""

import re
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from models.errors import ErrorCode, ToolError
from models.job import JobCreateInput, JobUpdateInput
from models.status import JobStatus
from utils.pydantic_error_mapper import map_pydantic_validation_error
from utils.validation import (
    get_current_utc_timestamp,
    parse_utc_timestamp,
    validate_actor,
    validate_initials,
    validate_record_id,
    validate_service_height,
    validate_status,
)


class TestValidateRecordId:
    """Tests for record id validation."""

    def test_valid_id(self):
        assert validate_record_id("3f2b", "job_id") == "3f2b"

    def test_none(self):
        with pytest.raises(ToolError) as exc_info:
            validate_record_id(None, "job_id")
        assert exc_info.value.message == "Invalid job_id: cannot be null"

    def test_wrong_type(self):
        with pytest.raises(ToolError) as exc_info:
            validate_record_id(42, "job_id")
        assert exc_info.value.message == "Invalid job_id type: expected string, got int"

    def test_blank(self):
        with pytest.raises(ToolError) as exc_info:
            validate_record_id("   ", "job_id")
        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert not exc_info.value.retryable

    def test_actor_uses_field_name(self):
        with pytest.raises(ToolError) as exc_info:
            validate_actor("", "deleted_by")
        assert exc_info.value.message == "Invalid deleted_by: cannot be empty"


class TestValidateStatus:
    """Tests for status validation."""

    def test_valid_statuses(self):
        """Test that all pipeline statuses are accepted."""
        for status in JobStatus:
            assert validate_status(status.value) == status

    def test_invalid_status_lists_allowed_values(self):
        with pytest.raises(ToolError) as exc_info:
            validate_status("Shipped", "newStatus")

        assert exc_info.value.message == (
            "Invalid newStatus value: 'Shipped'. "
            "Must be one of: Booked, Received, Encoded, Delivered, Finished."
        )

    def test_status_case_sensitive(self):
        with pytest.raises(ToolError):
            validate_status("booked")
        with pytest.raises(ToolError):
            validate_status("DELIVERED")

    def test_missing_and_wrong_type(self):
        with pytest.raises(ToolError) as exc_info:
            validate_status(None)
        assert "cannot be null" in exc_info.value.message

        with pytest.raises(ToolError) as exc_info:
            validate_status(["Booked"])
        assert "expected string, got list" in exc_info.value.message

        with pytest.raises(ToolError) as exc_info:
            validate_status("")
        assert "cannot be empty" in exc_info.value.message


class TestUserPrefValidators:
    """Tests for initials and service panel height validation."""

    @pytest.mark.parametrize("initials", ["AB", "ABC"])
    def test_valid_initials(self, initials):
        assert validate_initials(initials) == initials

    @pytest.mark.parametrize("initials", ["A", "ABCD", "ab", "A B", None, 12])
    def test_invalid_initials(self, initials):
        with pytest.raises(ToolError) as exc_info:
            validate_initials(initials)
        assert "2 or 3 uppercase letters" in exc_info.value.message

    def test_valid_height(self):
        assert validate_service_height(0) == 0
        assert validate_service_height(320) == 320

    @pytest.mark.parametrize("height", [True, 1.5, "300"])
    def test_height_must_be_integer(self, height):
        with pytest.raises(ToolError) as exc_info:
            validate_service_height(height)
        assert "expected integer" in exc_info.value.message

    def test_negative_height(self):
        with pytest.raises(ToolError) as exc_info:
            validate_service_height(-1)
        assert "must be zero or positive" in exc_info.value.message


class TestGetCurrentUtcTimestamp:
    """Tests for UTC timestamp generation."""

    def test_timestamp_format_matches_iso8601(self):
        """Test that timestamp matches ISO 8601 format with milliseconds and Z suffix."""
        timestamp = get_current_utc_timestamp()
        pattern = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$"
        assert re.match(pattern, timestamp), f"Timestamp '{timestamp}' does not match expected format"

    def test_timestamp_is_current(self):
        before = datetime.now(timezone.utc) - timedelta(seconds=1)
        parsed = parse_utc_timestamp(get_current_utc_timestamp())
        after = datetime.now(timezone.utc) + timedelta(seconds=1)
        assert before <= parsed <= after

    def test_explicit_instant(self):
        instant = datetime(2026, 3, 1, 10, 30, 15, 250000, tzinfo=timezone(timedelta(hours=1)))
        assert get_current_utc_timestamp(instant) == "2026-03-01T09:30:15.250Z"

    def test_naive_instant_treated_as_utc(self):
        assert get_current_utc_timestamp(datetime(2026, 3, 1, 9, 0)) == "2026-03-01T09:00:00.000Z"


class TestParseUtcTimestamp:
    """Tests for parse_utc_timestamp."""

    def test_z_suffix(self):
        assert parse_utc_timestamp("2026-03-01T09:00:00.000Z") == datetime(
            2026, 3, 1, 9, 0, tzinfo=timezone.utc
        )

    def test_offset_converted_to_utc(self):
        parsed = parse_utc_timestamp("2026-03-01T10:00:00+01:00")
        assert parsed.hour == 9
        assert parsed.tzinfo == timezone.utc

    @pytest.mark.parametrize("value", [None, "", "not a date"])
    def test_unparseable(self, value):
        assert parse_utc_timestamp(value) is None


class TestPydanticErrorMapper:
    """Tests for map_pydantic_validation_error."""

    def _map(self, model, data):
        with pytest.raises(ValidationError) as exc_info:
            model.model_validate(data)
        return map_pydantic_validation_error(exc_info.value)

    def test_missing_field_uses_alias(self):
        error = self._map(JobCreateInput, {"services": [{"name": "BSL"}], "deliveryDate": "2026-03-04"})
        assert error.code == ErrorCode.VALIDATION_ERROR
        assert error.message == "Missing required field: 'clockNumberMediaName'"

    def test_value_error_prefix_removed(self):
        error = self._map(
            JobCreateInput,
            {"clockNumberMediaName": " ", "services": [{"name": "BSL"}], "deliveryDate": "2026-03-04"},
        )
        assert error.message == "Invalid clockNumberMediaName: cannot be empty"

    def test_list_index_rendering(self):
        error = self._map(
            JobCreateInput,
            {
                "clockNumberMediaName": "A1/Spot",
                "services": [{"name": "Other", "customName": " "}],
                "deliveryDate": "2026-03-04",
            },
        )
        assert error.message.startswith("Invalid services[0].Other.customName:")
        assert "customName cannot be empty" in error.message

    def test_unknown_field(self):
        error = self._map(JobUpdateInput, {"colour": "red"})
        assert error.message == "Unknown field: 'colour'"
