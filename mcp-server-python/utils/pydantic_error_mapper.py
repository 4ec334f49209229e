"""Convert Pydantic validation errors to the ToolError contract."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from models.errors import ToolError, create_validation_error


def _loc_to_field(loc: tuple[Any, ...]) -> str:
    """
    Render a pydantic location as a dotted field path.

    List indices render as ``[n]``: ``('services', 0, 'Other', 'customName')``
    becomes ``services[0].Other.customName``.
    """
    rendered = ""
    for part in loc:
        if part == "__root__":
            continue
        if isinstance(part, int):
            rendered += f"[{part}]"
        elif rendered:
            rendered += f".{part}"
        else:
            rendered = str(part)
    return rendered


def _clean_pydantic_message(message: str) -> str:
    if message.startswith("Value error, "):
        return message[len("Value error, ") :]
    return message


def map_pydantic_validation_error(error: ValidationError) -> ToolError:
    """Map a Pydantic ValidationError to a VALIDATION_ERROR naming the first bad field."""
    issues = error.errors()
    if not issues:
        return create_validation_error("Invalid input")

    first = issues[0]
    field = _loc_to_field(first.get("loc", ()))

    if first.get("type") == "missing" and field:
        return create_validation_error(f"Missing required field: '{field}'")

    if first.get("type") == "extra_forbidden" and field:
        return create_validation_error(f"Unknown field: '{field}'")

    message = _clean_pydantic_message(first.get("msg", "Invalid input"))

    if field:
        return create_validation_error(f"Invalid {field}: {message}")
    return create_validation_error(message)
