# Docstring for service_audit/core/validators module
"""
validators.py

Role-specific validation for canonical service rows and audit settings.

Validation is fail-fast: each check raises on the first problem it sees, naming
the canonical field and the 1-based row number. The ingestion pipeline calls
these row by row and stops at the first raise, so a file with one bad row
yields no records at all.

Rules
-----
- Both roles: professional_id, service_date, start, end are required.
- service_date must be a YYYY-MM-DD calendar date.
- authorized rows need authorized_minutes, reported rows need reported_minutes,
  each a non-negative integer (supplied or derived from end - start).
- service_type defaults to "general".

Public API
----------
- require_text(value, field, row) -> str
- validate_service_date(value, row) -> str
- validate_duration(value, field, row) -> int
- validate_required_fields(candidate, row) -> dict[str, Any]
- validate_candidate(candidate, source, row) -> dict[str, Any]
- validate_tolerance(value, name) -> float
- validate_tolerances(start_tolerance_min, duration_tolerance_min) -> tuple[float, float]
"""

from __future__ import annotations

import math
import re
from numbers import Real
from typing import Any, Mapping

from ..config import DEFAULT_SERVICE_TYPE, DURATION_FIELDS, REQUIRED_FIELDS
from ..exceptions import ConfigurationError, ValidationError
from .models import Source
from .timestamps import parse_iso_date

# Exact YYYY-MM-DD; the text becomes part of the matching key
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def require_text(value: Any, field: str, row: int) -> str:
    if value is None:
        raise ValidationError(field, row, "required")
    text = str(value).strip()
    if not text:
        raise ValidationError(field, row, "required")
    return text


def validate_service_date(value: Any, row: int) -> str:
    text = require_text(value, "service_date", row)
    if not ISO_DATE_PATTERN.match(text):
        raise ValidationError("service_date", row, f"invalid date {text!r}. Expected YYYY-MM-DD.")
    try:
        parse_iso_date(text)
    except ValueError as exc:
        raise ValidationError(
            "service_date", row, f"invalid date {text!r}. Expected YYYY-MM-DD."
        ) from exc
    return text


def validate_duration(value: Any, field: str, row: int) -> int:
    """Accept a non-negative integral number (float 30.0 is fine, 30.5 is not)."""
    if value is None:
        raise ValidationError(field, row, "required")
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError(field, row, f"expected a number, got {value!r}")
    if not math.isfinite(value) or float(value) != int(value):
        raise ValidationError(field, row, f"expected an integer, got {value!r}")
    if value < 0:
        raise ValidationError(field, row, f"expected a non-negative value, got {value!r}")
    return int(value)


def validate_required_fields(candidate: Mapping[str, Any], row: int) -> dict[str, Any]:
    """Check the fields both roles need; service_type falls back to the default."""
    out: dict[str, Any] = {}
    for field in REQUIRED_FIELDS:
        if field == "service_date":
            out[field] = validate_service_date(candidate.get(field), row)
        else:
            out[field] = require_text(candidate.get(field), field, row)

    service_type = candidate.get("service_type")
    out["service_type"] = (str(service_type).strip() if service_type else "") or DEFAULT_SERVICE_TYPE
    return out


def validate_candidate(candidate: Mapping[str, Any], source: Source, row: int) -> dict[str, Any]:

    """

    Validate one resolved row for the given role.

    Args:
        candidate:
            Mapping of canonical field -> resolved value (None when unresolved).
            The role's duration field must already hold the supplied or derived
            number.
        source:
            Source.AUTHORIZED or Source.REPORTED.
        row:
            1-based row number for error messages.

    Returns:
        A dict with trimmed text fields, the integer duration and service_type.

    Raises:
        ValidationError: first missing/invalid field.

    """

    out = validate_required_fields(candidate, row)
    duration_field = DURATION_FIELDS[Source(source).value]
    out[duration_field] = validate_duration(candidate.get(duration_field), duration_field, row)
    return out


def validate_tolerance(value: Any, name: str) -> float:
    """A tolerance must be a finite, non-negative number of minutes."""
    if isinstance(value, bool):
        raise ConfigurationError(name, f"{value!r}. Expected a non-negative number of minutes.")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError as exc:
            raise ConfigurationError(
                name, f"{value!r}. Expected a non-negative number of minutes."
            ) from exc
    if not isinstance(value, Real) or not math.isfinite(value) or value < 0:
        raise ConfigurationError(name, f"{value!r}. Expected a non-negative number of minutes.")
    return float(value)


def validate_tolerances(
    start_tolerance_min: Any,
    duration_tolerance_min: Any,
) -> tuple[float, float]:
    return (
        validate_tolerance(start_tolerance_min, "start_tolerance_min"),
        validate_tolerance(duration_tolerance_min, "duration_tolerance_min"),
    )
