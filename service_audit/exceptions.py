"""
exceptions.py

Error taxonomy for ingestion and reconciliation.

All errors derive from ValueError so callers that already guard with
`except ValueError` keep working.

- MalformedTable: raw text cannot be parsed into rows/columns at all.
- ValidationError: a row is missing a required field or holds an unusable
  value. Carries the canonical field name and the 1-based row number.
- InvalidTimeFormat: a clock time cannot be read as H:M[:S].
- ConfigurationError: a tolerance or timezone setting is unusable.
"""

from __future__ import annotations


class AuditError(ValueError):
    """Base class for service audit errors."""


class MalformedTable(AuditError):
    """Raw tabular text could not be parsed."""


class ValidationError(AuditError):

    def __init__(self, field: str, row: int, message: str) -> None:
        self.field = field
        self.row = row
        super().__init__(f"Row {row}: {field}: {message}")


class InvalidTimeFormat(AuditError):

    def __init__(self, value: object, message: str | None = None) -> None:
        self.value = value
        super().__init__(message or f"Invalid time format: {value!r}. Expected H:M or H:M:S.")


class ConfigurationError(AuditError):

    def __init__(self, name: str, message: str) -> None:
        self.name = name
        super().__init__(f"Invalid {name}: {message}")
