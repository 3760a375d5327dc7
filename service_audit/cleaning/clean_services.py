# Docstring for service_audit/cleaning/clean_services module
"""
clean_services.py

Ingestion pipeline for authorized and reported service files.

This module reads raw delimited text (as uploaded by an auditor) and turns it
into canonical ServiceRecord objects used by the reconciliation engine
(`engines.match_services.reconcile`).

Core transformations
--------------------
1) Pre-cleaning
   - Strip quotes wrapping whole lines.
   - Detect the delimiter (',', ';' or tab) from the first non-blank line.

2) Parsing
   - Read the table with pandas (all cells as strings, BOM and ragged rows
     tolerated). See `core.normalizers.read_table`.

3) Field resolution
   - Normalize headers (lower-case, no whitespace / '.', '_', '-').
   - Resolve canonical fields through `config.HEADER_ALIASES`.
   - Coerce the role's minutes column with `to_number_loosely`; when it is
     missing or non-numeric, derive it as end - start.

4) Validation (fail-fast)
   - The first invalid row raises and aborts the whole file. No partial list
     is ever returned.

5) Timestamps
   - Build start_at / end_at with a single TimestampBuilder per file.

Public API
----------
- parse_authorized(text, config=None, builder=None) -> list[ServiceRecord]
- parse_reported(text, config=None, builder=None) -> list[ServiceRecord]
- parse_service_table(text, source, builder) -> list[ServiceRecord]
"""


from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ..config import AUDIT_CONFIG, DURATION_FIELDS, HEADER_ALIASES, AuditConfig
from ..core.models import ServiceRecord, Source
from ..core.normalizers import (
    BOM,
    detect_delimiter,
    normalize_row,
    pick_alias,
    read_table,
    strip_whole_line_quotes,
    to_number_loosely,
)
from ..core.timestamps import TimestampBuilder, duration_minutes
from ..core.validators import validate_candidate, validate_required_fields
from ..exceptions import InvalidTimeFormat

logger = logging.getLogger(__name__)



# --- Helper functions ------------------------------------------------------------


def _resolve_fields(row: Mapping[str, Any]) -> dict[str, Any]:
    """Map a normalized row onto canonical field names (None when unresolved)."""
    return {field: pick_alias(row, aliases) for field, aliases in HEADER_ALIASES.items()}


def _build_instant(builder: TimestampBuilder, service_date: str, clock: str, field: str, row: int):
    try:
        return builder.build_instant(service_date, clock)
    except InvalidTimeFormat as exc:
        raise InvalidTimeFormat(clock, f"Row {row}: {field}: {exc}") from exc


def _row_to_record(
        row: Mapping[str, Any],
        source: Source,
        row_index: int,
        builder: TimestampBuilder,
) -> ServiceRecord:

    """

    Turn one normalized row into a ServiceRecord.

    Raises:
        ValidationError: missing/invalid required field or minutes.
        InvalidTimeFormat: start or end is not a clock time.

    """

    candidate = _resolve_fields(row)
    fields = validate_required_fields(candidate, row_index)

    start_at = _build_instant(builder, fields["service_date"], fields["start"], "start", row_index)
    end_at = _build_instant(builder, fields["service_date"], fields["end"], "end", row_index)

    # Supplied minutes win; otherwise derive from the clock times
    duration_field = DURATION_FIELDS[source.value]
    minutes = to_number_loosely(candidate.get(duration_field))
    if minutes is None:
        minutes = duration_minutes(start_at, end_at)

    fields = validate_candidate({**fields, duration_field: minutes}, source, row_index)

    return ServiceRecord(
        professional_id=fields["professional_id"],
        service_date=fields["service_date"],
        service_type=fields["service_type"],
        start=fields["start"],
        end=fields["end"],
        start_at=start_at,
        end_at=end_at,
        duration_minutes=fields[duration_field],
        source=source,
        row_index=row_index,
    )



# --- Main parsing functions ------------------------------------------------------


def parse_service_table(
        text: str,
        source: Source,
        builder: TimestampBuilder,
) -> list[ServiceRecord]:

    """

    Parse one raw file for the given role.

    Steps:
    1. Strip whole-line quotes
    2. Detect the delimiter
    3. Read the table with pandas
    4. Normalize headers, resolve aliases, validate and build timestamps

    Args:
        text:
            Raw file content (already decoded).
        source:
            Source.AUTHORIZED or Source.REPORTED.
        builder:
            TimestampBuilder shared by every row of the file.

    Returns:
        ServiceRecord list in input order.

    Raises:
        MalformedTable, ValidationError, InvalidTimeFormat

    """

    source = Source(source)

    # 1) + 2) Pre-cleaning and delimiter
    cleaned = strip_whole_line_quotes(str(text or "").lstrip(BOM))
    delimiter = detect_delimiter(cleaned)

    # 3) Parse
    df = read_table(cleaned, delimiter=delimiter)

    # 4) Rows -> records; the first bad row aborts the file
    records: list[ServiceRecord] = []
    for position, raw_row in enumerate(df.to_dict(orient="records"), start=1):
        records.append(_row_to_record(normalize_row(raw_row), source, position, builder))

    logger.info("Parsed %d %s rows (delimiter=%r)", len(records), source.value, delimiter)
    return records


def _builder_for(config: Optional[AuditConfig], builder: Optional[TimestampBuilder]) -> TimestampBuilder:
    if builder is not None:
        return builder
    cfg = config or AUDIT_CONFIG
    return TimestampBuilder(cfg.timezone, cfg.tz_strategy)


def parse_authorized(
        text: str,
        config: Optional[AuditConfig] = None,
        builder: Optional[TimestampBuilder] = None,
) -> list[ServiceRecord]:
    """Parse the authorized (approved/scheduled) file."""
    return parse_service_table(text, Source.AUTHORIZED, _builder_for(config, builder))


def parse_reported(
        text: str,
        config: Optional[AuditConfig] = None,
        builder: Optional[TimestampBuilder] = None,
) -> list[ServiceRecord]:
    """Parse the reported (actually logged) file."""
    return parse_service_table(text, Source.REPORTED, _builder_for(config, builder))
