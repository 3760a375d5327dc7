# Docstring for service_audit/engines/match_services module
"""
match_services.py

Reconciliation engine for authorized vs reported service records.

This module compares two independently produced datasets describing the same
real-world services:

- Authorized: what was approved / scheduled
- Reported: what the professional actually logged

and emits a list of discrepancies plus a count per discrepancy type.

Core matching logic
-------------------
1) Key index
   - Authorized records are grouped by matching key
     (professional_id, service_date, service_type), preserving input order.

2) Nearest-start match (one pass over reported records, in input order)
   - No candidates for the key -> NO_AUTH, nothing consumed.
   - Otherwise pick the candidate with the smallest start-time delta. On an
     exact tie the first candidate in input order wins.
   - The chosen authorized record is consumed by (key, position in the
     authorized list), so a key with several authorized entries can be
     partially matched. A consumed record may still be chosen again by a later
     reported record.

3) Classification of each matched pair (independent checks, strict '>')
   - start delta > start tolerance       -> START_MISMATCH
   - |authorized - reported minutes| > duration tolerance -> DURATION_MISMATCH

4) Missing reports
   - Authorized records never consumed -> MISSING_REPORT, in authorized order.

5) Summary
   - Count per type, computed once after detection.

The engine is a pure function of its inputs: no I/O, no state across calls.

Public API
----------
- reconcile(authorized, reported, start_tolerance_min=10, duration_tolerance_min=5) -> AuditResult
- matching_key(record) -> tuple[str, str, str]
- classify_pair(authorized, reported, start_tolerance_min, duration_tolerance_min) -> list[Discrepancy]
- summarize(discrepancies) -> dict[DiscrepancyType, int]
"""


from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..config import AUDIT_CONFIG
from ..core.models import (
    AuditResult,
    Discrepancy,
    DiscrepancyType,
    MatchingKey,
    ServiceRecord,
)
from ..core.timestamps import minutes_between
from ..core.validators import validate_tolerances

logger = logging.getLogger(__name__)



# --- Helpers ---------------------------------------------------------------------


def matching_key(record: ServiceRecord) -> MatchingKey:
    return record.key


def _fmt_minutes(value: float) -> str:
    # 10.0 -> "10", 7.5 -> "7.5"
    return str(int(value)) if float(value).is_integer() else str(value)


def _finding(
        kind: DiscrepancyType,
        driver: ServiceRecord,
        details: str,
        authorized: Optional[ServiceRecord] = None,
        reported: Optional[ServiceRecord] = None,
) -> Discrepancy:
    return Discrepancy(
        type=kind,
        professional_id=driver.professional_id,
        service_date=driver.service_date,
        service_type=driver.service_type,
        details=details,
        authorized=authorized,
        reported=reported,
    )


def _index_authorized(
        authorized: Sequence[ServiceRecord],
) -> Dict[MatchingKey, List[Tuple[int, ServiceRecord]]]:
    """key -> [(position in authorized, record), ...] in input order."""
    index: Dict[MatchingKey, List[Tuple[int, ServiceRecord]]] = {}
    for position, record in enumerate(authorized):
        index.setdefault(matching_key(record), []).append((position, record))
    return index


def _nearest_candidate(
        candidates: List[Tuple[int, ServiceRecord]],
        reported: ServiceRecord,
) -> Tuple[int, ServiceRecord]:
    best = candidates[0]
    best_delta = float("inf")
    for position, candidate in candidates:
        delta = minutes_between(candidate.start_at, reported.start_at)
        if delta < best_delta:      # strict: first tied candidate is kept
            best_delta = delta
            best = (position, candidate)
    return best


def classify_pair(
        authorized: ServiceRecord,
        reported: ServiceRecord,
        start_tolerance_min: float,
        duration_tolerance_min: float,
) -> List[Discrepancy]:

    """

    Apply tolerance rules to one matched pair.

    Both checks run independently, so a pair yields zero, one or two findings.
    A delta equal to the tolerance is within tolerance.

    Negative durations (end before start, e.g. overnight shifts entered on a
    single date) are compared as-is.

    """

    findings: List[Discrepancy] = []

    delta_start = minutes_between(authorized.start_at, reported.start_at)
    if delta_start > start_tolerance_min:
        findings.append(
            _finding(
                DiscrepancyType.START_MISMATCH,
                reported,
                f"Inicio fuera de tolerancia: {delta_start} min "
                f"(tol {_fmt_minutes(start_tolerance_min)})",
                authorized=authorized,
                reported=reported,
            )
        )

    delta_duration = abs(authorized.duration_minutes - reported.duration_minutes)
    if delta_duration > duration_tolerance_min:
        findings.append(
            _finding(
                DiscrepancyType.DURATION_MISMATCH,
                reported,
                f"Duración difiere {delta_duration} min "
                f"(tol {_fmt_minutes(duration_tolerance_min)})",
                authorized=authorized,
                reported=reported,
            )
        )

    return findings


def summarize(discrepancies: Sequence[Discrepancy]) -> Dict[DiscrepancyType, int]:
    """Count per type, in first-seen order."""
    return dict(Counter(d.type for d in discrepancies))



# --- Main engine -------------------------------------------------------------------


def reconcile(
        authorized: Sequence[ServiceRecord],
        reported: Sequence[ServiceRecord],
        start_tolerance_min: float = AUDIT_CONFIG.start_tolerance_min,
        duration_tolerance_min: float = AUDIT_CONFIG.duration_tolerance_min,
) -> AuditResult:

    """

    Reconcile authorized vs reported service records.

    Args:
        authorized:
            Parsed authorized records (see cleaning.clean_services.parse_authorized).
        reported:
            Parsed reported records (see cleaning.clean_services.parse_reported).
        start_tolerance_min:
            Allowed start-time delta in minutes (default 10).
        duration_tolerance_min:
            Allowed duration delta in minutes (default 5).

    Returns:
        AuditResult with discrepancies in detection order and a per-type summary.

    Raises:
        ConfigurationError: a tolerance is not a non-negative number.

    """

    start_tol, duration_tol = validate_tolerances(start_tolerance_min, duration_tolerance_min)
    logger.info(
        "Starting reconciliation: %d authorized, %d reported (tol start=%s, duration=%s)",
        len(authorized),
        len(reported),
        start_tol,
        duration_tol,
    )

    # 1) Index authorized records by key
    auth_index = _index_authorized(authorized)

    consumed: Set[Tuple[MatchingKey, int]] = set()
    discrepancies: List[Discrepancy] = []
    matched = 0

    # 2) Reported-driven findings, in reported order
    for rep in reported:
        key = matching_key(rep)
        candidates = auth_index.get(key, [])

        if not candidates:
            discrepancies.append(
                _finding(DiscrepancyType.NO_AUTH, rep, "Reporte sin autorización", reported=rep)
            )
            continue

        position, best = _nearest_candidate(candidates, rep)
        consumed.add((key, position))
        matched += 1

        # 3) Tolerance rules
        discrepancies.extend(classify_pair(best, rep, start_tol, duration_tol))

    # 4) Authorized records never consumed, in authorized order
    for position, auth in enumerate(authorized):
        if (matching_key(auth), position) not in consumed:
            discrepancies.append(
                _finding(
                    DiscrepancyType.MISSING_REPORT,
                    auth,
                    "Autorizado sin reporte",
                    authorized=auth,
                )
            )

    # 5) Summary once, over the full list
    summary = summarize(discrepancies)
    logger.info(
        "Reconciliation complete: %d matched, %d discrepancies %s",
        matched,
        len(discrepancies),
        {k.value: v for k, v in summary.items()},
    )
    return AuditResult(discrepancies=discrepancies, summary=summary)
