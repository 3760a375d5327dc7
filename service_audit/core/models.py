"""
Service Audit Data Models

This module defines the records flowing through the audit:
- ServiceRecord: one canonical row from the authorized or reported dataset
- Discrepancy: one finding produced by the reconciliation engine
- AuditResult: ordered findings plus a count per discrepancy type

All objects are created fresh per reconciliation call; nothing here holds state
across calls.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..config import DEFAULT_SERVICE_TYPE


# =============================================================================
# Enums
# =============================================================================

class Source(str, Enum):
    """Dataset role"""
    AUTHORIZED = "authorized"   # approved / scheduled
    REPORTED = "reported"       # actually logged


class DiscrepancyType(str, Enum):
    """Discrepancy classification, in reporting order"""
    NO_AUTH = "NO_AUTH"                     # reported, no authorization for the key
    START_MISMATCH = "START_MISMATCH"       # start delta over tolerance
    DURATION_MISMATCH = "DURATION_MISMATCH" # duration delta over tolerance
    MISSING_REPORT = "MISSING_REPORT"       # authorized, never reported


MatchingKey = Tuple[str, str, str]


# =============================================================================
# Core Data Models
# =============================================================================

@dataclass
class ServiceRecord:
    """
    Canonical service row. Ingestion converts both datasets into this shape.

    duration_minutes holds authorized minutes for authorized rows and reported
    minutes for reported rows; the role-named properties read it back.
    """
    professional_id: str
    service_date: str                  # YYYY-MM-DD
    start: str                         # local clock time as given
    end: str
    start_at: datetime                 # tz-aware instant
    end_at: datetime
    duration_minutes: int
    source: Source
    row_index: int                     # 1-based data row in the input
    service_type: str = DEFAULT_SERVICE_TYPE

    @property
    def key(self) -> MatchingKey:
        return (self.professional_id, self.service_date, self.service_type)

    @property
    def authorized_minutes(self) -> Optional[int]:
        return self.duration_minutes if self.source == Source.AUTHORIZED else None

    @property
    def reported_minutes(self) -> Optional[int]:
        return self.duration_minutes if self.source == Source.REPORTED else None

    def to_dict(self) -> Dict[str, Any]:
        minutes_field = (
            "authorized_minutes" if self.source == Source.AUTHORIZED else "reported_minutes"
        )
        return {
            "professional_id": self.professional_id,
            "service_date": self.service_date,
            "service_type": self.service_type,
            "start": self.start,
            "end": self.end,
            "start_at": self.start_at.isoformat(),
            "end_at": self.end_at.isoformat(),
            minutes_field: self.duration_minutes,
            "source": self.source.value,
            "row_index": self.row_index,
        }


@dataclass
class Discrepancy:
    """One reconciliation finding, keyed by the record that produced it."""
    type: DiscrepancyType
    professional_id: str
    service_date: str
    service_type: str
    details: str
    authorized: Optional[ServiceRecord] = None
    reported: Optional[ServiceRecord] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "professional_id": self.professional_id,
            "service_date": self.service_date,
            "service_type": self.service_type,
            "details": self.details,
            "authorized": self.authorized.to_dict() if self.authorized else None,
            "reported": self.reported.to_dict() if self.reported else None,
        }


@dataclass
class AuditResult:
    """
    Output of one reconciliation.

    discrepancies are in detection order: reported-driven findings first (in
    reported input order), then MISSING_REPORT findings (in authorized order).
    summary maps discrepancy type -> count and only lists types that occurred.
    """
    discrepancies: List[Discrepancy] = field(default_factory=list)
    summary: Dict[DiscrepancyType, int] = field(default_factory=dict)

    def count(self, kind: DiscrepancyType) -> int:
        return self.summary.get(kind, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "discrepancies": [d.to_dict() for d in self.discrepancies],
            "summary": {k.value: v for k, v in self.summary.items()},
        }
