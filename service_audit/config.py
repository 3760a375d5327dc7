#Docstring for service_audit/config module
"""
config.py

Central configuration for the service attendance audit.

This module defines the header alias table, default timezone, tolerance
thresholds, and fixed-offset fallback table used across the project.

It is intentionally the single source of truth for:
- Header standardization (raw CSV headers -> canonical field names)
- Matching tolerances (start time and duration, in minutes)
- Timezone defaults and the fixed-offset approximation table

Design goals
------------
- Consistency: ingestion and engine rely on the same canonical names.
- Maintainability: tolerances and aliases are edited in one place.
- Explicitness: nothing here reads the environment. Callers pass an
  AuditConfig (or override single values) into ingestion and reconciliation.

Contents
--------
1) Paths and project defaults
2) Header aliases
   - HEADER_ALIASES: canonical field -> accepted normalized header spellings
     (Spanish and English variants). Keys are compared AFTER normalization
     (lower-case, no whitespace, no '.', '_' or '-').
3) Timezone configuration
   - DEFAULT_TIMEZONE
   - FIXED_UTC_OFFSETS: used only by the "fixed_offset" strategy
4) Audit configuration
   - AuditConfig (dataclass) and AUDIT_CONFIG default instance

Usage
-----
    from service_audit.config import AUDIT_CONFIG, HEADER_ALIASES

    tol = AUDIT_CONFIG.start_tolerance_min
"""


from dataclasses import dataclass
from pathlib import Path



# --- Base paths ----------------------------------------------------------------

# service_audit/ -> project root
BASE_DIR = Path(__file__).resolve().parents[1]

DATA_DIR = BASE_DIR / "data"
SAMPLE_DIR = DATA_DIR / "sample"

REPORTS_DIR = BASE_DIR / "reports"
REPORTS_OUTPUTS_DIR = REPORTS_DIR / "outputs"



# --- Header aliases (normalized raw header -> canonical field) ------------------

# IMPORTANT:
# Aliases are listed in priority order. For each row the first alias present
# with a non-empty value wins.

HEADER_ALIASES = {
    "professional_id": (
        "professionalid",
        "idprofesional",
        "idprofessional",
        "profesionalid",
        "legajo",
        "empleadoid",
    ),
    "service_date": (
        "servicedate",
        "fecha",
        "fechaservicio",
        "fechaatencion",
    ),
    "start": (
        "start",
        "inicio",
        "horainicio",
        "desde",
    ),
    "end": (
        "end",
        "fin",
        "horafin",
        "hasta",
    ),
    "authorized_minutes": (
        "authorizedminutes",
        "minutosautorizados",
        "duracionautorizada",
        "duracionminutos",
        "minutos",
    ),
    "reported_minutes": (
        "reportedminutes",
        "minutosreportados",
        "duracionreportada",
    ),
    "service_type": (
        "servicetype",
        "tipo",
        "tiposervicio",
        "prestacion",
    ),
}

# Fields every row must resolve, regardless of role
REQUIRED_FIELDS = ("professional_id", "service_date", "start", "end")

# Role -> duration field name
DURATION_FIELDS = {
    "authorized": "authorized_minutes",
    "reported": "reported_minutes",
}

DEFAULT_SERVICE_TYPE = "general"

# Candidate delimiters, in tie-break order (first wins on equal counts)
CANDIDATE_DELIMITERS = (",", ";", "\t")



# --- Timezone configuration -----------------------------------------------------

DEFAULT_TIMEZONE = "America/Argentina/Cordoba"

TZ_STRATEGY_ZONE_DATABASE = "zone_database"
TZ_STRATEGY_FIXED_OFFSET = "fixed_offset"
TZ_STRATEGIES = (TZ_STRATEGY_ZONE_DATABASE, TZ_STRATEGY_FIXED_OFFSET)

# Minutes east of UTC. Lookup is case-insensitive.
# NOTE: fixed offsets ignore daylight-saving transitions. Zones missing here
# are treated as UTC by the fixed-offset strategy.
FIXED_UTC_OFFSETS = {
    "america/argentina/cordoba": -180,   # UTC-3 all year, no DST
    "america/argentina/buenos_aires": -180,
    "utc": 0,
    "etc/utc": 0,
}



# --- Audit configuration --------------------------------------------------------

@dataclass(frozen=True)
class AuditConfig:

    """

    Configuration for one audit run.

    start_tolerance_min:
        Maximum allowed difference, in minutes, between authorized and reported
        start times. A delta equal to the tolerance is NOT a mismatch.
    duration_tolerance_min:
        Maximum allowed difference, in minutes, between authorized and
        reported durations.
    timezone:
        IANA zone identifier used to interpret local clock times.
    tz_strategy:
        "zone_database" (full IANA database) or "fixed_offset" (approximation,
        see FIXED_UTC_OFFSETS).

    """

    start_tolerance_min: float = 10
    duration_tolerance_min: float = 5
    timezone: str = DEFAULT_TIMEZONE
    tz_strategy: str = TZ_STRATEGY_ZONE_DATABASE


AUDIT_CONFIG = AuditConfig()
