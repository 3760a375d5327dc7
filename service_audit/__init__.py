"""
Service Attendance Audit

This package contains the core modules for:

- Reading authorized and reported service files (CSV, ES/EN headers)
- Normalizing and validating rows into canonical service records
- Matching reported services to authorized ones and classifying discrepancies
- Exporting and charting audit results

Subpackages:
- core
- cleaning
- engines
- outputs
- visualization

"""

from . import core, cleaning, engines, outputs, visualization
from .cleaning.clean_services import parse_authorized, parse_reported
from .engines.match_services import reconcile

__all__ = [
    "core",
    "cleaning",
    "engines",
    "outputs",
    "visualization",
    "parse_authorized",
    "parse_reported",
    "reconcile",
]
