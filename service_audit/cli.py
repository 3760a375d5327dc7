"""
cli.py

Command-line entrypoint: audit an authorized file against a reported file.

    service-audit --authorized autorizados.csv --reported reportados.csv \
        --start-tolerance 10 --duration-tolerance 5 --output reports/audit.xlsx

Ingestion errors are shown as a single failure message (exit code 2) and no
discrepancy data is printed.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .cleaning.clean_services import parse_authorized, parse_reported
from .config import AUDIT_CONFIG, TZ_STRATEGIES, AuditConfig
from .core.timestamps import TimestampBuilder
from .core.validators import validate_tolerances
from .engines.match_services import reconcile
from .exceptions import AuditError
from .outputs.export_utils import write_audit_workbook

logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Reconcile authorized vs reported professional services."
    )
    parser.add_argument("--authorized", type=Path, required=True, help="Authorized CSV file")
    parser.add_argument("--reported", type=Path, required=True, help="Reported CSV file")
    parser.add_argument(
        "--start-tolerance",
        default=AUDIT_CONFIG.start_tolerance_min,
        help="Allowed start-time difference in minutes",
    )
    parser.add_argument(
        "--duration-tolerance",
        default=AUDIT_CONFIG.duration_tolerance_min,
        help="Allowed duration difference in minutes",
    )
    parser.add_argument("--timezone", default=AUDIT_CONFIG.timezone, help="IANA timezone of clock times")
    parser.add_argument(
        "--tz-strategy",
        choices=TZ_STRATEGIES,
        default=AUDIT_CONFIG.tz_strategy,
        help="Timezone resolution strategy",
    )
    parser.add_argument("--output", type=Path, default=None, help="Optional .xlsx report path")
    parser.add_argument("--verbose", action="store_true", help="Log progress to stderr")
    return parser.parse_args(argv)


def _read_text(path: Path) -> str:
    # utf-8-sig drops a BOM when present
    return path.read_text(encoding="utf-8-sig")


def run_audit(args: argparse.Namespace) -> int:
    start_tol, duration_tol = validate_tolerances(args.start_tolerance, args.duration_tolerance)
    config = AuditConfig(
        start_tolerance_min=start_tol,
        duration_tolerance_min=duration_tol,
        timezone=args.timezone,
        tz_strategy=args.tz_strategy,
    )
    builder = TimestampBuilder(config.timezone, config.tz_strategy)

    authorized = parse_authorized(_read_text(args.authorized), builder=builder)
    reported = parse_reported(_read_text(args.reported), builder=builder)

    result = reconcile(
        authorized,
        reported,
        start_tolerance_min=config.start_tolerance_min,
        duration_tolerance_min=config.duration_tolerance_min,
    )

    print(f"Tolerances: start {start_tol:g} min, duration {duration_tol:g} min")
    print("Summary:")
    if not result.summary:
        print("  no discrepancies")
    for kind, count in result.summary.items():
        print(f"  {kind.value}: {count}")
    for d in result.discrepancies:
        print(f"{d.type.value}\t{d.professional_id}\t{d.service_date}\t{d.service_type}\t{d.details}")

    if args.output is not None:
        path = write_audit_workbook(result, args.output)
        print(f"Wrote report to: {path}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return run_audit(args)
    except AuditError as exc:
        logger.debug("Audit failed", exc_info=True)
        print(f"Error procesando auditoría: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
