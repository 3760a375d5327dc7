# Docstring for service_audit/outputs/export_utils module
"""
export_utils.py

Utilities for turning an AuditResult into pandas DataFrames and Excel files.

Design goals
------------
- Flat tables: one row per discrepancy, with the authorized and reported sides
  spread into prefixed columns so auditors can filter in a spreadsheet.
- Safe output: ensure parent directories exist before writing files.
- Consistent engine: always use the openpyxl engine for .xlsx output.

Public API
----------
- discrepancies_to_dataframe(result) -> pd.DataFrame
- summary_to_dataframe(result) -> pd.DataFrame
- write_df_excel(df, output_path=None, *, out_dir=REPORTS_OUTPUTS_DIR,
  filename_prefix="audit", sheet_name="data", index=False) -> Path
- write_multi_sheet_excel(sheets, output_path, *, index=False) -> Path
- write_audit_workbook(result, output_path=None) -> Path
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from ..config import REPORTS_OUTPUTS_DIR
from ..core.models import AuditResult, DiscrepancyType, ServiceRecord


EXCEL_SHEETNAME_LIMIT = 31

DISCREPANCY_COLUMNS = [
    "type",
    "professional_id",
    "service_date",
    "service_type",
    "details",
    "authorized_row",
    "authorized_start",
    "authorized_end",
    "authorized_minutes",
    "reported_row",
    "reported_start",
    "reported_end",
    "reported_minutes",
]

SUMMARY_COLUMNS = ["type", "count"]


def _ensure_parent_dir(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _timestamped_filename(prefix: str) -> str:
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{stamp}.xlsx"


def _truncate_sheet_name(name: str) -> str:
    return name[:EXCEL_SHEETNAME_LIMIT] if len(name) > EXCEL_SHEETNAME_LIMIT else name


def _side_columns(prefix: str, record: Optional[ServiceRecord]) -> dict[str, object]:
    if record is None:
        return {
            f"{prefix}_row": pd.NA,
            f"{prefix}_start": pd.NA,
            f"{prefix}_end": pd.NA,
            f"{prefix}_minutes": pd.NA,
        }
    return {
        f"{prefix}_row": record.row_index,
        f"{prefix}_start": record.start,
        f"{prefix}_end": record.end,
        f"{prefix}_minutes": record.duration_minutes,
    }


def discrepancies_to_dataframe(result: AuditResult) -> pd.DataFrame:
    """One row per discrepancy, detection order preserved."""
    rows = []
    for d in result.discrepancies:
        row = {
            "type": d.type.value,
            "professional_id": d.professional_id,
            "service_date": d.service_date,
            "service_type": d.service_type,
            "details": d.details,
        }
        row.update(_side_columns("authorized", d.authorized))
        row.update(_side_columns("reported", d.reported))
        rows.append(row)

    df = pd.DataFrame(rows, columns=DISCREPANCY_COLUMNS)
    for col in ("authorized_row", "authorized_minutes", "reported_row", "reported_minutes"):
        df[col] = df[col].astype("Int64")
    return df


def summary_to_dataframe(result: AuditResult) -> pd.DataFrame:
    """Count per discrepancy type, every type listed (zero when absent)."""
    rows = [{"type": kind.value, "count": result.count(kind)} for kind in DiscrepancyType]
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def write_df_excel(
    df: pd.DataFrame,
    output_path: Path | str | None = None,
    *,
    out_dir: Path | str = REPORTS_OUTPUTS_DIR,
    filename_prefix: str = "audit",
    sheet_name: str = "data",
    index: bool = False,
) -> Path:
    """
    Write a DataFrame to a single-sheet Excel file and return the output path.

    If output_path is None, a timestamped file is created under out_dir with
    the prefix filename_prefix.
    """
    if output_path is None:
        output_path = Path(out_dir) / _timestamped_filename(filename_prefix)
    path = Path(output_path)
    _ensure_parent_dir(path)
    df.to_excel(path, engine="openpyxl", sheet_name=_truncate_sheet_name(sheet_name), index=index)
    return path


def write_multi_sheet_excel(
    sheets: dict[str, pd.DataFrame],
    output_path: Path | str,
    *,
    index: bool = False,
) -> Path:
    """
    Write multiple DataFrames to a single Excel workbook and return the path.

    Each dict key becomes a sheet name (truncated to Excel's 31-character limit).
    """
    path = Path(output_path)
    _ensure_parent_dir(path)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for name, df in sheets.items():
            df.to_excel(writer, sheet_name=_truncate_sheet_name(name), index=index)
    return path


def write_audit_workbook(
    result: AuditResult,
    output_path: Path | str | None = None,
    *,
    out_dir: Path | str = REPORTS_OUTPUTS_DIR,
) -> Path:
    """Write 'summary' and 'discrepancies' sheets for one audit run."""
    if output_path is None:
        output_path = Path(out_dir) / _timestamped_filename("audit")
    return write_multi_sheet_excel(
        {
            "summary": summary_to_dataframe(result),
            "discrepancies": discrepancies_to_dataframe(result),
        },
        output_path,
    )
