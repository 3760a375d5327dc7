"""
discrepancy_visualization.py

Helpers for summarizing and visualizing reconciliation output
(engines.match_services).
"""

from __future__ import annotations

from typing import Tuple

import pandas as pd
import matplotlib.pyplot as plt

from ..core.models import DiscrepancyType


DISCREPANCY_GROUPS = [kind.value for kind in DiscrepancyType]


def _validate_required_columns(df: pd.DataFrame, required_cols: list[str]) -> None:
    missing = [col for col in required_cols if col not in df.columns]
    if missing:
        missing_list = ", ".join(missing)
        raise ValueError(f"Missing required columns: {missing_list}")


def build_discrepancy_summary(df: pd.DataFrame) -> pd.DataFrame:
    """
    Compute counts and percentages per discrepancy type.

    Required columns:
      - type
    """

    _validate_required_columns(df, ["type"])

    columns = ["type", "count", "percent"]
    if df.empty:
        return pd.DataFrame(columns=columns)

    total = int(df.shape[0])
    rows = []
    for kind in DISCREPANCY_GROUPS:
        count = int((df["type"] == kind).sum())
        rows.append(
            {
                "type": kind,
                "count": count,
                "percent": count / total if total else 0.0,
            }
        )

    return pd.DataFrame(rows, columns=columns)


def build_professional_summary(df: pd.DataFrame, top_n: int = 10) -> pd.DataFrame:
    """
    Discrepancy counts per professional, most affected first.

    Required columns:
      - professional_id
      - type
    """

    _validate_required_columns(df, ["professional_id", "type"])

    columns = ["professional_id", *DISCREPANCY_GROUPS, "total"]
    if df.empty:
        return pd.DataFrame(columns=columns)

    table = (
        pd.crosstab(df["professional_id"], df["type"])
        .reindex(columns=DISCREPANCY_GROUPS, fill_value=0)
    )
    table["total"] = table.sum(axis=1)
    table = table.sort_values(["total"], ascending=False, kind="stable").head(top_n)
    return table.reset_index()[columns]


def plot_discrepancy_summary(
    summary_df: pd.DataFrame,
) -> Tuple[plt.Figure, plt.Axes]:
    """
    Plot discrepancy counts per type as horizontal bars.
    """

    _validate_required_columns(summary_df, ["type", "count", "percent"])

    fig, ax = plt.subplots(figsize=(8, 4))
    if summary_df.empty:
        ax.text(0.5, 0.5, "No discrepancies", ha="center", va="center")
        ax.set_axis_off()
        return fig, ax

    data = summary_df.set_index("type").reindex(DISCREPANCY_GROUPS).fillna(0)
    counts = data["count"].astype(int)
    percents = data["percent"] * 100

    ax.barh(DISCREPANCY_GROUPS, counts, color="#E45756")
    ax.set_xlabel("Discrepancies")
    ax.set_title("Service Audit Discrepancy Summary")

    max_count = int(counts.max() if len(counts) else 0)
    ax.set_xlim(0, max(5, max_count * 1.2))

    for idx, (count, pct) in enumerate(zip(counts, percents)):
        ax.text(count + 0.1, idx, f"{count} ({pct:.1f}%)", va="center")

    return fig, ax
