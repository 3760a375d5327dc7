from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from service_audit import parse_authorized, parse_reported, reconcile
from service_audit.cli import main
from service_audit.core.generate_sample_data import build_sample_frames, generate_sample_data
from service_audit.core.models import DiscrepancyType


AUTHORIZED_CSV = (
    "Legajo;Fecha;Hora Inicio;Hora Fin;Minutos Autorizados\n"
    "P1;2024-01-01;09:00;10:00;60,0\n"
    "P2;2024-01-01;14:00;15:00;60\n"
)

REPORTED_CSV = (
    "professional_id,service_date,start,end,reported_minutes\n"
    "P1,2024-01-01,09:12,10:10,58\n"
)


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_parse_and_reconcile_mixed_formats() -> None:
    result = reconcile(parse_authorized(AUTHORIZED_CSV), parse_reported(REPORTED_CSV))

    assert [d.type for d in result.discrepancies] == [
        DiscrepancyType.START_MISMATCH,
        DiscrepancyType.MISSING_REPORT,
    ]
    assert result.discrepancies[1].professional_id == "P2"


def test_cli_prints_summary_and_writes_workbook(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    authorized = _write(tmp_path, "autorizados.csv", AUTHORIZED_CSV)
    reported = _write(tmp_path, "reportados.csv", REPORTED_CSV)
    output = tmp_path / "out" / "audit.xlsx"

    code = main(
        [
            "--authorized", str(authorized),
            "--reported", str(reported),
            "--output", str(output),
        ]
    )

    out = capsys.readouterr().out
    assert code == 0
    assert "Tolerances: start 10 min, duration 5 min" in out
    assert "  START_MISMATCH: 1" in out
    assert "  MISSING_REPORT: 1" in out
    assert "Inicio fuera de tolerancia: 12 min (tol 10)" in out
    assert output.exists() is True


def test_cli_reports_ingestion_error_without_findings(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    authorized = _write(tmp_path, "autorizados.csv", AUTHORIZED_CSV)
    reported = _write(
        tmp_path,
        "reportados.csv",
        "professional_id,service_date,start,end\nP1,2024-01-01,9h,10:00\n",
    )

    code = main(["--authorized", str(authorized), "--reported", str(reported)])

    captured = capsys.readouterr()
    assert code == 2
    assert captured.err.startswith("Error procesando auditoría:")
    assert "Summary:" not in captured.out


def test_cli_rejects_negative_tolerance(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    authorized = _write(tmp_path, "autorizados.csv", AUTHORIZED_CSV)
    reported = _write(tmp_path, "reportados.csv", REPORTED_CSV)

    code = main(
        ["--authorized", str(authorized), "--reported", str(reported), "--start-tolerance", "-1"]
    )

    assert code == 2
    assert "start_tolerance_min" in capsys.readouterr().err


def test_sample_data_is_deterministic() -> None:
    first_auth, first_rep = build_sample_frames(seed=7, n_rows=20)
    second_auth, second_rep = build_sample_frames(seed=7, n_rows=20)

    pd.testing.assert_frame_equal(first_auth, second_auth)
    pd.testing.assert_frame_equal(first_rep, second_rep)


def test_sample_data_round_trips_through_audit(tmp_path: Path) -> None:
    outputs = generate_sample_data(output_dir=tmp_path)

    authorized = parse_authorized(outputs["authorized"].read_text(encoding="utf-8-sig"))
    reported = parse_reported(outputs["reported"].read_text(encoding="utf-8"))
    result = reconcile(authorized, reported)

    assert len(authorized) == 40
    assert result.count(DiscrepancyType.NO_AUTH) == 1
    assert result.count(DiscrepancyType.MISSING_REPORT) >= 1
    assert result.count(DiscrepancyType.START_MISMATCH) >= 1
    assert result.count(DiscrepancyType.DURATION_MISMATCH) >= 1
    assert sum(result.summary.values()) == len(result.discrepancies)
