"""
generate_sample_data.py

Seeded generator for synthetic authorized / reported service files.

This script writes two CSV files into data/sample/ using raw headers that
resolve through config.HEADER_ALIASES, so the ingestion pipeline accepts them
as-is. The authorized file uses Spanish headers with ';' and decimal-comma
minutes; the reported file uses English headers with ','. Outputs are
deterministic given a seed and include rows for every discrepancy type plus a
row whose minutes must be derived from start/end.
"""

from __future__ import annotations

import argparse
import random
from datetime import date, datetime, timedelta
from pathlib import Path

import pandas as pd
from faker import Faker

from ..config import SAMPLE_DIR


DEFAULT_SEED = 20240101
DEFAULT_ROWS = 40

SERVICE_TYPES = ["general", "kinesiologia", "fonoaudiologia", "psicologia"]

AUTHORIZED_HEADERS = {
    "professional_id": "Legajo",
    "service_date": "Fecha",
    "service_type": "Tipo Servicio",
    "start": "Hora Inicio",
    "end": "Hora Fin",
    "minutes": "Minutos Autorizados",
}

REPORTED_HEADERS = {
    "professional_id": "professional_id",
    "service_date": "service_date",
    "service_type": "service_type",
    "start": "start",
    "end": "end",
    "minutes": "reported_minutes",
}


def _clock(value: datetime) -> str:
    return value.strftime("%H:%M")


def _build_base_services(rng: random.Random, faker: Faker, n_rows: int) -> list[dict[str, object]]:
    professionals = [faker.unique.bothify("PRO-####") for _ in range(max(3, n_rows // 5))]
    services = []
    for _ in range(n_rows):
        day = faker.date_between_dates(date_start=date(2024, 1, 1), date_end=date(2024, 1, 31))
        start = datetime(day.year, day.month, day.day, rng.randint(7, 17), rng.choice([0, 15, 30, 45]))
        minutes = rng.choice([30, 45, 60, 90])
        services.append(
            {
                "professional_id": rng.choice(professionals),
                "service_date": day.isoformat(),
                "service_type": rng.choice(SERVICE_TYPES),
                "start": start,
                "minutes": minutes,
            }
        )
    return services


def _authorized_rows(services: list[dict[str, object]]) -> list[dict[str, object]]:
    rows = []
    for idx, svc in enumerate(services):
        start = svc["start"]
        end = start + timedelta(minutes=svc["minutes"])
        rows.append(
            {
                AUTHORIZED_HEADERS["professional_id"]: svc["professional_id"],
                AUTHORIZED_HEADERS["service_date"]: svc["service_date"],
                AUTHORIZED_HEADERS["service_type"]: svc["service_type"],
                AUTHORIZED_HEADERS["start"]: _clock(start),
                AUTHORIZED_HEADERS["end"]: _clock(end),
                # every 7th row leaves minutes blank so they are derived
                AUTHORIZED_HEADERS["minutes"]: "" if idx % 7 == 3 else f"{svc['minutes']},0",
            }
        )
    return rows


def _reported_rows(
    services: list[dict[str, object]],
    rng: random.Random,
    faker: Faker,
) -> list[dict[str, object]]:
    rows = []
    for idx, svc in enumerate(services):
        if idx % 9 == 8:
            continue                                   # MISSING_REPORT
        start = svc["start"]
        minutes = svc["minutes"]
        if idx % 6 == 1:
            start = start + timedelta(minutes=rng.randint(11, 40))   # START_MISMATCH
        if idx % 5 == 2:
            minutes = minutes - rng.randint(6, 20)                   # DURATION_MISMATCH
        else:
            minutes = minutes - rng.randint(0, 3)
        end = start + timedelta(minutes=minutes)
        rows.append(
            {
                REPORTED_HEADERS["professional_id"]: svc["professional_id"],
                REPORTED_HEADERS["service_date"]: svc["service_date"],
                REPORTED_HEADERS["service_type"]: svc["service_type"],
                REPORTED_HEADERS["start"]: _clock(start),
                REPORTED_HEADERS["end"]: _clock(end),
                REPORTED_HEADERS["minutes"]: minutes,
            }
        )

    # One unauthorized service -> NO_AUTH
    day = faker.date_between_dates(date_start=date(2024, 1, 1), date_end=date(2024, 1, 31))
    rows.append(
        {
            REPORTED_HEADERS["professional_id"]: "PRO-NOAUTH",
            REPORTED_HEADERS["service_date"]: day.isoformat(),
            REPORTED_HEADERS["service_type"]: "general",
            REPORTED_HEADERS["start"]: "10:00",
            REPORTED_HEADERS["end"]: "10:45",
            REPORTED_HEADERS["minutes"]: 45,
        }
    )
    return rows


def build_sample_frames(seed: int = DEFAULT_SEED, n_rows: int = DEFAULT_ROWS) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Return (authorized_df, reported_df) with raw headers."""
    rng = random.Random(seed)
    faker = Faker()
    faker.seed_instance(seed)

    services = _build_base_services(rng, faker, n_rows)
    authorized_df = pd.DataFrame(_authorized_rows(services), columns=list(AUTHORIZED_HEADERS.values()))
    reported_df = pd.DataFrame(_reported_rows(services, rng, faker), columns=list(REPORTED_HEADERS.values()))
    return authorized_df, reported_df


def generate_sample_data(
    output_dir: Path = SAMPLE_DIR,
    seed: int = DEFAULT_SEED,
    n_rows: int = DEFAULT_ROWS,
) -> dict[str, Path]:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    authorized_df, reported_df = build_sample_frames(seed=seed, n_rows=n_rows)

    outputs = {
        "authorized": output_dir / "authorized_sample.csv",
        "reported": output_dir / "reported_sample.csv",
    }
    authorized_df.to_csv(outputs["authorized"], sep=";", index=False, encoding="utf-8-sig")
    reported_df.to_csv(outputs["reported"], sep=",", index=False)
    return outputs


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate seeded synthetic authorized/reported service files."
    )
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Deterministic RNG seed")
    parser.add_argument("--rows", type=int, default=DEFAULT_ROWS, help="Authorized services to generate")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=SAMPLE_DIR,
        help="Destination directory for sample CSV files",
    )
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    outputs = generate_sample_data(output_dir=args.output_dir, seed=args.seed, n_rows=args.rows)
    for label, path in outputs.items():
        print(f"Wrote {label} sample to: {path}")


if __name__ == "__main__":
    main()
