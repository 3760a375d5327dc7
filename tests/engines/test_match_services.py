from collections import Counter

import pytest

from service_audit.core.models import DiscrepancyType, ServiceRecord, Source
from service_audit.core.timestamps import TimestampBuilder, duration_minutes
from service_audit.engines.match_services import classify_pair, reconcile, summarize
from service_audit.exceptions import ConfigurationError


UTC = TimestampBuilder("UTC")


def _record(
    source: Source,
    start: str,
    end: str,
    minutes=None,
    professional_id: str = "P1",
    service_date: str = "2024-01-01",
    service_type: str = "general",
    row_index: int = 1,
) -> ServiceRecord:
    start_at = UTC.build_instant(service_date, start)
    end_at = UTC.build_instant(service_date, end)
    return ServiceRecord(
        professional_id=professional_id,
        service_date=service_date,
        service_type=service_type,
        start=start,
        end=end,
        start_at=start_at,
        end_at=end_at,
        duration_minutes=minutes if minutes is not None else duration_minutes(start_at, end_at),
        source=source,
        row_index=row_index,
    )


def _auth(start: str, end: str, minutes=None, **kwargs) -> ServiceRecord:
    return _record(Source.AUTHORIZED, start, end, minutes, **kwargs)


def _rep(start: str, end: str, minutes=None, **kwargs) -> ServiceRecord:
    return _record(Source.REPORTED, start, end, minutes, **kwargs)


def _types(result):
    return [d.type for d in result.discrepancies]


# --- Matching --------------------------------------------------------------------


def test_start_outside_tolerance_is_the_only_finding() -> None:
    authorized = [_auth("09:00", "10:00", 60)]
    reported = [_rep("09:12", "10:10", 58)]

    result = reconcile(authorized, reported)

    assert _types(result) == [DiscrepancyType.START_MISMATCH]
    assert result.summary == {DiscrepancyType.START_MISMATCH: 1}
    finding = result.discrepancies[0]
    assert finding.details == "Inicio fuera de tolerancia: 12 min (tol 10)"
    assert finding.authorized is authorized[0]
    assert finding.reported is reported[0]


def test_exact_match_produces_nothing() -> None:
    result = reconcile([_auth("09:00", "10:00")], [_rep("09:00", "10:00")])

    assert result.discrepancies == []
    assert result.summary == {}
    assert result.count(DiscrepancyType.NO_AUTH) == 0


def test_unreported_authorization_is_missing_report() -> None:
    authorized = [
        _auth("09:00", "10:00", row_index=1),
        _auth("14:00", "15:00", professional_id="P2", row_index=2),
    ]

    result = reconcile(authorized, [_rep("09:00", "10:00")])

    assert _types(result) == [DiscrepancyType.MISSING_REPORT]
    finding = result.discrepancies[0]
    assert finding.professional_id == "P2"
    assert finding.details == "Autorizado sin reporte"
    assert finding.authorized is authorized[1]
    assert finding.reported is None


def test_report_without_authorization_is_no_auth() -> None:
    reported = [_rep("09:00", "10:00", service_type="kine")]

    result = reconcile([_auth("09:00", "10:00")], reported)

    # service type is part of the key, so the general authorization stays unused
    assert _types(result) == [DiscrepancyType.NO_AUTH, DiscrepancyType.MISSING_REPORT]
    no_auth = result.discrepancies[0]
    assert no_auth.details == "Reporte sin autorización"
    assert no_auth.service_type == "kine"
    assert no_auth.authorized is None


def test_nearest_start_wins_within_a_key() -> None:
    authorized = [_auth("10:00", "11:00", row_index=1), _auth("10:05", "11:05", row_index=2)]

    result = reconcile(authorized, [_rep("10:03", "11:03")])

    # 10:05 is nearer, so the 10:00 entry is the one left unreported
    assert _types(result) == [DiscrepancyType.MISSING_REPORT]
    assert result.discrepancies[0].authorized is authorized[0]


def test_tied_candidates_resolve_to_first_in_input_order() -> None:
    authorized = [_auth("09:50", "10:50", row_index=1), _auth("10:10", "11:10", row_index=2)]

    result = reconcile(authorized, [_rep("10:00", "11:00")])

    assert _types(result) == [DiscrepancyType.MISSING_REPORT]
    assert result.discrepancies[0].authorized is authorized[1]


def test_consumed_authorization_can_be_chosen_again() -> None:
    authorized = [_auth("09:00", "10:00")]
    reported = [_rep("09:00", "10:00", row_index=1), _rep("09:03", "10:03", row_index=2)]

    result = reconcile(authorized, reported)

    # second report re-uses the same authorization: no NO_AUTH, no MISSING_REPORT
    assert result.discrepancies == []


# --- Tolerances ------------------------------------------------------------------


@pytest.mark.parametrize(
    "reported_start, expected",
    [
        ("09:10", []),
        ("09:11", [DiscrepancyType.START_MISMATCH]),
        ("08:49", [DiscrepancyType.START_MISMATCH]),
    ],
)
def test_start_tolerance_boundary(reported_start, expected) -> None:
    result = reconcile([_auth("09:00", "10:00", 60)], [_rep(reported_start, "11:00", 60)])

    assert _types(result) == expected


@pytest.mark.parametrize("reported_minutes, expected", [(55, []), (54, [DiscrepancyType.DURATION_MISMATCH])])
def test_duration_tolerance_boundary(reported_minutes, expected) -> None:
    result = reconcile([_auth("09:00", "10:00", 60)], [_rep("09:00", "10:00", reported_minutes)])

    assert _types(result) == expected


def test_both_checks_fire_start_first() -> None:
    result = reconcile([_auth("09:00", "10:00", 60)], [_rep("09:30", "10:00", 30)])

    assert _types(result) == [DiscrepancyType.START_MISMATCH, DiscrepancyType.DURATION_MISMATCH]
    assert result.discrepancies[1].details == "Duración difiere 30 min (tol 5)"


def test_custom_tolerances_and_fractional_formatting() -> None:
    result = reconcile(
        [_auth("09:00", "10:00", 60)],
        [_rep("09:08", "10:00", 52)],
        start_tolerance_min=7.5,
        duration_tolerance_min=0,
    )

    assert [d.details for d in result.discrepancies] == [
        "Inicio fuera de tolerancia: 8 min (tol 7.5)",
        "Duración difiere 8 min (tol 0)",
    ]


def test_classify_pair_is_usable_on_its_own() -> None:
    findings = classify_pair(_auth("09:00", "10:00", 60), _rep("09:00", "10:00", 60), 10, 5)

    assert findings == []


@pytest.mark.parametrize("bad", [-1, "ten", float("nan"), None])
def test_invalid_tolerance_raises(bad) -> None:
    with pytest.raises(ConfigurationError):
        reconcile([], [], start_tolerance_min=bad)
    with pytest.raises(ConfigurationError):
        reconcile([], [], duration_tolerance_min=bad)


# --- Output shape ----------------------------------------------------------------


def test_ordering_conservation_and_summary() -> None:
    authorized = [
        _auth("08:00", "09:00", 60, professional_id="A", row_index=1),
        _auth("09:00", "10:00", 60, professional_id="B", row_index=2),
        _auth("10:00", "11:00", 60, professional_id="C", row_index=3),
    ]
    reported = [
        _rep("09:30", "10:30", 60, professional_id="B", row_index=1),
        _rep("12:00", "13:00", 60, professional_id="Z", row_index=2),
        _rep("08:00", "08:40", 40, professional_id="A", row_index=3),
    ]

    result = reconcile(authorized, reported)

    assert [(d.type, d.professional_id) for d in result.discrepancies] == [
        (DiscrepancyType.START_MISMATCH, "B"),
        (DiscrepancyType.NO_AUTH, "Z"),
        (DiscrepancyType.DURATION_MISMATCH, "A"),
        (DiscrepancyType.MISSING_REPORT, "C"),
    ]
    assert sum(result.summary.values()) == len(result.discrepancies)
    assert result.summary == dict(Counter(_types(result)))
    assert summarize(result.discrepancies) == result.summary
    # every finding carries the full key
    assert all(d.professional_id and d.service_date and d.service_type for d in result.discrepancies)


def test_inputs_are_not_mutated() -> None:
    authorized = [_auth("09:00", "10:00", 60)]
    reported = [_rep("09:30", "10:00", 30)]
    before = ([r.to_dict() for r in authorized], [r.to_dict() for r in reported])

    reconcile(authorized, reported)
    reconcile(authorized, reported)

    assert ([r.to_dict() for r in authorized], [r.to_dict() for r in reported]) == before


def test_result_to_dict_uses_plain_values() -> None:
    result = reconcile([], [_rep("09:00", "10:00")])

    payload = result.to_dict()

    assert payload["summary"] == {"NO_AUTH": 1}
    assert payload["discrepancies"][0]["type"] == "NO_AUTH"
    assert payload["discrepancies"][0]["reported"]["reported_minutes"] == 60
    assert payload["discrepancies"][0]["authorized"] is None
