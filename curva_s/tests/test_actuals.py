from __future__ import annotations

from datetime import date, datetime

import pytest

from curva_s.models.domain import (
    ADVANCE_PERCENTAGE,
    APPROVED_VALUATION,
    ActualProgressRecord,
    ApprovedValuation,
    TaskAdvance,
)
from curva_s.services.actuals import normalize_actuals
from curva_s.services.curva_s import compute_curve_s
from curva_s.tests.helpers import day, snapshot, task

TASKS = [task("t1", day(0), day(9), 2000), task("t2", day(0), day(3), 400)]


def _valuation(**overrides) -> ApprovedValuation:
    fields = dict(
        id="val-1",
        amount=1500,
        period_start=date(2025, 3, 1),
        period_end=date(2025, 3, 31),
        approved_at=date(2025, 4, 4),
        status="aprobada",
    )
    fields.update(overrides)
    return ApprovedValuation(**fields)


@pytest.mark.parametrize(
    "policy, expected",
    [
        ("period_end", date(2025, 3, 31)),
        ("period_start", date(2025, 3, 1)),
        ("approved_at", date(2025, 4, 4)),
    ],
)
def test_valuation_effective_date_follows_policy(policy, expected):
    records, anomalies = normalize_actuals([_valuation()], TASKS, policy)

    assert anomalies == []
    assert records == [ActualProgressRecord(APPROVED_VALUATION, expected, 1500.0, "val-1")]


def test_valuation_falls_back_to_other_period_date():
    records, _ = normalize_actuals([_valuation(period_end=None, approved_at=None)], TASKS, "approved_at")

    assert records[0].effective_date == date(2025, 3, 1)


def test_unapproved_valuations_are_ignored():
    records, anomalies = normalize_actuals(
        [_valuation(status="borrador"), _valuation(id="val-2", status="Approved")],
        TASKS,
    )

    assert [record.ref for record in records] == ["val-2"]
    assert anomalies == []


def test_advance_is_priced_against_task_cost():
    records, anomalies = normalize_actuals([TaskAdvance("adv-1", "t1", day(4), 25)], TASKS)

    assert anomalies == []
    assert records == [ActualProgressRecord(ADVANCE_PERCENTAGE, day(4), 500.0, "adv-1")]


def test_advance_for_unknown_task_is_reported():
    records, anomalies = normalize_actuals([TaskAdvance("adv-1", "ghost", day(4), 10)], TASKS)

    assert records == []
    assert [(anomaly.kind, anomaly.ref) for anomaly in anomalies] == [("unknown_task", "adv-1")]


def test_advance_on_task_without_usable_cost_is_reported_as_invalid_cost():
    tasks = TASKS + [task("t3", day(0), day(3), None)]

    records, anomalies = normalize_actuals([TaskAdvance("adv-1", "t3", day(2), 50)], tasks)

    assert records == []
    assert [(anomaly.kind, anomaly.ref) for anomaly in anomalies] == [("invalid_cost", "adv-1")]
    assert "not a leaf" not in anomalies[0].detail


@pytest.mark.parametrize("percentage", [-5, 120, "lots"])
def test_advance_percentage_out_of_range_is_reported(percentage):
    records, anomalies = normalize_actuals([TaskAdvance("adv-1", "t2", day(1), percentage)], TASKS)

    assert records == []
    assert anomalies[0].kind == "invalid_percentage"


def test_normalized_records_pass_through():
    record = ActualProgressRecord(APPROVED_VALUATION, day(2), 10.0, "pre")

    records, anomalies = normalize_actuals([record], [])

    assert records == [record]
    assert anomalies == []


def test_unsupported_source_type_raises():
    with pytest.raises(TypeError):
        normalize_actuals([{"amount": 10}], TASKS)


def test_record_timestamps_are_reduced_to_dates():
    record = ActualProgressRecord(APPROVED_VALUATION, datetime(2025, 3, 6, 10, 0), 350.0, "v1")

    records, anomalies = normalize_actuals([record], [])

    assert anomalies == []
    assert records == [ActualProgressRecord(APPROVED_VALUATION, date(2025, 3, 6), 350.0, "v1")]


def test_curve_accepts_records_dated_with_timestamps(project):
    snapshots = [snapshot("s1", [task("t1", day(0), day(6), 700)])]
    record = ActualProgressRecord(APPROVED_VALUATION, datetime(2025, 3, 6, 10, 0), 350.0, "v1")

    result = compute_curve_s(project, snapshots, [record], as_of=day(6))

    assert result.anomalies == []
    assert result.weeks[0].ev_acum == pytest.approx(350)
    assert result.evm.spi == pytest.approx(0.5)


@pytest.mark.parametrize("value", [None, "n/a", float("nan")])
def test_record_with_unusable_value_is_reported(value):
    record = ActualProgressRecord(APPROVED_VALUATION, day(2), value, "bad")

    records, anomalies = normalize_actuals([record], [])

    assert records == []
    assert [(anomaly.kind, anomaly.ref) for anomaly in anomalies] == [("invalid_value", "bad")]
