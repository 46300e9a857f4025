from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from curva_s.services.distribution import (
    LinearDistribution,
    distribute_planned_value,
    get_strategy,
    leaf_tasks,
    parse_date,
    parse_money,
)
from curva_s.tests.helpers import day, task


def test_linear_distribution_spreads_cost_evenly():
    increments = LinearDistribution().distribute(day(0), day(2), 300.0)

    assert increments == [(day(0), 100.0), (day(1), 100.0), (day(2), 100.0)]


def test_single_day_task_gets_the_whole_cost():
    plan = distribute_planned_value([task("t1", day(4), day(4), 125)])

    assert plan.increments == [(day(4), 125.0)]
    assert plan.bac == 125
    assert plan.anomalies == []


def test_zero_cost_tasks_contribute_nothing_without_anomaly():
    plan = distribute_planned_value([task("t1", day(0), day(6), 0)])

    assert plan.increments == []
    assert plan.bac == 0
    assert plan.anomalies == []


def test_overlapping_tasks_sum_per_day():
    plan = distribute_planned_value(
        [
            task("a", day(0), day(1), 200),
            task("b", day(1), day(2), 60),
        ]
    )

    assert plan.increments == [(day(0), 100.0), (day(1), 130.0), (day(2), 30.0)]


def test_summary_tasks_are_not_distributed():
    tasks = [
        task("phase", day(0), day(9), 1000),
        task("child", day(0), day(4), 500, parent_id="phase"),
        task("grandchild", day(0), day(1), 40, parent_id="child"),
    ]

    assert [item.id for item in leaf_tasks(tasks)] == ["grandchild"]
    assert distribute_planned_value(tasks).bac == 40


def test_negative_or_missing_cost_is_reported_and_left_out_of_bac():
    plan = distribute_planned_value(
        [
            task("neg", day(0), day(1), -10),
            task("none", day(0), day(1), None),
            task("ok", day(0), day(1), Decimal("20.50")),
        ]
    )

    assert [anomaly.ref for anomaly in plan.anomalies] == ["neg", "none"]
    assert all(anomaly.kind == "invalid_cost" for anomaly in plan.anomalies)
    assert plan.bac == pytest.approx(20.5)


def test_string_dates_are_accepted():
    plan = distribute_planned_value([task("t1", "2025-03-03", "2025-03-04T00:00:00Z", 10)])

    assert plan.increments == [(date(2025, 3, 3), 5.0), (date(2025, 3, 4), 5.0)]


def test_unknown_strategy_is_rejected():
    assert get_strategy("linear").name == "linear"
    with pytest.raises(ValueError):
        get_strategy("beta-curve")


def test_custom_strategy_can_be_plugged_in():
    class FrontLoaded:
        name = "front"

        def distribute(self, start, end, amount):
            return [(start, amount)]

    plan = distribute_planned_value([task("t1", day(0), day(9), 90)], strategy=FrontLoaded())

    assert plan.increments == [(day(0), 90)]


@pytest.mark.parametrize(
    "raw, expected",
    [
        (date(2025, 1, 2), date(2025, 1, 2)),
        (datetime(2025, 1, 2, 17, 30), date(2025, 1, 2)),
        ("2025-01-02", date(2025, 1, 2)),
        (" 2025-01-02T08:00:00 ", date(2025, 1, 2)),
        ("02/01/2025", None),
        ("", None),
        (None, None),
        (20250102, None),
    ],
)
def test_parse_date(raw, expected):
    assert parse_date(raw) == expected


def test_parse_money_rejects_non_finite_values():
    assert parse_money("12.5") == 12.5
    assert parse_money(Decimal("3.10")) == pytest.approx(3.1)
    assert parse_money(float("nan")) is None
    assert parse_money("inf") is None
    assert parse_money(True) is None
    assert parse_money("abc") is None
