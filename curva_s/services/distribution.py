"""Spread each leaf task's planned cost over its planned dates.

Only start/end and a lump cost are known per task, so the default strategy is
a flat per-day split. Strategies are looked up by name so that weighted
curves can be plugged in without touching the rest of the pipeline.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from ..models.domain import Anomaly, PlannedTask

logger = logging.getLogger(__name__)

Increment = Tuple[date, float]


def parse_date(value: object) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            return date.fromisoformat(raw[:10])
        except ValueError:
            return None
    return None


def parse_timestamp(value: object) -> datetime:
    """Coerce a creation timestamp to an aware UTC datetime; naive means UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, str):
        try:
            return parse_timestamp(datetime.fromisoformat(value.strip()))
        except ValueError:
            pass
    parsed = parse_date(value)
    if parsed is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    return datetime.combine(parsed, datetime.min.time(), tzinfo=timezone.utc)


def parse_money(value: object) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        value = float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


class DistributionStrategy(Protocol):
    name: str

    def distribute(self, start: date, end: date, amount: float) -> List[Increment]:
        ...


class LinearDistribution:
    name = "linear"

    def distribute(self, start: date, end: date, amount: float) -> List[Increment]:
        days = (end - start).days + 1
        if amount <= 0 or days <= 0:
            return []
        per_day = amount / days
        return [(start + timedelta(days=offset), per_day) for offset in range(days)]


STRATEGIES: Dict[str, DistributionStrategy] = {
    LinearDistribution.name: LinearDistribution(),
}


def get_strategy(name: str) -> DistributionStrategy:
    try:
        return STRATEGIES[name]
    except KeyError:
        raise ValueError(f"Unknown PV distribution strategy: {name}") from None


def leaf_tasks(tasks: Iterable[PlannedTask]) -> List[PlannedTask]:
    """Drop summary tasks; their cost is already carried by their children."""
    tasks = list(tasks)
    parents = {task.parent_id for task in tasks if task.parent_id}
    return [task for task in tasks if task.id not in parents]


@dataclass
class PlannedValuePlan:
    increments: List[Increment] = field(default_factory=list)
    bac: float = 0.0
    anomalies: List[Anomaly] = field(default_factory=list)


def distribute_planned_value(
    tasks: Iterable[PlannedTask],
    strategy: Optional[DistributionStrategy] = None,
) -> PlannedValuePlan:
    """Return per-day PV increments (sorted by date) and BAC for the leaf tasks.

    BAC counts every leaf with a usable cost, including leaves whose dates are
    unusable: their budget exists even though it cannot be placed on the
    timeline.
    """
    strategy = strategy or LinearDistribution()
    plan = PlannedValuePlan()
    per_day: Dict[date, float] = defaultdict(float)

    for task in leaf_tasks(tasks):
        cost = parse_money(task.planned_cost)
        if cost is None or cost < 0:
            plan.anomalies.append(Anomaly("invalid_cost", task.id, f"planned cost {task.planned_cost!r} is not usable"))
            continue
        plan.bac += cost

        start = parse_date(task.start)
        end = parse_date(task.end)
        if start is None or end is None:
            plan.anomalies.append(
                Anomaly("unparsable_dates", task.id, f"start={task.start!r} end={task.end!r}")
            )
            continue
        if end < start:
            plan.anomalies.append(
                Anomaly("inverted_dates", task.id, f"end {end.isoformat()} precedes start {start.isoformat()}")
            )
            continue

        for day, amount in strategy.distribute(start, end, cost):
            per_day[day] += amount

    for anomaly in plan.anomalies:
        logger.warning("pv_task_skipped kind=%s task=%s detail=%s", anomaly.kind, anomaly.ref, anomaly.detail)

    plan.increments = sorted(per_day.items())
    return plan
