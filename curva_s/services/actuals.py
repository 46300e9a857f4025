from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ..models.domain import (
    ADVANCE_PERCENTAGE,
    APPROVED_VALUATION,
    ActualProgressRecord,
    Anomaly,
    ApprovedValuation,
    PlannedTask,
    TaskAdvance,
)
from .distribution import parse_date, parse_money

logger = logging.getLogger(__name__)

ActualSource = Union[ActualProgressRecord, ApprovedValuation, TaskAdvance]

APPROVED_STATUSES = {"aprobada", "aprobado", "approved"}


def _valuation_date(valuation: ApprovedValuation, policy: str):
    period_start = parse_date(valuation.period_start)
    period_end = parse_date(valuation.period_end)
    if policy == "period_start":
        return period_start or period_end
    if policy == "approved_at":
        return parse_date(valuation.approved_at) or period_end or period_start
    return period_end or period_start


def normalize_actuals(
    sources: Iterable[ActualSource],
    tasks: Iterable[PlannedTask],
    policy: str = "period_end",
) -> Tuple[List[ActualProgressRecord], List[Anomaly]]:
    """Turn every actual-progress source into a money-valued record.

    Percent advances are priced against the task cost of the schedule the
    curve is being drawn from, so ``tasks`` must come from the selected
    snapshot.
    """
    costs: Dict[str, Optional[float]] = {task.id: parse_money(task.planned_cost) for task in tasks}
    records: List[ActualProgressRecord] = []
    anomalies: List[Anomaly] = []

    for source in sources:
        if isinstance(source, ActualProgressRecord):
            value = parse_money(source.value)
            if value is None:
                anomalies.append(Anomaly("invalid_value", source.ref, f"record value {source.value!r} is not usable"))
                continue
            records.append(
                ActualProgressRecord(
                    source=source.source,
                    effective_date=parse_date(source.effective_date),
                    value=value,
                    ref=source.ref,
                )
            )
        elif isinstance(source, ApprovedValuation):
            if (source.status or "").strip().lower() not in APPROVED_STATUSES:
                continue
            amount = parse_money(source.amount)
            if amount is None:
                anomalies.append(Anomaly("invalid_amount", source.id, f"valuation amount {source.amount!r} is not usable"))
                continue
            records.append(
                ActualProgressRecord(
                    source=APPROVED_VALUATION,
                    effective_date=_valuation_date(source, policy),
                    value=amount,
                    ref=source.id,
                )
            )
        elif isinstance(source, TaskAdvance):
            if source.task_id not in costs:
                anomalies.append(
                    Anomaly("unknown_task", source.id, f"task {source.task_id} is not a leaf of the selected schedule")
                )
                continue
            cost = costs[source.task_id]
            if cost is None:
                anomalies.append(
                    Anomaly("invalid_cost", source.id, f"task {source.task_id} has no usable planned cost to price the advance")
                )
                continue
            percentage = parse_money(source.percentage)
            if percentage is None or not 0 <= percentage <= 100:
                anomalies.append(
                    Anomaly("invalid_percentage", source.id, f"percentage {source.percentage!r} outside 0..100")
                )
                continue
            records.append(
                ActualProgressRecord(
                    source=ADVANCE_PERCENTAGE,
                    effective_date=parse_date(source.recorded_on),
                    value=cost * percentage / 100.0,
                    ref=source.id,
                )
            )
        else:
            raise TypeError(f"Unsupported actual progress source: {type(source).__name__}")

    for anomaly in anomalies:
        logger.warning("actual_source_skipped kind=%s ref=%s detail=%s", anomaly.kind, anomaly.ref, anomaly.detail)
    return records, anomalies
