from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, timedelta
from time import perf_counter
from typing import Iterable, List, Optional, Sequence, Tuple

from fastapi import HTTPException, status

from ..config import settings
from ..models.curva_s import (
    AnomalyResponse,
    CurvaSResponse,
    CurvaSWeek,
    EVMSummaryResponse,
    ProyectoListItem,
    ProyectoRef,
)
from ..models.domain import (
    ActualProgressRecord,
    Anomaly,
    CurvaSResult,
    EVMSummary,
    ProjectRef,
    ScheduleSnapshot,
    WeekBucket,
)
from .actuals import ActualSource, normalize_actuals
from .distribution import (
    DistributionStrategy,
    Increment,
    distribute_planned_value,
    get_strategy,
    leaf_tasks,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

WEEK_DAYS = 7
SPI_ON_TRACK = 1.0
SPI_SLIGHT_DELAY = 0.9


def _ensure_feature_enabled() -> None:
    if not settings.feature_curva_s:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Curva S report disabled")


def _spi_status(spi: Optional[float]) -> Optional[str]:
    if spi is None:
        return None
    if spi >= SPI_ON_TRACK:
        return "adelantado"
    if spi >= SPI_SLIGHT_DELAY:
        return "leve_retraso"
    return "retrasado"


# --------------------------------------------------------------------- #
# Pipeline stages
# --------------------------------------------------------------------- #


def select_snapshot(
    project_id: str,
    snapshots: Iterable[ScheduleSnapshot],
) -> Tuple[Optional[ScheduleSnapshot], bool, List[Anomaly]]:
    """Pick the baseline snapshot, else the most recently created one.

    Returns ``(snapshot, has_baseline, anomalies)``; ``snapshot`` is ``None``
    when the project has no schedule at all.
    """
    anomalies: List[Anomaly] = []
    candidates: List[ScheduleSnapshot] = []
    for snapshot in snapshots:
        if snapshot.project_id != project_id:
            anomalies.append(
                Anomaly("foreign_snapshot", snapshot.id, f"belongs to project {snapshot.project_id}")
            )
            continue
        candidates.append(snapshot)

    if not candidates:
        return None, False, anomalies

    baselines = [snapshot for snapshot in candidates if snapshot.is_baseline]
    if baselines:
        return max(baselines, key=lambda item: parse_timestamp(item.created_at)), True, anomalies
    return max(candidates, key=lambda item: parse_timestamp(item.created_at)), False, anomalies


def _new_bucket(anchor: date, index: int, label_format: str) -> WeekBucket:
    start = anchor + timedelta(days=index * WEEK_DAYS)
    return WeekBucket(
        index=index,
        start=start,
        end=start + timedelta(days=WEEK_DAYS - 1),
        label=start.strftime(label_format),
    )


def _bucket_index(anchor: date, day: date) -> int:
    return (day - anchor).days // WEEK_DAYS


def build_weeks(
    increments: Sequence[Increment],
    actual_dates: Iterable[Optional[date]],
    today: date,
    label_format: str = "%d/%m/%y",
) -> List[WeekBucket]:
    """Build 7-day buckets anchored at the earliest relevant date.

    The series runs to the later of the last relevant date and ``today``, so
    an in-progress project always shows the current week. No relevant dates
    means no buckets.
    """
    dates = [day for day, _ in increments]
    dates.extend(day for day in actual_dates if day is not None)
    if not dates:
        return []

    anchor = min(dates)
    last = max(max(dates), today)
    weeks = [_new_bucket(anchor, index, label_format) for index in range(_bucket_index(anchor, last) + 1)]
    for day, amount in increments:
        weeks[_bucket_index(anchor, day)].pv_increment += amount
    return weeks


def aggregate_actuals(
    weeks: Sequence[WeekBucket],
    records: Iterable[ActualProgressRecord],
    label_format: str = "%d/%m/%y",
) -> Tuple[List[WeekBucket], List[Anomaly]]:
    """Sum actual-progress money into the bucket containing each record's date.

    Records dated after the last bucket extend the series instead of being
    dropped.
    """
    records = list(records)
    weeks = [replace(week) for week in weeks]
    anomalies: List[Anomaly] = []
    dated = [record.effective_date for record in records if record.effective_date is not None and record.value >= 0]
    if not weeks and dated:
        weeks.append(_new_bucket(min(dated), 0, label_format))

    for record in records:
        if record.effective_date is None:
            anomalies.append(Anomaly("missing_effective_date", record.ref, f"{record.source} record has no date"))
            continue
        if record.value < 0:
            anomalies.append(Anomaly("negative_value", record.ref, f"{record.source} value {record.value} is negative"))
            continue
        anchor = weeks[0].start
        if record.effective_date < anchor:
            anomalies.append(
                Anomaly(
                    "before_series_start",
                    record.ref,
                    f"{record.effective_date.isoformat()} precedes {anchor.isoformat()}",
                )
            )
            continue
        index = _bucket_index(anchor, record.effective_date)
        while len(weeks) <= index:
            weeks.append(_new_bucket(anchor, len(weeks), label_format))
        weeks[index].ev_increment += record.value

    for anomaly in anomalies:
        logger.warning("ev_record_skipped kind=%s ref=%s detail=%s", anomaly.kind, anomaly.ref, anomaly.detail)
    return weeks, anomalies


def accumulate(weeks: Sequence[WeekBucket], bac: float) -> Tuple[List[WeekBucket], List[Anomaly]]:
    """Fill running PV/EV totals, clamped to BAC and rounded to cents."""
    result: List[WeekBucket] = []
    anomalies: List[Anomaly] = []
    pv_running = 0.0
    ev_running = 0.0
    for week in weeks:
        pv_running += week.pv_increment
        ev_running += week.ev_increment
        result.append(
            replace(
                week,
                pv_acum=round(min(pv_running, bac), 2),
                ev_acum=round(min(ev_running, bac), 2),
            )
        )
    if ev_running > bac + 0.005:
        anomalies.append(
            Anomaly("ev_exceeds_bac", None, f"earned {ev_running:.2f} against budget {bac:.2f}; curve clamped")
        )
        logger.warning("ev_clamped earned=%.2f bac=%.2f", ev_running, bac)
    return result, anomalies


def compute_evm_summary(bac: float, weeks: Sequence[WeekBucket], cutoff: date) -> EVMSummary:
    pv_total = 0.0
    ev_total = 0.0
    for week in weeks:
        if week.end > cutoff:
            break
        pv_total = week.pv_acum
        ev_total = week.ev_acum

    sv = round(ev_total - pv_total, 2)
    spi = round(ev_total / pv_total, 4) if pv_total > 0 else None
    sv_pct = round(sv / pv_total * 100.0, 2) if pv_total > 0 else None
    return EVMSummary(
        bac=bac,
        pv_total=pv_total,
        ev_total=ev_total,
        sv=sv,
        spi=spi,
        sv_pct=sv_pct,
        spi_status=_spi_status(spi),
    )


def assemble_result(
    project: ProjectRef,
    has_baseline: bool,
    weeks: List[WeekBucket],
    bac: float,
    evm: EVMSummary,
    as_of: date,
    snapshot_id: Optional[str] = None,
    anomalies: Optional[List[Anomaly]] = None,
) -> CurvaSResult:
    return CurvaSResult(
        proyecto=project,
        has_baseline=has_baseline,
        weeks=weeks,
        bac=bac,
        evm=evm,
        as_of=as_of,
        snapshot_id=snapshot_id,
        anomalies=list(anomalies or []),
    )


def compute_curve_s(
    project: ProjectRef,
    snapshots: Iterable[ScheduleSnapshot],
    actuals: Iterable[ActualSource],
    as_of: Optional[date] = None,
    *,
    strategy: Optional[DistributionStrategy] = None,
    valuation_policy: Optional[str] = None,
    label_format: Optional[str] = None,
) -> CurvaSResult:
    """Build the PV/EV Curva S for one project.

    ``as_of`` is both the right edge of the time axis and the cutoff for the
    EVM totals; it defaults to today.
    """
    today = as_of or date.today()
    label_format = label_format or settings.week_label_format

    snapshot, has_baseline, anomalies = select_snapshot(project.id, snapshots)
    tasks = leaf_tasks(snapshot.tasks) if snapshot else []

    plan = distribute_planned_value(tasks, strategy or get_strategy(settings.pv_distribution))
    anomalies.extend(plan.anomalies)
    bac = round(plan.bac, 2)

    records, actual_anomalies = normalize_actuals(
        actuals, tasks, valuation_policy or settings.valuation_effective_date
    )
    anomalies.extend(actual_anomalies)

    weeks = build_weeks(
        plan.increments,
        [record.effective_date for record in records if record.value >= 0],
        today,
        label_format,
    )
    weeks, ev_anomalies = aggregate_actuals(weeks, records, label_format)
    anomalies.extend(ev_anomalies)
    weeks, acum_anomalies = accumulate(weeks, bac)
    anomalies.extend(acum_anomalies)

    evm = compute_evm_summary(bac, weeks, today)
    return assemble_result(
        project,
        has_baseline,
        weeks,
        bac,
        evm,
        as_of=today,
        snapshot_id=snapshot.id if snapshot else None,
        anomalies=anomalies,
    )


# --------------------------------------------------------------------- #
# Service entry points
# --------------------------------------------------------------------- #


def to_response(result: CurvaSResult) -> CurvaSResponse:
    evm = result.evm
    return CurvaSResponse(
        proyecto=ProyectoRef(
            id=result.proyecto.id,
            codigo=result.proyecto.codigo,
            nombre=result.proyecto.nombre,
        ),
        has_baseline=result.has_baseline,
        bac=result.bac,
        weeks=[
            CurvaSWeek(
                week_label=week.label,
                week_start=week.start,
                week_end=week.end,
                pv_acum=week.pv_acum,
                ev_acum=week.ev_acum,
            )
            for week in result.weeks
        ],
        evm=EVMSummaryResponse(
            bac=evm.bac,
            pv_total=evm.pv_total,
            ev_total=evm.ev_total,
            sv=evm.sv,
            spi=evm.spi,
            sv_pct=evm.sv_pct,
            spi_status=evm.spi_status,
        ),
        snapshot_id=result.snapshot_id,
        as_of=result.as_of,
        anomalies=[
            AnomalyResponse(kind=anomaly.kind, ref=anomaly.ref, detail=anomaly.detail)
            for anomaly in result.anomalies
        ],
    )


def get_curva_s(repo, project_id: str, as_of: Optional[date] = None) -> CurvaSResponse:
    _ensure_feature_enabled()
    started = perf_counter()
    project = repo.fetch_project(project_id)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    snapshots = repo.fetch_schedule_snapshots(project.id)
    actuals = repo.fetch_actual_progress(project.id)
    result = compute_curve_s(project, snapshots, actuals, as_of)

    elapsed = (perf_counter() - started) * 1000
    logger.info(
        "curva_s project=%s snapshot=%s has_baseline=%s weeks=%s anomalies=%s elapsed_ms=%.2f",
        project.id,
        result.snapshot_id,
        result.has_baseline,
        len(result.weeks),
        len(result.anomalies),
        elapsed,
    )
    return to_response(result)


def list_report_projects(repo) -> List[ProyectoListItem]:
    """Projects that can carry a Curva S: only those backed by a quotation."""
    _ensure_feature_enabled()
    return [
        ProyectoListItem(id=project.id, codigo=project.codigo, nombre=project.nombre, cotizacion_id=project.cotizacion_id)
        for project in repo.list_projects()
        if project.cotizacion_id
    ]
