from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, List, Literal, Optional

SourceKind = Literal["approved-valuation", "advance-percentage"]

APPROVED_VALUATION: SourceKind = "approved-valuation"
ADVANCE_PERCENTAGE: SourceKind = "advance-percentage"


@dataclass(frozen=True)
class ProjectRef:
    id: str
    codigo: str
    nombre: str
    cotizacion_id: Optional[str] = None


@dataclass(frozen=True)
class PlannedTask:
    """Leaf or summary task of a published schedule.

    ``start``/``end`` are normally dates but may carry whatever the upstream
    store held (strings, ``None``); the distributor parses them and reports
    anything unusable instead of failing.
    """

    id: str
    name: str
    start: Any
    end: Any
    planned_cost: Any = 0.0
    parent_id: Optional[str] = None


@dataclass(frozen=True)
class ScheduleSnapshot:
    id: str
    project_id: str
    is_baseline: bool
    created_at: datetime
    tasks: List[PlannedTask] = field(default_factory=list)


@dataclass(frozen=True)
class ActualProgressRecord:
    source: SourceKind
    effective_date: Optional[date]
    value: float
    ref: Optional[str] = None


@dataclass(frozen=True)
class ApprovedValuation:
    id: str
    amount: float
    period_start: Optional[date]
    period_end: Optional[date]
    approved_at: Optional[date] = None
    status: str = "aprobada"


@dataclass(frozen=True)
class TaskAdvance:
    id: str
    task_id: str
    recorded_on: Optional[date]
    percentage: float


@dataclass(frozen=True)
class Anomaly:
    kind: str
    ref: Optional[str]
    detail: str


@dataclass
class WeekBucket:
    index: int
    start: date
    end: date
    label: str
    pv_increment: float = 0.0
    ev_increment: float = 0.0
    pv_acum: float = 0.0
    ev_acum: float = 0.0


@dataclass(frozen=True)
class EVMSummary:
    bac: float
    pv_total: float
    ev_total: float
    sv: float
    spi: Optional[float]
    sv_pct: Optional[float] = None
    spi_status: Optional[str] = None


@dataclass(frozen=True)
class CurvaSResult:
    proyecto: ProjectRef
    has_baseline: bool
    weeks: List[WeekBucket]
    bac: float
    evm: EVMSummary
    as_of: date
    snapshot_id: Optional[str] = None
    anomalies: List[Anomaly] = field(default_factory=list)
