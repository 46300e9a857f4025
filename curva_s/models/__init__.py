from .curva_s import (
    AnomalyResponse,
    CurvaSResponse,
    CurvaSWeek,
    EVMSummaryResponse,
    ProyectoListItem,
    ProyectoRef,
)
from .domain import (
    ADVANCE_PERCENTAGE,
    APPROVED_VALUATION,
    ActualProgressRecord,
    Anomaly,
    ApprovedValuation,
    CurvaSResult,
    EVMSummary,
    PlannedTask,
    ProjectRef,
    ScheduleSnapshot,
    TaskAdvance,
    WeekBucket,
)

__all__ = [
    "ADVANCE_PERCENTAGE",
    "APPROVED_VALUATION",
    "ActualProgressRecord",
    "Anomaly",
    "AnomalyResponse",
    "ApprovedValuation",
    "CurvaSResponse",
    "CurvaSResult",
    "CurvaSWeek",
    "EVMSummary",
    "EVMSummaryResponse",
    "PlannedTask",
    "ProjectRef",
    "ProyectoListItem",
    "ProyectoRef",
    "ScheduleSnapshot",
    "TaskAdvance",
    "WeekBucket",
]
