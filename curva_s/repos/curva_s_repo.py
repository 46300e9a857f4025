from __future__ import annotations

import logging
from collections import defaultdict
from time import perf_counter
from typing import Any, Dict, List, Optional, Protocol, Union

from psycopg.rows import dict_row

from ..data import (
    fallback_advances,
    fallback_project_by_id,
    fallback_projects,
    fallback_snapshots,
    fallback_valuations,
)
from ..db import pool
from ..models.domain import (
    ActualProgressRecord,
    ApprovedValuation,
    PlannedTask,
    ProjectRef,
    ScheduleSnapshot,
    TaskAdvance,
)
from ..services.distribution import parse_date, parse_timestamp

logger = logging.getLogger(__name__)

ActualRow = Union[ApprovedValuation, TaskAdvance, ActualProgressRecord]


class CurvaSStore(Protocol):
    """Read-only view of the schedule/valuation store the report draws from."""

    def list_projects(self) -> List[ProjectRef]:
        ...

    def fetch_project(self, project_id: str) -> Optional[ProjectRef]:
        ...

    def fetch_schedule_snapshots(self, project_id: str) -> List[ScheduleSnapshot]:
        ...

    def fetch_actual_progress(self, project_id: str) -> List[ActualRow]:
        ...


def _project_from_row(row: Dict[str, Any]) -> ProjectRef:
    return ProjectRef(
        id=row["id"],
        codigo=row["codigo"],
        nombre=row["nombre"],
        cotizacion_id=row.get("cotizacion_id"),
    )


def _task_from_row(row: Dict[str, Any]) -> PlannedTask:
    return PlannedTask(
        id=row["id"],
        name=row.get("name") or row["id"],
        start=row.get("start", row.get("planned_start")),
        end=row.get("end", row.get("planned_end")),
        planned_cost=row.get("planned_cost"),
        parent_id=row.get("parent_id"),
    )


def _valuation_from_row(row: Dict[str, Any]) -> ApprovedValuation:
    return ApprovedValuation(
        id=row["id"],
        amount=row["amount"],
        period_start=parse_date(row.get("period_start")),
        period_end=parse_date(row.get("period_end")),
        approved_at=parse_date(row.get("approved_at")),
        status=row.get("status") or "",
    )


def _advance_from_row(row: Dict[str, Any]) -> TaskAdvance:
    return TaskAdvance(
        id=row["id"],
        task_id=row["task_id"],
        recorded_on=parse_date(row.get("recorded_on")),
        percentage=row["percentage"],
    )


class CurvaSRepo:
    """Load projects, schedule snapshots and actual progress from Postgres."""

    def list_projects(self) -> List[ProjectRef]:
        with pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute("SELECT id, codigo, nombre, cotizacion_id FROM curva_s.projects ORDER BY codigo")
                return [_project_from_row(row) for row in cur.fetchall()]

    def fetch_project(self, project_id: str) -> Optional[ProjectRef]:
        with pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, codigo, nombre, cotizacion_id
                    FROM curva_s.projects
                    WHERE id = %s OR codigo = %s
                    """,
                    (project_id, project_id),
                )
                row = cur.fetchone()
        return _project_from_row(row) if row else None

    def fetch_schedule_snapshots(self, project_id: str) -> List[ScheduleSnapshot]:
        start = perf_counter()
        with pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, project_id, is_baseline, created_at
                    FROM curva_s.schedule_snapshots
                    WHERE project_id = %s
                    ORDER BY created_at
                    """,
                    (project_id,),
                )
                snapshot_rows = cur.fetchall()
                cur.execute(
                    """
                    SELECT t.snapshot_id, t.id, t.parent_id, t.name, t.planned_start, t.planned_end, t.planned_cost
                    FROM curva_s.schedule_tasks t
                    JOIN curva_s.schedule_snapshots s ON s.id = t.snapshot_id
                    WHERE s.project_id = %s
                    ORDER BY t.snapshot_id, t.sequence
                    """,
                    (project_id,),
                )
                task_rows = cur.fetchall()

        tasks_by_snapshot: Dict[str, List[PlannedTask]] = defaultdict(list)
        for row in task_rows:
            tasks_by_snapshot[row["snapshot_id"]].append(_task_from_row(row))

        snapshots = [
            ScheduleSnapshot(
                id=row["id"],
                project_id=row["project_id"],
                is_baseline=bool(row["is_baseline"]),
                created_at=parse_timestamp(row["created_at"]),
                tasks=tasks_by_snapshot.get(row["id"], []),
            )
            for row in snapshot_rows
        ]
        elapsed = (perf_counter() - start) * 1000
        logger.debug(
            "fetch_snapshots project=%s snapshots=%s tasks=%s elapsed_ms=%.2f",
            project_id,
            len(snapshots),
            len(task_rows),
            elapsed,
        )
        return snapshots

    def fetch_actual_progress(self, project_id: str) -> List[ActualRow]:
        start = perf_counter()
        with pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, amount, period_start, period_end, approved_at, status
                    FROM curva_s.valuations
                    WHERE project_id = %s
                    ORDER BY period_start NULLS LAST, id
                    """,
                    (project_id,),
                )
                valuations = [_valuation_from_row(row) for row in cur.fetchall()]
                cur.execute(
                    """
                    SELECT id, task_id, recorded_on, percentage
                    FROM curva_s.task_advances
                    WHERE project_id = %s
                    ORDER BY recorded_on NULLS LAST, id
                    """,
                    (project_id,),
                )
                advances = [_advance_from_row(row) for row in cur.fetchall()]
        elapsed = (perf_counter() - start) * 1000
        logger.debug(
            "fetch_actuals project=%s valuations=%s advances=%s elapsed_ms=%.2f",
            project_id,
            len(valuations),
            len(advances),
            elapsed,
        )
        return [*valuations, *advances]


class FixtureCurvaSRepo:
    """Serve the built-in demo projects when the database is unavailable."""

    def list_projects(self) -> List[ProjectRef]:
        return [_project_from_row(row) for row in fallback_projects()]

    def fetch_project(self, project_id: str) -> Optional[ProjectRef]:
        row = fallback_project_by_id(project_id)
        return _project_from_row(row) if row else None

    def fetch_schedule_snapshots(self, project_id: str) -> List[ScheduleSnapshot]:
        return [
            ScheduleSnapshot(
                id=row["id"],
                project_id=project_id,
                is_baseline=bool(row["is_baseline"]),
                created_at=parse_timestamp(row["created_at"]),
                tasks=[_task_from_row(task) for task in row["tasks"]],
            )
            for row in fallback_snapshots(project_id)
        ]

    def fetch_actual_progress(self, project_id: str) -> List[ActualRow]:
        valuations = [_valuation_from_row(row) for row in fallback_valuations(project_id)]
        advances = [_advance_from_row(row) for row in fallback_advances(project_id)]
        return [*valuations, *advances]
