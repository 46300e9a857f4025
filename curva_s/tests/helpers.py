from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional

from curva_s.config import settings
from curva_s.models.domain import PlannedTask, ProjectRef, ScheduleSnapshot

# A Monday; tests that care about anchoring use an explicit mid-week date.
D0 = date(2025, 3, 3)


def day(offset: int) -> date:
    return D0 + timedelta(days=offset)


def task(task_id: str, start, end, cost, parent_id: Optional[str] = None) -> PlannedTask:
    return PlannedTask(id=task_id, name=task_id.title(), start=start, end=end, planned_cost=cost, parent_id=parent_id)


def snapshot(
    snapshot_id: str,
    tasks: List[PlannedTask],
    *,
    project_id: str = "prj-1",
    is_baseline: bool = True,
    created_at: Optional[datetime] = None,
) -> ScheduleSnapshot:
    return ScheduleSnapshot(
        id=snapshot_id,
        project_id=project_id,
        is_baseline=is_baseline,
        created_at=created_at or datetime(2025, 1, 1, tzinfo=timezone.utc),
        tasks=tasks,
    )


@contextmanager
def curva_s_flag(enabled: bool):
    original = settings.feature_curva_s
    settings.feature_curva_s = enabled
    try:
        yield
    finally:
        settings.feature_curva_s = original


class InMemoryRepo:
    def __init__(self) -> None:
        self.projects: Dict[str, ProjectRef] = {}
        self.snapshots: Dict[str, List[ScheduleSnapshot]] = {}
        self.actuals: Dict[str, list] = {}

    def add_project(self, project: ProjectRef, snapshots=(), actuals=()) -> None:
        self.projects[project.id] = project
        self.snapshots[project.id] = list(snapshots)
        self.actuals[project.id] = list(actuals)

    def list_projects(self) -> List[ProjectRef]:
        return list(self.projects.values())

    def fetch_project(self, project_id: str) -> Optional[ProjectRef]:
        return self.projects.get(project_id)

    def fetch_schedule_snapshots(self, project_id: str) -> List[ScheduleSnapshot]:
        return list(self.snapshots.get(project_id, []))

    def fetch_actual_progress(self, project_id: str) -> list:
        return list(self.actuals.get(project_id, []))
