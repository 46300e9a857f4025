import logging
from pathlib import Path
from typing import Iterable

from psycopg_pool import ConnectionPool

from .config import settings
from .data import fallback_advances, fallback_projects, fallback_snapshots, fallback_valuations

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
MIGRATIONS_DIR = BASE_DIR.parent / "migrations"

# start closed, we'll open in app lifespan
pool = ConnectionPool(conninfo=settings.database_url, max_size=10, open=False)


SCHEMA_STATEMENTS: Iterable[str] = (
    """
    CREATE TABLE IF NOT EXISTS curva_s.projects (
        id TEXT PRIMARY KEY,
        codigo TEXT NOT NULL UNIQUE,
        nombre TEXT NOT NULL,
        cotizacion_id TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS curva_s.schedule_snapshots (
        id TEXT PRIMARY KEY,
        project_id TEXT NOT NULL REFERENCES curva_s.projects(id) ON DELETE CASCADE,
        is_baseline BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_schedule_snapshots_project_id ON curva_s.schedule_snapshots(project_id)
    """,
    """
    CREATE TABLE IF NOT EXISTS curva_s.schedule_tasks (
        snapshot_id TEXT NOT NULL REFERENCES curva_s.schedule_snapshots(id) ON DELETE CASCADE,
        id TEXT NOT NULL,
        parent_id TEXT,
        name TEXT NOT NULL,
        planned_start DATE,
        planned_end DATE,
        planned_cost NUMERIC(14, 2),
        sequence INTEGER NOT NULL DEFAULT 0,
        PRIMARY KEY (snapshot_id, id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS curva_s.valuations (
        id TEXT PRIMARY KEY,
        project_id TEXT NOT NULL REFERENCES curva_s.projects(id) ON DELETE CASCADE,
        amount NUMERIC(14, 2) NOT NULL,
        period_start DATE,
        period_end DATE,
        approved_at DATE,
        status TEXT NOT NULL DEFAULT 'borrador'
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_valuations_project_id ON curva_s.valuations(project_id)
    """,
    """
    CREATE TABLE IF NOT EXISTS curva_s.task_advances (
        id TEXT PRIMARY KEY,
        project_id TEXT NOT NULL REFERENCES curva_s.projects(id) ON DELETE CASCADE,
        task_id TEXT NOT NULL,
        recorded_on DATE,
        percentage NUMERIC(5, 2) NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_task_advances_project_id ON curva_s.task_advances(project_id)
    """,
)


def open_pool() -> None:
    if pool.closed:
        pool.open()


def close_pool() -> None:
    if not pool.closed:
        pool.close()


def initialize_database() -> None:
    try:
        ensure_schema()
        apply_migrations()
        seed_database()
    except Exception:  # pragma: no cover - defensive guard
        logger.exception("Database initialization failed")
        raise


def ensure_schema() -> None:
    with pool.connection() as conn:
        with conn.cursor() as cur:
            cur.execute("CREATE SCHEMA IF NOT EXISTS curva_s")
            cur.execute("SET search_path TO curva_s, public")
            for statement in SCHEMA_STATEMENTS:
                cur.execute(statement)
        conn.commit()


def apply_migrations() -> None:
    """Execute idempotent SQL migrations stored in the top-level migrations dir."""
    if not MIGRATIONS_DIR.exists():
        return

    migration_files = sorted(MIGRATIONS_DIR.glob("*.sql"))
    if not migration_files:
        return

    with pool.connection() as conn:
        for path in migration_files:
            sql = path.read_text()
            if not sql.strip():
                continue
            logger.info("Applying migration %s", path.name)
            with conn.cursor() as cur:
                cur.execute(sql)
        conn.commit()


def _seed_project(cur, project: dict) -> None:
    project_id = project["id"]
    cur.execute(
        """
        INSERT INTO curva_s.projects (id, codigo, nombre, cotizacion_id)
        VALUES (%s, %s, %s, %s)
        ON CONFLICT (id) DO NOTHING
        """,
        (project_id, project["codigo"], project["nombre"], project.get("cotizacion_id")),
    )
    for snapshot in fallback_snapshots(project_id):
        cur.execute(
            """
            INSERT INTO curva_s.schedule_snapshots (id, project_id, is_baseline, created_at)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (id) DO NOTHING
            """,
            (snapshot["id"], project_id, snapshot["is_baseline"], snapshot["created_at"]),
        )
        for sequence, task in enumerate(snapshot["tasks"]):
            cur.execute(
                """
                INSERT INTO curva_s.schedule_tasks (
                    snapshot_id, id, parent_id, name, planned_start, planned_end, planned_cost, sequence
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (snapshot_id, id) DO NOTHING
                """,
                (
                    snapshot["id"],
                    task["id"],
                    task.get("parent_id"),
                    task["name"],
                    task.get("start"),
                    task.get("end"),
                    task.get("planned_cost"),
                    sequence,
                ),
            )
    for valuation in fallback_valuations(project_id):
        cur.execute(
            """
            INSERT INTO curva_s.valuations (id, project_id, amount, period_start, period_end, approved_at, status)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (id) DO NOTHING
            """,
            (
                valuation["id"],
                project_id,
                valuation["amount"],
                valuation.get("period_start"),
                valuation.get("period_end"),
                valuation.get("approved_at"),
                valuation.get("status") or "borrador",
            ),
        )
    for advance in fallback_advances(project_id):
        cur.execute(
            """
            INSERT INTO curva_s.task_advances (id, project_id, task_id, recorded_on, percentage)
            VALUES (%s, %s, %s, %s, %s)
            ON CONFLICT (id) DO NOTHING
            """,
            (advance["id"], project_id, advance["task_id"], advance.get("recorded_on"), advance["percentage"]),
        )


def seed_database() -> None:
    with pool.connection() as conn:
        with conn.cursor() as cur:
            cur.execute("SET search_path TO curva_s, public")
            cur.execute("SELECT COUNT(*) FROM curva_s.projects")
            (existing,) = cur.fetchone()
            if existing:
                return
            for project in fallback_projects():
                _seed_project(cur, project)
        conn.commit()
    logger.info("Seeded curva_s demo projects")
