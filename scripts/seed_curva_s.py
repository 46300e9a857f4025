#!/usr/bin/env python3
"""
Seed the Curva S demo projects into Postgres and optionally print a report.

Seeding is idempotent: rows are inserted with ON CONFLICT DO NOTHING, and
``--reset`` wipes the curva_s tables first so the fixtures load fresh.

The API itself is served with the ``serve`` extra installed::

    uvicorn curva_s.main:app --reload
"""
from __future__ import annotations

import argparse
import json
from datetime import date

from curva_s.db import close_pool, initialize_database, open_pool, pool
from curva_s.repos.curva_s_repo import CurvaSRepo
from curva_s.services.curva_s import get_curva_s

TABLES = ("task_advances", "valuations", "schedule_tasks", "schedule_snapshots", "projects")


def _reset() -> None:
    with pool.connection() as conn:
        with conn.cursor() as cur:
            cur.execute("CREATE SCHEMA IF NOT EXISTS curva_s")
            for table in TABLES:
                cur.execute(f"DROP TABLE IF EXISTS curva_s.{table} CASCADE")
        conn.commit()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--reset", action="store_true", help="drop curva_s tables before seeding")
    parser.add_argument("--report", metavar="PROJECT", help="print the Curva S payload for a project id or code")
    parser.add_argument("--as-of", type=date.fromisoformat, default=None, help="report cutoff date (YYYY-MM-DD)")
    args = parser.parse_args()

    open_pool()
    try:
        if args.reset:
            _reset()
        initialize_database()
        print("Curva S schema ready and demo projects seeded.")

        if args.report:
            payload = get_curva_s(CurvaSRepo(), args.report, args.as_of)
            print(json.dumps(payload.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False))
    finally:
        close_pool()


if __name__ == "__main__":
    main()
