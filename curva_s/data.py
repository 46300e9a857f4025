from __future__ import annotations

from typing import Dict, List, Optional

FALLBACK_PROJECTS: List[Dict[str, object]] = [
    {
        "id": "prj-ptar-norte",
        "codigo": "PRY-2025-014",
        "nombre": "Ampliación PTAR Norte",
        "cotizacion_id": "cot-2025-031",
    },
    {
        "id": "prj-subestacion-sur",
        "codigo": "PRY-2025-019",
        "nombre": "Subestación Eléctrica Sur",
        "cotizacion_id": "cot-2025-044",
    },
    {
        "id": "prj-mantenimiento-interno",
        "codigo": "PRY-2025-022",
        "nombre": "Mantenimiento de oficinas",
        "cotizacion_id": None,
    },
]

FALLBACK_SNAPSHOTS: Dict[str, List[Dict[str, object]]] = {
    "prj-ptar-norte": [
        {
            "id": "crono-ptar-v1",
            "is_baseline": True,
            "created_at": "2025-01-20T09:00:00+00:00",
            "tasks": [
                {"id": "ptar-edt-civil", "name": "Obras civiles", "start": "2025-02-03", "end": "2025-04-13", "planned_cost": 0, "parent_id": None},
                {"id": "ptar-exc", "name": "Excavación de reactores", "start": "2025-02-03", "end": "2025-02-23", "planned_cost": 42000, "parent_id": "ptar-edt-civil"},
                {"id": "ptar-conc", "name": "Vaciado de concreto", "start": "2025-02-24", "end": "2025-03-30", "planned_cost": 98000, "parent_id": "ptar-edt-civil"},
                {"id": "ptar-imp", "name": "Impermeabilización", "start": "2025-03-31", "end": "2025-04-13", "planned_cost": 21000, "parent_id": "ptar-edt-civil"},
                {"id": "ptar-edt-meca", "name": "Montaje electromecánico", "start": "2025-03-17", "end": "2025-05-11", "planned_cost": 0, "parent_id": None},
                {"id": "ptar-bombas", "name": "Instalación de bombas", "start": "2025-03-17", "end": "2025-04-20", "planned_cost": 65000, "parent_id": "ptar-edt-meca"},
                {"id": "ptar-tableros", "name": "Tableros y cableado", "start": "2025-04-14", "end": "2025-05-11", "planned_cost": 38500, "parent_id": "ptar-edt-meca"},
                {"id": "ptar-pruebas", "name": "Pruebas y puesta en marcha", "start": "2025-05-12", "end": "2025-05-18", "planned_cost": 12600, "parent_id": None},
            ],
        },
        {
            "id": "crono-ptar-v2",
            "is_baseline": False,
            "created_at": "2025-03-10T15:30:00+00:00",
            "tasks": [
                {"id": "ptar-exc", "name": "Excavación de reactores", "start": "2025-02-03", "end": "2025-03-02", "planned_cost": 42000, "parent_id": None},
                {"id": "ptar-conc", "name": "Vaciado de concreto", "start": "2025-03-03", "end": "2025-04-13", "planned_cost": 98000, "parent_id": None},
                {"id": "ptar-imp", "name": "Impermeabilización", "start": "2025-04-14", "end": "2025-04-27", "planned_cost": 21000, "parent_id": None},
                {"id": "ptar-bombas", "name": "Instalación de bombas", "start": "2025-03-31", "end": "2025-05-04", "planned_cost": 65000, "parent_id": None},
                {"id": "ptar-tableros", "name": "Tableros y cableado", "start": "2025-04-28", "end": "2025-05-25", "planned_cost": 38500, "parent_id": None},
                {"id": "ptar-pruebas", "name": "Pruebas y puesta en marcha", "start": "2025-05-26", "end": "2025-06-01", "planned_cost": 12600, "parent_id": None},
            ],
        },
    ],
    "prj-subestacion-sur": [
        {
            "id": "crono-se-v1",
            "is_baseline": False,
            "created_at": "2025-04-02T11:00:00+00:00",
            "tasks": [
                {"id": "se-obras", "name": "Obras civiles de patio", "start": "2025-04-07", "end": "2025-05-04", "planned_cost": 56000, "parent_id": None},
                {"id": "se-trafo", "name": "Montaje de transformador", "start": "2025-05-05", "end": "2025-05-25", "planned_cost": 120000, "parent_id": None},
                {"id": "se-proteccion", "name": "Sistema de protección", "start": "2025-05-19", "end": "2025-06-08", "planned_cost": None, "parent_id": None},
            ],
        },
    ],
}

FALLBACK_VALUATIONS: Dict[str, List[Dict[str, object]]] = {
    "prj-ptar-norte": [
        {"id": "val-ptar-01", "amount": 35000, "period_start": "2025-02-03", "period_end": "2025-02-28", "approved_at": "2025-03-05", "status": "aprobada"},
        {"id": "val-ptar-02", "amount": 61000, "period_start": "2025-03-01", "period_end": "2025-03-31", "approved_at": "2025-04-04", "status": "aprobada"},
        {"id": "val-ptar-03", "amount": 47000, "period_start": "2025-04-01", "period_end": "2025-04-30", "approved_at": None, "status": "borrador"},
    ],
    "prj-subestacion-sur": [
        {"id": "val-se-01", "amount": 30000, "period_start": "2025-04-07", "period_end": "2025-04-30", "approved_at": "2025-05-06", "status": "aprobada"},
    ],
}

FALLBACK_ADVANCES: Dict[str, List[Dict[str, object]]] = {
    "prj-ptar-norte": [
        {"id": "av-ptar-01", "task_id": "ptar-bombas", "recorded_on": "2025-04-11", "percentage": 20},
        {"id": "av-ptar-02", "task_id": "ptar-bombas", "recorded_on": "2025-04-25", "percentage": 15},
    ],
}


def fallback_projects() -> List[Dict[str, object]]:
    return [dict(project) for project in FALLBACK_PROJECTS]


def fallback_project_by_id(project_id: str) -> Optional[Dict[str, object]]:
    for project in FALLBACK_PROJECTS:
        if project["id"] == project_id or project["codigo"] == project_id:
            return dict(project)
    return None


def fallback_snapshots(project_id: str) -> List[Dict[str, object]]:
    return [dict(snapshot) for snapshot in FALLBACK_SNAPSHOTS.get(project_id, [])]


def fallback_valuations(project_id: str) -> List[Dict[str, object]]:
    return [dict(row) for row in FALLBACK_VALUATIONS.get(project_id, [])]


def fallback_advances(project_id: str) -> List[Dict[str, object]]:
    return [dict(row) for row in FALLBACK_ADVANCES.get(project_id, [])]
