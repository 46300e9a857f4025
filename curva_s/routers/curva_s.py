from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query, Request, Response

from ..models import CurvaSResponse, ProyectoListItem
from ..repos.curva_s_repo import CurvaSRepo, CurvaSStore, FixtureCurvaSRepo
from ..services.curva_s import get_curva_s, list_report_projects

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/proyectos", tags=["curva-s"])


def get_repo(request: Request) -> CurvaSStore:
    if getattr(request.app.state, "database_available", True):
        return CurvaSRepo()
    return FixtureCurvaSRepo()


@router.get("", response_model=List[ProyectoListItem])
def report_projects(repo: CurvaSStore = Depends(get_repo)) -> List[ProyectoListItem]:
    return list_report_projects(repo)


@router.get("/{project_id}/curva-s", response_model=CurvaSResponse)
def project_curva_s(
    project_id: str,
    response: Response,
    as_of: Optional[date] = Query(default=None, alias="asOf"),
    repo: CurvaSStore = Depends(get_repo),
    x_request_id: Optional[str] = Header(default=None, alias="X-Request-Id"),
) -> CurvaSResponse:
    payload = get_curva_s(repo, project_id, as_of)
    response.headers["Cache-Control"] = "private, max-age=60"
    logger.info(
        "curva_s_report project_id=%s weeks=%s has_baseline=%s request_id=%s",
        project_id,
        len(payload.weeks),
        payload.has_baseline,
        x_request_id,
    )
    return payload
