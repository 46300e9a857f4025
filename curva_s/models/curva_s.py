from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProyectoRef(BaseModel):
    id: str
    codigo: str
    nombre: str


class ProyectoListItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    id: str
    codigo: str
    nombre: str
    cotizacion_id: Optional[str] = Field(default=None, alias="cotizacionId")


class CurvaSWeek(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    week_label: str = Field(alias="weekLabel")
    week_start: date = Field(alias="weekStart")
    week_end: date = Field(alias="weekEnd")
    pv_acum: float = Field(alias="pvAcum")
    ev_acum: float = Field(alias="evAcum")


class EVMSummaryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    bac: float = 0.0
    pv_total: float = Field(default=0.0, alias="pvTotal")
    ev_total: float = Field(default=0.0, alias="evTotal")
    sv: float = 0.0
    spi: Optional[float] = None
    sv_pct: Optional[float] = Field(default=None, alias="svPct", description="Schedule variance as % of PV to date")
    spi_status: Optional[str] = Field(default=None, alias="spiStatus")


class AnomalyResponse(BaseModel):
    kind: str
    ref: Optional[str] = None
    detail: str


class CurvaSResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    proyecto: ProyectoRef
    has_baseline: bool = Field(alias="hasBaseline")
    bac: float = 0.0
    weeks: List[CurvaSWeek] = Field(default_factory=list)
    evm: EVMSummaryResponse
    snapshot_id: Optional[str] = Field(default=None, alias="snapshotId")
    as_of: date = Field(alias="asOf")
    anomalies: List[AnomalyResponse] = Field(default_factory=list)
