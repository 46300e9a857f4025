from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from curva_s.main import app
from curva_s.models.domain import ProjectRef
from curva_s.routers.curva_s import get_repo
from curva_s.tests.helpers import InMemoryRepo


@pytest.fixture
def project() -> ProjectRef:
    return ProjectRef(id="prj-1", codigo="PRY-001", nombre="Planta Piloto", cotizacion_id="cot-1")


@pytest.fixture
def memory_repo() -> InMemoryRepo:
    return InMemoryRepo()


@pytest.fixture
def client(memory_repo):
    app.dependency_overrides[get_repo] = lambda: memory_repo
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_repo, None)
