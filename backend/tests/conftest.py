"""
conftest.py — Shared pytest fixtures for the build manager backend test suite.

Every fixture that touches disk is rooted under pytest's ``tmp_path``; no
test reads or writes the real DATA_DIR, and no test reaches the network
(document-AI calls are monkeypatched where exercised).

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``app.*`` imports resolve correctly regardless of where pytest is invoked.
"""

import sys
import os
import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any app imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


# ---------------------------------------------------------------------------
# Engines (stateless)
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def bom_engine():
    from app.services.bom_engine import BOMEngine
    return BOMEngine()


@pytest.fixture(scope="session")
def costing_engine():
    from app.services.costing_engine import CostingEngine
    return CostingEngine()


@pytest.fixture(scope="session")
def timeline_engine():
    from app.services.timeline_engine import TimelineEngine
    return TimelineEngine()


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

@pytest.fixture
def store(tmp_path):
    """FlatFileStore rooted at a fresh temporary data directory."""
    from app.db import FlatFileStore
    return FlatFileStore(str(tmp_path / "data"))


@pytest.fixture
def project_repo(store):
    from app.db.repositories import ProjectRepository
    return ProjectRepository(store)


@pytest.fixture
def bom_repo(store):
    from app.db.repositories import BOMRepository
    return BOMRepository(store)


@pytest.fixture
def quotation_repo(store):
    from app.db.repositories import QuotationRepository
    return QuotationRepository(store)


@pytest.fixture
def settings_repo(store):
    from app.db.repositories import SettingsRepository
    return SettingsRepository(store)


@pytest.fixture
def project(project_repo):
    """A persisted project: R1,000,000 budget at 10% contingency."""
    from app.models.schemas import ProjectCreate
    from app.services.project_service import ProjectService
    return ProjectService(project_repo).create(
        ProjectCreate(name="Erf 1234 Family Home", total_budget=1_000_000.0, contingency_percent=10.0)
    )


# ---------------------------------------------------------------------------
# Sample records
# ---------------------------------------------------------------------------

@pytest.fixture
def make_quotation():
    """Factory for Quotation records with sensible defaults."""
    from app.models.schemas import Quotation

    def _make(project_id="p1", trade="general_builder", total=100_000.0, status="received", **kwargs):
        return Quotation(
            id=kwargs.pop("id", f"q-{trade}-{total:.0f}-{status}"),
            project_id=project_id,
            supplier_name=kwargs.pop("supplier_name", "Acme Builders"),
            trade_category=trade,
            quotation_date="2025-01-15",
            valid_until="2025-02-15",
            status=status,
            total_amount=total,
            vat_amount=total * 0.15,
            total_incl_vat=total * 1.15,
            **kwargs,
        )

    return _make


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

@pytest.fixture
def client(store, tmp_path, monkeypatch):
    """
    TestClient with the data store and report output redirected under
    tmp_path. The lifespan is not entered, so the real DATA_DIR is never
    created. ANTHROPIC_API_KEY is cleared so key resolution is deterministic.
    """
    from fastapi.testclient import TestClient
    from app.main import app
    from app.db import get_store
    from app.api.report_routes import get_report_engine
    from app.services.report_engine import ReportEngine

    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_report_engine] = lambda: ReportEngine(str(tmp_path / "downloads"))
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
