"""
Shared route dependencies: store, repositories and services.

There is no authentication; the manager is a single-user local service.
Every provider hangs off get_store so tests can swap the data root with a
single dependency override.
"""
from typing import NoReturn

from fastapi import Depends, HTTPException

from app.db import FlatFileStore, get_store
from app.db.repositories import (
    BOMRepository,
    DrawingRepository,
    ProjectRepository,
    QuotationRepository,
    SettingsRepository,
    TimelineRepository,
)
from app.models.schemas import Project
from app.services.drawing_service import DrawingService
from app.services.exceptions import BuildManagerError
from app.services.project_service import ProjectService
from app.services.quotation_service import QuotationService


def raise_http(exc: BuildManagerError) -> NoReturn:
    """Translate a domain exception into the HTTP error the client sees."""
    raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc


def get_project_repo(store: FlatFileStore = Depends(get_store)) -> ProjectRepository:
    return ProjectRepository(store)


def get_bom_repo(store: FlatFileStore = Depends(get_store)) -> BOMRepository:
    return BOMRepository(store)


def get_timeline_repo(store: FlatFileStore = Depends(get_store)) -> TimelineRepository:
    return TimelineRepository(store)


def get_quotation_repo(store: FlatFileStore = Depends(get_store)) -> QuotationRepository:
    return QuotationRepository(store)


def get_drawing_repo(store: FlatFileStore = Depends(get_store)) -> DrawingRepository:
    return DrawingRepository(store)


def get_settings_repo(store: FlatFileStore = Depends(get_store)) -> SettingsRepository:
    return SettingsRepository(store)


def get_project_service(projects: ProjectRepository = Depends(get_project_repo)) -> ProjectService:
    return ProjectService(projects)


def get_quotation_service(
    quotations: QuotationRepository = Depends(get_quotation_repo),
    store: FlatFileStore = Depends(get_store),
) -> QuotationService:
    return QuotationService(quotations, store)


def get_drawing_service(
    drawings: DrawingRepository = Depends(get_drawing_repo),
    store: FlatFileStore = Depends(get_store),
) -> DrawingService:
    return DrawingService(drawings, store)


def require_project(
    project_id: str,
    service: ProjectService = Depends(get_project_service),
) -> Project:
    """Path dependency: 404 unless projects/{project_id}/project.json exists."""
    try:
        return service.get(project_id)
    except BuildManagerError as e:
        raise_http(e)
