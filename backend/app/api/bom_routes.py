"""
BOM Routes — bill of materials for a project.

Every mutation is load → engine → save; the engine recomputes amounts,
category subtotals and VAT totals before the document is written. Mutating
routes accept ``?expectedVersion=n`` for a compare-and-set save.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_bom_repo, raise_http, require_project
from app.db.repositories import BOMRepository
from app.models.schemas import (
    BOMData,
    BOMImportRequest,
    BOMItemCreate,
    BOMItemUpdate,
    LinkQuotationRequest,
    Project,
)
from app.services.bom_engine import BOMEngine
from app.services.exceptions import BuildManagerError, NotFoundError

router = APIRouter(prefix="/api/projects/{project_id}/bom", tags=["Bill of Materials"])
logger = logging.getLogger("buildtrack-api")

engine = BOMEngine()

ExpectedVersion = Query(default=None, alias="expectedVersion")


def _load(repo: BOMRepository, project_id: str) -> BOMData:
    bom = repo.get(project_id)
    if bom is None:
        raise NotFoundError("BOM", project_id)
    return bom


@router.get("")
def get_bom(project: Project = Depends(require_project), repo: BOMRepository = Depends(get_bom_repo)):
    """The project's BOM, or null before it has been initialized."""
    bom = repo.get(project.id)
    return bom.to_json_dict() if bom is not None else None


@router.post("/initialize")
def initialize_bom(
    expected_version: Optional[int] = ExpectedVersion,
    project: Project = Depends(require_project),
    repo: BOMRepository = Depends(get_bom_repo),
):
    """Load the standard template. Calling it again appends another full copy."""
    try:
        bom = engine.initialize(project.id, existing=repo.get(project.id))
        return repo.save(project.id, bom, expected_version=expected_version).to_json_dict()
    except BuildManagerError as e:
        raise_http(e)


@router.post("/items", status_code=201)
def add_bom_item(
    body: BOMItemCreate,
    expected_version: Optional[int] = ExpectedVersion,
    project: Project = Depends(require_project),
    repo: BOMRepository = Depends(get_bom_repo),
):
    try:
        bom = engine.add_item(_load(repo, project.id), body)
        return repo.save(project.id, bom, expected_version=expected_version).to_json_dict()
    except BuildManagerError as e:
        raise_http(e)


@router.patch("/items/{item_id}")
def update_bom_item(
    item_id: str,
    body: BOMItemUpdate,
    expected_version: Optional[int] = ExpectedVersion,
    project: Project = Depends(require_project),
    repo: BOMRepository = Depends(get_bom_repo),
):
    try:
        bom = engine.update_item(_load(repo, project.id), item_id, body)
        return repo.save(project.id, bom, expected_version=expected_version).to_json_dict()
    except BuildManagerError as e:
        raise_http(e)


@router.delete("/items/{item_id}")
def delete_bom_item(
    item_id: str,
    expected_version: Optional[int] = ExpectedVersion,
    project: Project = Depends(require_project),
    repo: BOMRepository = Depends(get_bom_repo),
):
    try:
        bom = engine.delete_item(_load(repo, project.id), item_id)
        return repo.save(project.id, bom, expected_version=expected_version).to_json_dict()
    except BuildManagerError as e:
        raise_http(e)


@router.post("/import")
def import_line_items(
    body: BOMImportRequest,
    expected_version: Optional[int] = ExpectedVersion,
    project: Project = Depends(require_project),
    repo: BOMRepository = Depends(get_bom_repo),
):
    """Merge reviewed extraction line items into one category."""
    try:
        existing = repo.get(project.id) or BOMData(project_id=project.id)
        bom = engine.merge_line_items(existing, body.category, body.line_items)
        return repo.save(project.id, bom, expected_version=expected_version).to_json_dict()
    except BuildManagerError as e:
        raise_http(e)


@router.post("/items/{item_id}/links")
def link_quotation(
    item_id: str,
    body: LinkQuotationRequest,
    expected_version: Optional[int] = ExpectedVersion,
    project: Project = Depends(require_project),
    repo: BOMRepository = Depends(get_bom_repo),
):
    try:
        bom = engine.link_quotation(_load(repo, project.id), item_id, body.quotation_id)
        return repo.save(project.id, bom, expected_version=expected_version).to_json_dict()
    except BuildManagerError as e:
        raise_http(e)
