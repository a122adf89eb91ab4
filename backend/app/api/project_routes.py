"""Project routes — list, create, read and partial update."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_project_service, raise_http
from app.models.schemas import ProjectCreate, ProjectUpdate
from app.services.exceptions import BuildManagerError
from app.services.project_service import ProjectService

router = APIRouter(prefix="/api/projects", tags=["Projects"])
logger = logging.getLogger("buildtrack-api")


@router.get("")
def list_projects(service: ProjectService = Depends(get_project_service)):
    return [p.to_json_dict() for p in service.list()]


@router.post("", status_code=201)
def create_project(body: ProjectCreate, service: ProjectService = Depends(get_project_service)):
    return service.create(body).to_json_dict()


@router.get("/{project_id}")
def get_project(project_id: str, service: ProjectService = Depends(get_project_service)):
    try:
        return service.get(project_id).to_json_dict()
    except BuildManagerError as e:
        raise_http(e)


@router.put("/{project_id}")
def update_project(
    project_id: str,
    body: ProjectUpdate,
    expected_version: Optional[int] = Query(default=None, alias="expectedVersion"),
    service: ProjectService = Depends(get_project_service),
):
    """Partial merge; send ``?expectedVersion=n`` to reject stale writes with 409."""
    try:
        return service.update(project_id, body, expected_version=expected_version).to_json_dict()
    except BuildManagerError as e:
        raise_http(e)
