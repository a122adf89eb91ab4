"""Timeline routes — phase schedule and milestones. Phase edits never cascade."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_timeline_repo, raise_http, require_project
from app.db.repositories import TimelineRepository
from app.models.schemas import MilestoneCreate, PhaseUpdate, Project, TimelineData, TimelineInitRequest
from app.services.exceptions import BuildManagerError, NotFoundError
from app.services.timeline_engine import TimelineEngine

router = APIRouter(prefix="/api/projects/{project_id}/timeline", tags=["Timeline"])
logger = logging.getLogger("buildtrack-api")

engine = TimelineEngine()

ExpectedVersion = Query(default=None, alias="expectedVersion")


def _load(repo: TimelineRepository, project_id: str) -> TimelineData:
    timeline = repo.get(project_id)
    if timeline is None:
        raise NotFoundError("Timeline", project_id)
    return timeline


@router.get("")
def get_timeline(
    project: Project = Depends(require_project),
    repo: TimelineRepository = Depends(get_timeline_repo),
):
    timeline = repo.get(project.id)
    return timeline.to_json_dict() if timeline is not None else None


@router.post("/initialize")
def initialize_timeline(
    body: TimelineInitRequest,
    expected_version: Optional[int] = ExpectedVersion,
    project: Project = Depends(require_project),
    repo: TimelineRepository = Depends(get_timeline_repo),
):
    """Build a fresh schedule from the start date; replaces any existing phases and milestones."""
    try:
        timeline = engine.initialize(project.id, body.start_date, body.template)
        return repo.save(project.id, timeline, expected_version=expected_version).to_json_dict()
    except BuildManagerError as e:
        raise_http(e)


@router.patch("/phases/{phase_id}")
def update_phase(
    phase_id: str,
    body: PhaseUpdate,
    expected_version: Optional[int] = ExpectedVersion,
    project: Project = Depends(require_project),
    repo: TimelineRepository = Depends(get_timeline_repo),
):
    try:
        timeline = engine.update_phase(_load(repo, project.id), phase_id, body)
        return repo.save(project.id, timeline, expected_version=expected_version).to_json_dict()
    except BuildManagerError as e:
        raise_http(e)


@router.post("/milestones", status_code=201)
def add_milestone(
    body: MilestoneCreate,
    expected_version: Optional[int] = ExpectedVersion,
    project: Project = Depends(require_project),
    repo: TimelineRepository = Depends(get_timeline_repo),
):
    try:
        timeline = engine.add_milestone(_load(repo, project.id), body)
        return repo.save(project.id, timeline, expected_version=expected_version).to_json_dict()
    except BuildManagerError as e:
        raise_http(e)
