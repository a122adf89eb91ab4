"""Project records: create, read, list and partial update."""
import logging
import uuid
from typing import List, Optional

from app.config import DEFAULT_CONTINGENCY_PCT
from app.db.repositories import ProjectRepository
from app.models.schemas import Project, ProjectCreate, ProjectUpdate, now_iso
from app.services.exceptions import NotFoundError

logger = logging.getLogger("buildtrack-projects")

# Fields a client may clear by sending null
_NULLABLE_FIELDS = {
    "start_date",
    "estimated_completion_date",
    "actual_completion_date",
    "nhbrc_enrolment_number",
    "building_plan_approval_date",
    "stand_size",
    "building_size",
}


class ProjectService:

    def __init__(self, projects: ProjectRepository):
        self.projects = projects

    def list(self) -> List[Project]:
        return self.projects.list()

    def get(self, project_id: str) -> Project:
        project = self.projects.get(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    def create(self, data: ProjectCreate) -> Project:
        # Zero/blank inputs fall back to the defaults, same as omitting them
        project = Project(
            id=str(uuid.uuid4()),
            name=data.name,
            description=data.description or "",
            address=data.address or "",
            erf_number=data.erf_number or "",
            local_authority=data.local_authority or "",
            project_status="planning",
            total_budget=data.total_budget or 0.0,
            contingency_percent=data.contingency_percent or DEFAULT_CONTINGENCY_PCT,
            nhbrc_enrolment_number=data.nhbrc_enrolment_number or None,
            stand_size=data.stand_size or None,
            building_size=data.building_size or None,
            floors=data.floors or 1,
        )
        saved = self.projects.create(project)
        logger.info(f"Project created: {saved.name}", extra={"project_id": saved.id})
        return saved

    def update(self, project_id: str, updates: ProjectUpdate,
               expected_version: Optional[int] = None) -> Project:
        project = self.get(project_id)
        changes = {
            k: v for k, v in updates.model_dump(exclude_unset=True).items()
            if v is not None or k in _NULLABLE_FIELDS
        }
        merged = project.model_copy(update={**changes, "id": project_id, "updated_at": now_iso()})
        return self.projects.save(project_id, merged, expected_version=expected_version)
