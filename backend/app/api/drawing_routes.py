"""Drawing routes — drawing register and revision uploads."""
import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.api.deps import get_drawing_service, raise_http, require_project
from app.models.schemas import DrawingCreate, Project
from app.services.drawing_service import DrawingService
from app.services.exceptions import BuildManagerError, InvalidUploadError

router = APIRouter(prefix="/api/projects/{project_id}/drawings", tags=["Drawings"])
logger = logging.getLogger("buildtrack-api")


@router.get("")
def list_drawings(
    project: Project = Depends(require_project),
    service: DrawingService = Depends(get_drawing_service),
):
    return [d.to_json_dict() for d in service.list(project.id)]


@router.post("", status_code=201)
def create_drawing(
    body: DrawingCreate,
    project: Project = Depends(require_project),
    service: DrawingService = Depends(get_drawing_service),
):
    return service.create(project.id, body).to_json_dict()


@router.post("/upload")
def upload_revision(
    project: Project = Depends(require_project),
    file: UploadFile = File(None),
    drawing_id: str = Form(None, alias="drawingId"),
    revision_number: str = Form(None, alias="revisionNumber"),
    notes: str = Form("", alias="notes"),
    service: DrawingService = Depends(get_drawing_service),
):
    """Store a new revision file; it becomes the drawing's current revision."""
    try:
        if file is None or not drawing_id:
            raise InvalidUploadError("File and drawingId are required", code="NO_FILE")
        drawing = service.add_revision(
            project.id, drawing_id, file.file, file.filename, file.content_type,
            revision_number=revision_number, notes=notes,
        )
    except BuildManagerError as e:
        raise_http(e)
    return drawing.to_json_dict()


@router.delete("/{drawing_id}")
def delete_drawing(
    drawing_id: str,
    project: Project = Depends(require_project),
    service: DrawingService = Depends(get_drawing_service),
):
    try:
        service.delete(project.id, drawing_id)
    except BuildManagerError as e:
        raise_http(e)
    return {"success": True}
