"""
Quotation Routes — supplier quotation register, document upload and extraction.

POST /api/projects/{id}/quotations/extract  — run a quotation document through
    the tabular parser (CSV/XLS/XLSX) or document AI (PDF/images). Returns an
    ExtractionResponse; nothing is persisted until the user saves a quotation.
POST /api/projects/{id}/quotations/upload   — attach the original document to
    an existing quotation.
"""
import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from app.api.deps import get_quotation_service, get_settings_repo, raise_http, require_project
from app.config import resolve_api_key
from app.db.repositories import SettingsRepository
from app.models.schemas import (
    ExtractionResponse,
    Project,
    QuotationCreate,
    QuotationUpdate,
    RejectQuotationRequest,
)
from app.services import extraction_service
from app.services.exceptions import BuildManagerError, InvalidUploadError
from app.services.quotation_service import QuotationService

router = APIRouter(prefix="/api/projects/{project_id}/quotations", tags=["Quotations"])
logger = logging.getLogger("buildtrack-api")


@router.get("")
def list_quotations(
    project: Project = Depends(require_project),
    service: QuotationService = Depends(get_quotation_service),
):
    return [q.to_json_dict() for q in service.list(project.id)]


@router.post("", status_code=201)
def create_quotation(
    body: QuotationCreate,
    project: Project = Depends(require_project),
    service: QuotationService = Depends(get_quotation_service),
):
    return service.create(project.id, body).to_json_dict()


@router.post("/extract")
async def extract_quotation(
    project: Project = Depends(require_project),
    file: UploadFile = File(None),
    settings: SettingsRepository = Depends(get_settings_repo),
):
    """Extract supplier details and line items from an uploaded quotation."""
    filename = file.filename if file is not None else None
    content_type = file.content_type if file is not None else None
    api_key = resolve_api_key(settings.raw(), os.environ)
    try:
        if file is not None:
            extraction_service.check_declared_size(file.size)
        content = await file.read() if file is not None else None
        data = await extraction_service.extract_quotation(content, filename, content_type, api_key)
    except BuildManagerError as e:
        logger.warning(f"Extraction failed for {filename}: {e.message}", extra={"project_id": project.id})
        failure = ExtractionResponse(success=False, error=e.message)
        return JSONResponse(status_code=e.status_code, content=failure.to_json_dict())
    return ExtractionResponse(success=True, data=data).to_json_dict()


@router.post("/upload")
def upload_quotation_file(
    project: Project = Depends(require_project),
    file: UploadFile = File(None),
    quotation_id: str = Form(None, alias="quotationId"),
    service: QuotationService = Depends(get_quotation_service),
):
    """Store the original quotation document against an existing quotation."""
    try:
        if file is None or not quotation_id:
            raise InvalidUploadError("File and quotationId are required", code="NO_FILE")
        attachment = service.attach_file(project.id, quotation_id, file.file, file.filename, file.content_type)
    except BuildManagerError as e:
        raise_http(e)
    return {"success": True, "fileId": attachment.id, "fileName": attachment.file_name}


@router.get("/{quotation_id}")
def get_quotation(
    quotation_id: str,
    project: Project = Depends(require_project),
    service: QuotationService = Depends(get_quotation_service),
):
    try:
        return service.get(project.id, quotation_id).to_json_dict()
    except BuildManagerError as e:
        raise_http(e)


@router.patch("/{quotation_id}")
def update_quotation(
    quotation_id: str,
    body: QuotationUpdate,
    project: Project = Depends(require_project),
    service: QuotationService = Depends(get_quotation_service),
):
    try:
        return service.update(project.id, quotation_id, body).to_json_dict()
    except BuildManagerError as e:
        raise_http(e)


@router.delete("/{quotation_id}")
def delete_quotation(
    quotation_id: str,
    project: Project = Depends(require_project),
    service: QuotationService = Depends(get_quotation_service),
):
    try:
        service.delete(project.id, quotation_id)
    except BuildManagerError as e:
        raise_http(e)
    return {"success": True}


@router.post("/{quotation_id}/accept")
def accept_quotation(
    quotation_id: str,
    project: Project = Depends(require_project),
    service: QuotationService = Depends(get_quotation_service),
):
    try:
        return service.accept(project.id, quotation_id).to_json_dict()
    except BuildManagerError as e:
        raise_http(e)


@router.post("/{quotation_id}/reject")
def reject_quotation(
    quotation_id: str,
    body: Optional[RejectQuotationRequest] = None,
    project: Project = Depends(require_project),
    service: QuotationService = Depends(get_quotation_service),
):
    try:
        return service.reject(project.id, quotation_id, body.reason if body is not None else "").to_json_dict()
    except BuildManagerError as e:
        raise_http(e)
