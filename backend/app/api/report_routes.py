"""
Report Routes — printable project deliverables.

GET /api/projects/{id}/reports/boq.xlsx                  — BOQ workbook
GET /api/projects/{id}/reports/{qs_summary|cost_report|timeline_report}  — PDF
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from app.api.deps import get_bom_repo, get_quotation_repo, get_timeline_repo, require_project
from app.db.repositories import BOMRepository, QuotationRepository, TimelineRepository
from app.models.schemas import Project
from app.services.costing_engine import CostingEngine
from app.services.report_engine import REPORT_TYPES, ReportEngine

router = APIRouter(prefix="/api/projects/{project_id}/reports", tags=["Reports"])
logger = logging.getLogger("buildtrack-report")

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def get_report_engine() -> ReportEngine:
    return ReportEngine()


@router.get("/boq.xlsx")
def download_boq_excel(
    project: Project = Depends(require_project),
    boms: BOMRepository = Depends(get_bom_repo),
    reports: ReportEngine = Depends(get_report_engine),
):
    path = reports.generate_boq_excel(project, boms.get(project.id))
    if path is None:
        raise HTTPException(500, "BOQ workbook generation failed")
    return FileResponse(path, media_type=XLSX_MEDIA_TYPE, filename=f"{project.name} - BOQ.xlsx")


@router.get("/{report_type}")
def download_report(
    report_type: str,
    project: Project = Depends(require_project),
    boms: BOMRepository = Depends(get_bom_repo),
    quotations: QuotationRepository = Depends(get_quotation_repo),
    timelines: TimelineRepository = Depends(get_timeline_repo),
    reports: ReportEngine = Depends(get_report_engine),
):
    if report_type not in REPORT_TYPES:
        raise HTTPException(404, f"Unknown report type: {report_type}")

    if report_type == "qs_summary":
        path = reports.generate_qs_summary(project, boms.get(project.id), quotations.list(project.id))
    elif report_type == "cost_report":
        summary = CostingEngine().calculate_cost_summary(
            project, boms.get(project.id), quotations.list(project.id)
        )
        path = reports.generate_cost_report(project, summary)
    else:
        path = reports.generate_timeline_report(project, timelines.get(project.id))

    if path is None:
        raise HTTPException(500, f"Report generation failed: {report_type}")
    logger.info(f"Report generated: {report_type}", extra={"project_id": project.id})
    return FileResponse(path, media_type="application/pdf", filename=f"{project.name} - {report_type}.pdf")
