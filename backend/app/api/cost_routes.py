"""Cost routes — budget vs accepted quotations, derived on every request."""
from fastapi import APIRouter, Depends

from app.api.deps import get_bom_repo, get_quotation_repo, require_project
from app.db.repositories import BOMRepository, QuotationRepository
from app.models.schemas import Project
from app.services.costing_engine import CostingEngine

router = APIRouter(prefix="/api/projects/{project_id}/costs", tags=["Costs"])

engine = CostingEngine()


@router.get("")
def get_cost_summary(
    project: Project = Depends(require_project),
    boms: BOMRepository = Depends(get_bom_repo),
    quotations: QuotationRepository = Depends(get_quotation_repo),
):
    summary = engine.calculate_cost_summary(project, boms.get(project.id), quotations.list(project.id))
    return summary.to_json_dict()
