"""
CostingEngine — project cost roll-up.

Read-only: derives a CostSummary on demand from the project record, its BOM
and its quotations. Nothing here is persisted.

  budget        = project.total_budget, or BOM grand total when the project
                  budget is zero/unset
  contingency   = budget × contingency_percent / 100
  quoted        = Σ total_amount of accepted quotations (excl. VAT)
  variance      = budget − quoted
"""
import logging
from typing import Dict, List, Optional

from app.models.schemas import BOMData, CostEntry, CostSummary, Project, Quotation

logger = logging.getLogger("buildtrack-costing")


class CostingEngine:

    def resolve_budget(self, project: Project, bom: Optional[BOMData]) -> float:
        if project.total_budget:
            return project.total_budget
        return bom.grand_total if bom is not None else 0.0

    def entries_by_trade(self, accepted: List[Quotation]) -> List[CostEntry]:
        """
        One entry per trade present among accepted quotations, in order of
        first appearance. Trade budgets are not yet mapped from BOM
        categories, so budget_amount is 0 and variance is −quoted.
        """
        quoted: Dict[str, float] = {}
        for quotation in accepted:
            quoted[quotation.trade_category] = quoted.get(quotation.trade_category, 0.0) + quotation.total_amount

        return [
            CostEntry(
                trade_category=trade,
                budget_amount=0.0,
                quoted_amount=amount,
                actual_amount=0.0,
                variance=-amount,
                variance_percent=0.0,
            )
            for trade, amount in quoted.items()
        ]

    def calculate_cost_summary(
        self,
        project: Project,
        bom: Optional[BOMData],
        quotations: List[Quotation],
    ) -> CostSummary:
        total_budget = self.resolve_budget(project, bom)
        contingency_percent = project.contingency_percent
        contingency_amount = total_budget * (contingency_percent / 100)

        accepted = [q for q in quotations if q.status == "accepted"]
        total_quoted = sum(q.total_amount for q in accepted)

        logger.debug(
            f"Cost roll-up: budget={total_budget:.2f} quoted={total_quoted:.2f} "
            f"accepted={len(accepted)}/{len(quotations)}",
            extra={"project_id": project.id},
        )

        return CostSummary(
            project_id=project.id,
            total_budget=total_budget,
            contingency_percent=contingency_percent,
            contingency_amount=contingency_amount,
            budget_incl_contingency=total_budget + contingency_amount,
            total_quoted=total_quoted,
            total_actual=0.0,
            total_variance=total_budget - total_quoted,
            entries_by_trade=self.entries_by_trade(accepted),
        )
