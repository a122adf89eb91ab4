"""
BOM Aggregation Engine — maintains a project's bill of materials.

Every mutation returns the complete aggregate with derived fields recomputed
from ``items``: per-item amount, subtotals for all ten categories, grand
total and grand total incl. VAT. Derived fields are never authoritative.
"""
import logging
import re
import uuid
from typing import Dict, Iterable, List

from app.config import SA_VAT_RATE
from app.models.schemas import (
    BOM_CATEGORY_ORDER,
    BOM_UNITS,
    BOMData,
    BOMItem,
    BOMItemCreate,
    BOMItemUpdate,
    ExtractedLineItem,
    now_iso,
)
from app.services.bom_templates import NHBRC_BOM_TEMPLATE, BOMTemplateItem
from app.services.exceptions import NotFoundError
from app.services.money import add_vat

logger = logging.getLogger("buildtrack-bom")

CATEGORY_PREFIXES: Dict[str, str] = {
    "preliminaries": "P",
    "foundations": "F",
    "structural": "S",
    "roofing": "R",
    "plumbing": "PL",
    "electrical": "E",
    "finishes_internal": "FI",
    "finishes_external": "FE",
    "external_works": "EW",
    "provisional_sums": "PS",
}

_TRAILING_DIGITS = re.compile(r"(\d+)$")


def next_item_number(items: Iterable[BOMItem], category: str) -> str:
    """``{prefix}-{NNN}`` where NNN is one past the highest numeric suffix in the category."""
    highest = 0
    for item in items:
        if item.category != category:
            continue
        match = _TRAILING_DIGITS.search(item.item_number)
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{CATEGORY_PREFIXES[category]}-{highest + 1:03d}"


def calculate_subtotals(items: Iterable[BOMItem]) -> Dict[str, float]:
    """Subtotal per category in display order; empty categories are 0."""
    subtotals = {category: 0.0 for category in BOM_CATEGORY_ORDER}
    for item in items:
        subtotals[item.category] += item.quantity * item.rate
    return subtotals


class BOMEngine:

    def recalculate(self, bom: BOMData) -> BOMData:
        """Recompute every derived field from items. Idempotent."""
        items = [item.model_copy(update={"amount": item.quantity * item.rate}) for item in bom.items]
        subtotals = calculate_subtotals(items)
        grand_total = sum(subtotals[category] for category in BOM_CATEGORY_ORDER)
        return bom.model_copy(update={
            "items": items,
            "subtotals_by_category": subtotals,
            "grand_total": grand_total,
            "vat_rate": SA_VAT_RATE,
            "grand_total_incl_vat": add_vat(grand_total),
            "last_updated": now_iso(),
        })

    def _from_template(self, row: BOMTemplateItem) -> BOMItem:
        return BOMItem(
            id=str(uuid.uuid4()),
            category=row.category,
            item_number=row.item_number,
            description=row.description,
            unit=row.unit,
            quantity=row.default_quantity,
            rate=row.estimated_rate,
            is_standard=True,
        )

    def initialize(self, project_id: str, existing: BOMData = None,
                   template: List[BOMTemplateItem] = None) -> BOMData:
        """
        Load the standard residential template.

        When ``existing`` is given the template rows are appended to its
        items; a second call therefore yields a second full copy.
        """
        rows = template if template is not None else NHBRC_BOM_TEMPLATE
        new_items = [self._from_template(row) for row in rows]
        if existing is not None:
            bom = existing.model_copy(update={"items": list(existing.items) + new_items})
            logger.warning(
                f"BOM template loaded over {len(existing.items)} existing items",
                extra={"project_id": project_id},
            )
        else:
            bom = BOMData(project_id=project_id, items=new_items)
        logger.info(f"BOM initialized with {len(new_items)} template items", extra={"project_id": project_id})
        return self.recalculate(bom)

    def add_item(self, bom: BOMData, item: BOMItemCreate) -> BOMData:
        item_number = item.item_number.strip() or next_item_number(bom.items, item.category)
        new_item = BOMItem(
            id=str(uuid.uuid4()),
            category=item.category,
            item_number=item_number,
            description=item.description,
            unit=item.unit,
            quantity=item.quantity,
            rate=item.rate,
            is_standard=item.is_standard,
            notes=item.notes,
        )
        return self.recalculate(bom.model_copy(update={"items": list(bom.items) + [new_item]}))

    def _index_of(self, bom: BOMData, item_id: str) -> int:
        for idx, item in enumerate(bom.items):
            if item.id == item_id:
                return idx
        raise NotFoundError("BOM item", item_id)

    def update_item(self, bom: BOMData, item_id: str, updates: BOMItemUpdate) -> BOMData:
        """Partial merge of the supplied fields; the item id is never changed."""
        idx = self._index_of(bom, item_id)
        changes = {k: v for k, v in updates.model_dump(exclude_unset=True).items() if v is not None}
        items = list(bom.items)
        items[idx] = items[idx].model_copy(update=changes)
        return self.recalculate(bom.model_copy(update={"items": items}))

    def delete_item(self, bom: BOMData, item_id: str) -> BOMData:
        idx = self._index_of(bom, item_id)
        items = [item for i, item in enumerate(bom.items) if i != idx]
        return self.recalculate(bom.model_copy(update={"items": items}))

    def merge_line_items(self, bom: BOMData, category: str,
                         line_items: List[ExtractedLineItem]) -> BOMData:
        """Append extracted quotation lines as non-standard items in ``category``."""
        items = list(bom.items)
        for line in line_items:
            unit = line.unit.strip().lower()
            items.append(BOMItem(
                id=str(uuid.uuid4()),
                category=category,
                item_number=next_item_number(items, category),
                description=line.description,
                unit=unit if unit in BOM_UNITS else "item",
                quantity=line.quantity,
                rate=line.unit_rate,
                is_standard=False,
            ))
        logger.info(
            f"Merged {len(line_items)} extracted line items into {category}",
            extra={"project_id": bom.project_id},
        )
        return self.recalculate(bom.model_copy(update={"items": items}))

    def link_quotation(self, bom: BOMData, item_id: str, quotation_id: str) -> BOMData:
        idx = self._index_of(bom, item_id)
        items = list(bom.items)
        linked = list(items[idx].linked_quotation_ids)
        if quotation_id not in linked:
            linked.append(quotation_id)
        items[idx] = items[idx].model_copy(update={"linked_quotation_ids": linked})
        return self.recalculate(bom.model_copy(update={"items": items}))
