"""
Supplier quotations: register, review decisions and attached documents.

Status transitions are not constrained. ``total_incl_vat`` is always
re-derived as ``total_amount + vat_amount`` after a write.
"""
import logging
import uuid
from typing import BinaryIO, List, Optional

from app.db import FlatFileStore
from app.db.repositories import QuotationRepository
from app.models.schemas import (
    ExtractedLineItem,
    Quotation,
    QuotationCreate,
    QuotationFile,
    QuotationLineItem,
    QuotationUpdate,
    now_iso,
)
from app.services.exceptions import NotFoundError
from app.services.money import calculate_vat
from app.services.uploads import save_upload

logger = logging.getLogger("buildtrack-quotations")

# Fields a client may clear by sending null
_NULLABLE_FIELDS = {"reviewed_date", "accepted_date", "rejected_reason"}


def to_quotation_line_items(line_items: List[ExtractedLineItem]) -> List[QuotationLineItem]:
    return [
        QuotationLineItem(
            id=str(uuid.uuid4()),
            description=line.description,
            unit=line.unit,
            quantity=line.quantity,
            unit_rate=line.unit_rate,
            amount=line.amount,
        )
        for line in line_items
    ]


class QuotationService:

    def __init__(self, quotations: QuotationRepository, store: FlatFileStore):
        self.quotations = quotations
        self.store = store

    def list(self, project_id: str) -> List[Quotation]:
        return self.quotations.list(project_id)

    def get(self, project_id: str, quotation_id: str) -> Quotation:
        quotation = self.quotations.get(project_id, quotation_id)
        if quotation is None:
            raise NotFoundError("Quotation", quotation_id)
        return quotation

    def create(self, project_id: str, data: QuotationCreate) -> Quotation:
        vat_amount = data.vat_amount if data.vat_amount is not None else calculate_vat(data.total_amount)
        quotation = Quotation(
            id=str(uuid.uuid4()),
            project_id=project_id,
            supplier_name=data.supplier_name,
            supplier_contact=data.supplier_contact or "",
            supplier_email=data.supplier_email or "",
            supplier_phone=data.supplier_phone or "",
            trade_category=data.trade_category,
            quotation_number=data.quotation_number or "",
            quotation_date=data.quotation_date,
            valid_until=data.valid_until,
            status="received",
            total_amount=data.total_amount,
            vat_amount=vat_amount,
            total_incl_vat=data.total_amount + vat_amount,
            line_items=to_quotation_line_items(data.line_items),
            notes=data.notes or "",
        )
        self.quotations.upsert(project_id, quotation)
        logger.info(
            f"Quotation registered: {quotation.supplier_name} ({quotation.trade_category}) "
            f"R{quotation.total_amount:,.2f}",
            extra={"project_id": project_id},
        )
        return quotation

    def _apply(self, project_id: str, quotation: Quotation, changes: dict) -> Quotation:
        merged = quotation.model_copy(update={
            **changes,
            "id": quotation.id,
            "project_id": project_id,
            "updated_at": now_iso(),
        })
        merged = merged.model_copy(update={"total_incl_vat": merged.total_amount + merged.vat_amount})
        return self.quotations.upsert(project_id, merged)

    def update(self, project_id: str, quotation_id: str, updates: QuotationUpdate) -> Quotation:
        """
        Partial merge. A new total without an explicit VAT amount re-derives
        VAT at 15%.
        """
        quotation = self.get(project_id, quotation_id)
        changes = {
            k: v for k, v in updates.model_dump(exclude_unset=True).items()
            if v is not None or k in _NULLABLE_FIELDS
        }
        if "line_items" in changes:
            changes["line_items"] = updates.line_items
        if "total_amount" in changes and "vat_amount" not in changes:
            changes["vat_amount"] = calculate_vat(changes["total_amount"])
        return self._apply(project_id, quotation, changes)

    def accept(self, project_id: str, quotation_id: str) -> Quotation:
        quotation = self.get(project_id, quotation_id)
        now = now_iso()
        logger.info(f"Quotation accepted: {quotation.supplier_name}", extra={"project_id": project_id})
        return self._apply(project_id, quotation, {
            "status": "accepted",
            "accepted_date": now,
            "reviewed_date": now,
        })

    def reject(self, project_id: str, quotation_id: str, reason: str = "") -> Quotation:
        quotation = self.get(project_id, quotation_id)
        logger.info(f"Quotation rejected: {quotation.supplier_name}", extra={"project_id": project_id})
        return self._apply(project_id, quotation, {
            "status": "rejected",
            "rejected_reason": reason,
            "reviewed_date": now_iso(),
        })

    def delete(self, project_id: str, quotation_id: str) -> None:
        if not self.quotations.delete(project_id, quotation_id):
            raise NotFoundError("Quotation", quotation_id)

    def attach_file(
        self,
        project_id: str,
        quotation_id: str,
        fileobj: BinaryIO,
        file_name: str,
        mime_type: Optional[str],
    ) -> QuotationFile:
        """Store the document under files/quotations/ and record it on the quotation."""
        quotation = self.get(project_id, quotation_id)
        stored = save_upload(fileobj, file_name, self.store.upload_dir(project_id, "quotations"))
        attachment = QuotationFile(
            id=stored.file_id,
            file_name=file_name,
            file_size=stored.size,
            mime_type=mime_type or "application/octet-stream",
            storage_path=f"files/quotations/{stored.stored_name}",
        )
        self._apply(project_id, quotation, {"files": list(quotation.files) + [attachment]})
        return attachment
