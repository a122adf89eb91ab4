"""
Pydantic schemas for every persisted aggregate and API payload.

Attributes are snake_case in Python; the JSON files on disk and the HTTP
bodies use camelCase (``alias_generator=to_camel``). Always dump with
``by_alias=True`` when writing to the store.
"""
from datetime import date, datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# ── Enumerations ───────────────────────────────────────────────────────────────

BOMCategory = Literal[
    "preliminaries",
    "foundations",
    "structural",
    "roofing",
    "plumbing",
    "electrical",
    "finishes_internal",
    "finishes_external",
    "external_works",
    "provisional_sums",
]

BOMUnit = Literal["m3", "m2", "m", "no", "kg", "bag", "item", "prov", "day", "load"]

TradeCategory = Literal[
    "general_builder",
    "plumber",
    "electrician",
    "roofing",
    "tiling",
    "painting",
    "carpentry",
    "glazing",
    "waterproofing",
    "plastering",
    "landscaping",
    "structural_steel",
    "hvac",
    "security",
    "other",
]

QuotationStatus = Literal["received", "under_review", "accepted", "rejected", "expired", "superseded"]
ProjectStatus = Literal["planning", "in_progress", "on_hold", "completed", "cancelled"]
PhaseStatus = Literal["not_started", "in_progress", "completed", "delayed", "on_hold"]
Confidence = Literal["high", "medium", "low"]
DrawingCategory = Literal[
    "site_plan",
    "floor_plan",
    "elevation",
    "section",
    "detail",
    "structural",
    "electrical",
    "plumbing",
    "render_3d",
    "other",
]

BOM_CATEGORY_LABELS: Dict[str, str] = {
    "preliminaries": "Preliminaries",
    "foundations": "Foundations",
    "structural": "Structural",
    "roofing": "Roofing",
    "plumbing": "Plumbing",
    "electrical": "Electrical",
    "finishes_internal": "Internal Finishes",
    "finishes_external": "External Finishes",
    "external_works": "External Works",
    "provisional_sums": "Provisional Sums",
}

# Display and aggregation order
BOM_CATEGORY_ORDER: List[str] = list(BOM_CATEGORY_LABELS)

BOM_UNITS: tuple = ("m3", "m2", "m", "no", "kg", "bag", "item", "prov", "day", "load")

TRADE_CATEGORY_LABELS: Dict[str, str] = {
    "general_builder": "General Builder",
    "plumber": "Plumber",
    "electrician": "Electrician",
    "roofing": "Roofing",
    "tiling": "Tiling",
    "painting": "Painting",
    "carpentry": "Carpentry",
    "glazing": "Glazing",
    "waterproofing": "Waterproofing",
    "plastering": "Plastering",
    "landscaping": "Landscaping",
    "structural_steel": "Structural Steel",
    "hvac": "HVAC",
    "security": "Security",
    "other": "Other",
}

QUOTATION_STATUS_LABELS: Dict[str, str] = {
    "received": "Received",
    "under_review": "Under Review",
    "accepted": "Accepted",
    "rejected": "Rejected",
    "expired": "Expired",
    "superseded": "Superseded",
}

PROJECT_STATUS_LABELS: Dict[str, str] = {
    "planning": "Planning",
    "in_progress": "In Progress",
    "on_hold": "On Hold",
    "completed": "Completed",
    "cancelled": "Cancelled",
}

PHASE_STATUS_LABELS: Dict[str, str] = {
    "not_started": "Not Started",
    "in_progress": "In Progress",
    "completed": "Completed",
    "delayed": "Delayed",
    "on_hold": "On Hold",
}


# ── Extraction ─────────────────────────────────────────────────────────────────

class ExtractedLineItem(CamelModel):
    """A single line item extracted from a quotation document."""
    description: str
    unit: str = "item"
    quantity: float = 1.0
    unit_rate: float = 0.0
    amount: float = 0.0


class ExtractedQuotationData(CamelModel):
    """Full extraction result from document AI or spreadsheet parsing. Never persisted as-is."""
    supplier_name: Optional[str] = None
    supplier_contact: Optional[str] = None
    supplier_email: Optional[str] = None
    supplier_phone: Optional[str] = None
    quotation_number: Optional[str] = None
    quotation_date: Optional[str] = None
    valid_until: Optional[str] = None
    trade_category: Optional[str] = None
    line_items: List[ExtractedLineItem] = Field(default_factory=list)
    subtotal: Optional[float] = None
    vat_amount: Optional[float] = None
    total_incl_vat: Optional[float] = None
    notes: Optional[str] = None
    confidence: Confidence = "low"
    warnings: List[str] = Field(default_factory=list)


class ExtractionResponse(CamelModel):
    success: bool
    data: Optional[ExtractedQuotationData] = None
    error: Optional[str] = None


# ── Bill of Materials ──────────────────────────────────────────────────────────

class BOMItem(CamelModel):
    id: str
    category: BOMCategory
    item_number: str
    description: str
    unit: BOMUnit
    quantity: float
    rate: float
    amount: float = 0.0
    is_standard: bool = False
    notes: str = ""
    linked_quotation_ids: List[str] = Field(default_factory=list)


class BOMItemCreate(CamelModel):
    category: BOMCategory
    item_number: str = ""           # blank → next number in category
    description: str
    unit: BOMUnit = "item"
    quantity: float = Field(default=1.0, ge=0)
    rate: float = Field(default=0.0, ge=0)
    is_standard: bool = False
    notes: str = ""


class BOMItemUpdate(CamelModel):
    category: Optional[BOMCategory] = None
    item_number: Optional[str] = None
    description: Optional[str] = None
    unit: Optional[BOMUnit] = None
    quantity: Optional[float] = Field(default=None, ge=0)
    rate: Optional[float] = Field(default=None, ge=0)
    is_standard: Optional[bool] = None
    notes: Optional[str] = None
    linked_quotation_ids: Optional[List[str]] = None


class BOMData(CamelModel):
    project_id: str
    items: List[BOMItem] = Field(default_factory=list)
    last_updated: str = Field(default_factory=now_iso)
    subtotals_by_category: Dict[str, float] = Field(default_factory=dict)
    grand_total: float = 0.0
    vat_rate: float = 0.15
    grand_total_incl_vat: float = 0.0
    version: int = 0


class BOMImportRequest(CamelModel):
    category: BOMCategory
    line_items: List[ExtractedLineItem]


class LinkQuotationRequest(CamelModel):
    quotation_id: str


# ── Quotations ─────────────────────────────────────────────────────────────────

class QuotationLineItem(CamelModel):
    id: str
    description: str
    unit: str = "item"
    quantity: float = 1.0
    unit_rate: float = 0.0
    amount: float = 0.0
    bom_item_id: Optional[str] = None


class QuotationFile(CamelModel):
    id: str
    file_name: str
    file_size: int
    mime_type: str
    uploaded_at: str = Field(default_factory=now_iso)
    storage_path: str


class Quotation(CamelModel):
    id: str
    project_id: str
    supplier_name: str
    supplier_contact: str = ""
    supplier_email: str = ""
    supplier_phone: str = ""
    trade_category: TradeCategory
    quotation_number: str = ""
    quotation_date: str
    valid_until: str
    status: QuotationStatus = "received"
    total_amount: float
    vat_amount: float
    total_incl_vat: float
    line_items: List[QuotationLineItem] = Field(default_factory=list)
    files: List[QuotationFile] = Field(default_factory=list)
    notes: str = ""
    received_date: str = Field(default_factory=now_iso)
    reviewed_date: Optional[str] = None
    accepted_date: Optional[str] = None
    rejected_reason: Optional[str] = None
    created_at: str = Field(default_factory=now_iso)
    updated_at: str = Field(default_factory=now_iso)


class QuotationCreate(CamelModel):
    supplier_name: str = Field(min_length=1)
    supplier_contact: Optional[str] = None
    supplier_email: Optional[str] = None
    supplier_phone: Optional[str] = None
    trade_category: TradeCategory
    quotation_number: Optional[str] = None
    quotation_date: str
    valid_until: str
    total_amount: float = Field(ge=0)
    vat_amount: Optional[float] = None
    notes: Optional[str] = None
    line_items: List[ExtractedLineItem] = Field(default_factory=list)


class QuotationUpdate(CamelModel):
    supplier_name: Optional[str] = None
    supplier_contact: Optional[str] = None
    supplier_email: Optional[str] = None
    supplier_phone: Optional[str] = None
    trade_category: Optional[TradeCategory] = None
    quotation_number: Optional[str] = None
    quotation_date: Optional[str] = None
    valid_until: Optional[str] = None
    status: Optional[QuotationStatus] = None
    total_amount: Optional[float] = None
    vat_amount: Optional[float] = None
    line_items: Optional[List[QuotationLineItem]] = None
    notes: Optional[str] = None


class RejectQuotationRequest(CamelModel):
    reason: str = ""


# ── Projects ───────────────────────────────────────────────────────────────────

class Project(CamelModel):
    id: str
    name: str
    description: str = ""
    address: str = ""
    erf_number: str = ""
    local_authority: str = ""
    project_status: ProjectStatus = "planning"
    start_date: Optional[str] = None
    estimated_completion_date: Optional[str] = None
    actual_completion_date: Optional[str] = None
    total_budget: float = 0.0
    contingency_percent: float = 10.0
    nhbrc_enrolment_number: Optional[str] = None
    building_plan_approval_date: Optional[str] = None
    stand_size: Optional[float] = None
    building_size: Optional[float] = None
    floors: int = 1
    notes: str = ""
    created_at: str = Field(default_factory=now_iso)
    updated_at: str = Field(default_factory=now_iso)
    version: int = 0


class ProjectCreate(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    address: Optional[str] = None
    erf_number: Optional[str] = None
    local_authority: Optional[str] = None
    total_budget: Optional[float] = Field(default=None, ge=0)
    contingency_percent: Optional[float] = Field(default=None, ge=0)
    nhbrc_enrolment_number: Optional[str] = None
    stand_size: Optional[float] = None
    building_size: Optional[float] = None
    floors: Optional[int] = None


class ProjectUpdate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    erf_number: Optional[str] = None
    local_authority: Optional[str] = None
    project_status: Optional[ProjectStatus] = None
    start_date: Optional[str] = None
    estimated_completion_date: Optional[str] = None
    actual_completion_date: Optional[str] = None
    total_budget: Optional[float] = None
    contingency_percent: Optional[float] = None
    nhbrc_enrolment_number: Optional[str] = None
    building_plan_approval_date: Optional[str] = None
    stand_size: Optional[float] = None
    building_size: Optional[float] = None
    floors: Optional[int] = None
    notes: Optional[str] = None


# ── Timeline ───────────────────────────────────────────────────────────────────

class PhaseTemplate(CamelModel):
    name: str
    description: str = ""
    duration_days: int = Field(ge=1)
    color: str = "#6366f1"


class BuildPhase(CamelModel):
    id: str
    name: str
    description: str = ""
    order: int
    status: PhaseStatus = "not_started"
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    actual_start_date: Optional[date] = None
    actual_end_date: Optional[date] = None
    percent_complete: float = 0
    depends_on: List[str] = Field(default_factory=list)
    color: str = "#6366f1"


class PhaseUpdate(CamelModel):
    # No range checks: the UI clamps percent_complete, this layer does not
    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[PhaseStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    actual_start_date: Optional[date] = None
    actual_end_date: Optional[date] = None
    percent_complete: Optional[float] = None
    depends_on: Optional[List[str]] = None
    color: Optional[str] = None


class Milestone(CamelModel):
    id: str
    phase_id: str
    name: str
    description: str = ""
    target_date: date
    completed_date: Optional[date] = None
    is_completed: bool = False


class MilestoneCreate(CamelModel):
    phase_id: str
    name: str = Field(min_length=1)
    description: str = ""
    target_date: date
    completed_date: Optional[date] = None
    is_completed: bool = False


class TimelineData(CamelModel):
    project_id: str
    phases: List[BuildPhase] = Field(default_factory=list)
    milestones: List[Milestone] = Field(default_factory=list)
    last_updated: str = Field(default_factory=now_iso)
    version: int = 0


class TimelineInitRequest(CamelModel):
    start_date: date
    template: Optional[List[PhaseTemplate]] = None


# ── Costs ──────────────────────────────────────────────────────────────────────

class CostEntry(CamelModel):
    trade_category: str
    budget_amount: float = 0.0
    quoted_amount: float = 0.0
    actual_amount: float = 0.0
    variance: float = 0.0
    variance_percent: float = 0.0


class CostSummary(CamelModel):
    project_id: str
    total_budget: float
    contingency_percent: float
    contingency_amount: float
    budget_incl_contingency: float
    total_quoted: float
    total_actual: float = 0.0
    total_variance: float
    entries_by_trade: List[CostEntry] = Field(default_factory=list)
    last_calculated: str = Field(default_factory=now_iso)


# ── Drawings ───────────────────────────────────────────────────────────────────

class DrawingRevision(CamelModel):
    id: str
    revision_number: str
    file_name: str
    file_size: int
    mime_type: str
    storage_path: str
    uploaded_at: str = Field(default_factory=now_iso)
    notes: str = ""


class Drawing(CamelModel):
    id: str
    project_id: str
    title: str
    drawing_number: str
    category: DrawingCategory
    description: str = ""
    current_revision: str = "—"
    revisions: List[DrawingRevision] = Field(default_factory=list)
    created_at: str = Field(default_factory=now_iso)
    updated_at: str = Field(default_factory=now_iso)


class DrawingCreate(CamelModel):
    title: str = Field(min_length=1)
    drawing_number: str
    category: DrawingCategory
    description: Optional[str] = None


# ── Settings ───────────────────────────────────────────────────────────────────

class AppSettings(CamelModel):
    anthropic_api_key: str = ""
    updated_at: str = Field(default_factory=now_iso)


class MaskedAppSettings(CamelModel):
    anthropic_api_key: str
    has_api_key: bool
    updated_at: str


class SettingsUpdate(CamelModel):
    anthropic_api_key: str
