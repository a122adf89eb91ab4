"""
Standard residential bill-of-materials template (NHBRC-style, South Africa).

Rates are indicative 2025 ZAR estimates for a ~150 m² single-storey house
and are meant to be edited per project.
"""
from typing import List, NamedTuple


class BOMTemplateItem(NamedTuple):
    category: str
    item_number: str
    description: str
    unit: str
    default_quantity: float
    estimated_rate: float


_ROWS = [
    ("preliminaries", "P-001", "Building plan approval fees", "item", 1, 15000),
    ("preliminaries", "P-002", "NHBRC enrolment fee", "item", 1, 8500),
    ("preliminaries", "P-003", "Site establishment and temporary services", "item", 1, 25000),
    ("preliminaries", "P-004", "Builder's all-risk insurance", "item", 1, 12000),
    ("preliminaries", "P-005", "Health and safety file", "item", 1, 5000),
    ("preliminaries", "P-006", "Setting out by surveyor", "item", 1, 8000),
    ("preliminaries", "P-007", "Temporary fencing and site security", "item", 1, 15000),
    ("foundations", "F-001", "Excavation for strip foundations", "m3", 35, 350),
    ("foundations", "F-002", "Anti-termite treatment to foundation", "m2", 150, 45),
    ("foundations", "F-003", "Concrete strip foundations (25 MPa)", "m3", 18, 2800),
    ("foundations", "F-004", "Steel reinforcement to foundations", "kg", 800, 22),
    ("foundations", "F-005", "Damp proof course (DPC) 375mm wide", "m", 80, 65),
    ("foundations", "F-006", "Formwork to foundations", "m2", 40, 180),
    ("foundations", "F-007", "Backfill and compaction", "m3", 20, 280),
    ("foundations", "F-008", "Surface bed concrete (25 MPa) 100mm thick", "m2", 150, 320),
    ("foundations", "F-009", "Damp proof membrane under surface bed", "m2", 150, 35),
    ("structural", "S-001", "External walls - 230mm brick", "m2", 180, 650),
    ("structural", "S-002", "Internal walls - 115mm brick", "m2", 120, 380),
    ("structural", "S-003", "Precast concrete lintels", "m", 40, 450),
    ("structural", "S-004", "Reinforced concrete ring beam", "m", 80, 380),
    ("structural", "S-005", "Concrete columns 230x230mm", "m", 12, 1200),
    ("structural", "S-006", "Steel reinforcement to structural elements", "kg", 1200, 22),
    ("structural", "S-007", "Expansion joints", "m", 8, 250),
    ("roofing", "R-001", "Roof trusses (engineered timber)", "m2", 170, 380),
    ("roofing", "R-002", "Concrete roof tiles", "m2", 170, 220),
    ("roofing", "R-003", "Ridging tiles", "m", 15, 280),
    ("roofing", "R-004", "Fascia boards (fibre cement)", "m", 50, 180),
    ("roofing", "R-005", "Barge boards", "m", 20, 200),
    ("roofing", "R-006", "Gutters and downpipes (PVC)", "m", 40, 150),
    ("roofing", "R-007", "Waterproofing membrane under tiles", "m2", 170, 45),
    ("roofing", "R-008", "Roof insulation (135mm Think Pink)", "m2", 150, 95),
    ("plumbing", "PL-001", "Water supply pipework (complete)", "item", 1, 18000),
    ("plumbing", "PL-002", "Drainage pipework (110mm PVC)", "m", 30, 350),
    ("plumbing", "PL-003", "Geyser 200L (installed)", "no", 1, 12000),
    ("plumbing", "PL-004", "Toilet suite (complete)", "no", 3, 4500),
    ("plumbing", "PL-005", "Basin with mixer tap", "no", 3, 3500),
    ("plumbing", "PL-006", "Bath (acrylic, installed)", "no", 2, 5500),
    ("plumbing", "PL-007", "Shower complete with mixer", "no", 2, 6000),
    ("plumbing", "PL-008", "Kitchen sink (stainless steel, double bowl)", "no", 1, 4000),
    ("plumbing", "PL-009", "Solar geyser provision (pipework only)", "item", 1, 8000),
    ("electrical", "E-001", "Distribution board (complete)", "no", 1, 8500),
    ("electrical", "E-002", "Circuit breakers and earth leakage", "item", 1, 4500),
    ("electrical", "E-003", "Power points (double socket)", "no", 25, 850),
    ("electrical", "E-004", "Light points (ceiling)", "no", 20, 650),
    ("electrical", "E-005", "Geyser element circuit", "item", 1, 3500),
    ("electrical", "E-006", "Stove connection point", "no", 1, 3000),
    ("electrical", "E-007", "Prepaid meter provision", "item", 1, 5000),
    ("electrical", "E-008", "TV points", "no", 4, 550),
    ("electrical", "E-009", "Data/network points (CAT6)", "no", 4, 750),
    ("electrical", "E-010", "Outdoor light points", "no", 6, 750),
    ("finishes_internal", "FI-001", "Internal wall plastering", "m2", 350, 85),
    ("finishes_internal", "FI-002", "Ceiling plastering (skim coat)", "m2", 150, 75),
    ("finishes_internal", "FI-003", "Floor screed (40mm)", "m2", 150, 95),
    ("finishes_internal", "FI-004", "Floor tiling (ceramic)", "m2", 120, 450),
    ("finishes_internal", "FI-005", "Wall tiling (bathroom/kitchen)", "m2", 50, 480),
    ("finishes_internal", "FI-006", "Internal painting (PVA, 2 coats)", "m2", 450, 45),
    ("finishes_internal", "FI-007", "Enamel paint to doors and frames", "no", 12, 650),
    ("finishes_internal", "FI-008", "Internal doors (hollow core, hung)", "no", 10, 2800),
    ("finishes_internal", "FI-009", "Built-in cupboards (bedroom)", "m", 8, 4500),
    ("finishes_internal", "FI-010", "Kitchen cupboards and countertops", "item", 1, 65000),
    ("finishes_internal", "FI-011", "Skirting (pine, painted)", "m", 100, 85),
    ("finishes_external", "FE-001", "External wall plastering", "m2", 200, 95),
    ("finishes_external", "FE-002", "External painting (acrylic, 2 coats)", "m2", 200, 55),
    ("finishes_external", "FE-003", "Aluminium window frames (installed)", "m2", 25, 2800),
    ("finishes_external", "FE-004", "External doors (solid, hung)", "no", 3, 6500),
    ("finishes_external", "FE-005", "Garage door (sectional, automated)", "no", 1, 18000),
    ("finishes_external", "FE-006", "Waterproofing to external walls", "m2", 200, 65),
    ("external_works", "EW-001", "Driveway (concrete paving)", "m2", 40, 450),
    ("external_works", "EW-002", "Pathways and paving", "m2", 30, 380),
    ("external_works", "EW-003", "Stormwater drainage", "m", 20, 450),
    ("external_works", "EW-004", "Boundary wall (1.8m brick)", "m", 60, 2200),
    ("external_works", "EW-005", "Palisade fencing", "m", 30, 1200),
    ("external_works", "EW-006", "Gate (sliding, automated)", "no", 1, 25000),
    ("external_works", "EW-007", "Landscaping and topsoil", "item", 1, 20000),
    ("provisional_sums", "PS-001", "Unforeseen ground conditions", "prov", 1, 30000),
    ("provisional_sums", "PS-002", "Municipal water connection", "prov", 1, 15000),
    ("provisional_sums", "PS-003", "Municipal sewer connection", "prov", 1, 12000),
    ("provisional_sums", "PS-004", "Electricity connection (Eskom/Municipality)", "prov", 1, 25000),
    ("provisional_sums", "PS-005", "Occupancy certificate fees", "prov", 1, 5000),
    ("provisional_sums", "PS-006", "Professional fees (engineer, architect)", "prov", 1, 80000),
]

NHBRC_BOM_TEMPLATE: List[BOMTemplateItem] = [BOMTemplateItem(*row) for row in _ROWS]
