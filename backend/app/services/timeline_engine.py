"""
Timeline Generator — lays out construction phases back to back from a start date.

Dates are computed once at initialization. Later phase edits are plain field
merges: nothing is clamped and no dates are pushed to dependent phases.
"""
import logging
import uuid
from datetime import date, timedelta
from typing import List, Optional

from app.models.schemas import (
    BuildPhase,
    Milestone,
    MilestoneCreate,
    PhaseTemplate,
    PhaseUpdate,
    TimelineData,
    now_iso,
)
from app.services.exceptions import NotFoundError

logger = logging.getLogger("buildtrack-timeline")

# Phase fields a client may clear by sending null
_NULLABLE_PHASE_FIELDS = {"start_date", "end_date", "actual_start_date", "actual_end_date"}

# Typical single-storey residential build in South Africa (~9 months)
_PHASE_ROWS = [
    ("Pre-construction", "Plan approval, NHBRC enrolment, contractor appointment", 21, "#8b5cf6"),
    ("Site Preparation", "Site clearing, setting out, temporary services", 10, "#f59e0b"),
    ("Foundations", "Excavation, foundation concrete, DPC, backfill", 18, "#f97316"),
    ("Floor Slab", "Sub-base preparation, reinforcement, concrete pour", 10, "#ef4444"),
    ("Brickwork / Structure", "External walls, internal walls, lintels, ring beam", 35, "#3b82f6"),
    ("Roof Structure", "Roof trusses, roof sheeting/tiles, ridging, fascia", 18, "#14b8a6"),
    ("Plumbing First Fix", "Drainage, water supply rough-in", 10, "#a855f7"),
    ("Electrical First Fix", "Conduit, wiring rough-in, DB box", 10, "#eab308"),
    ("Plastering", "Internal plaster, external plaster/render", 18, "#6366f1"),
    ("Waterproofing", "Wet areas, external walls", 7, "#06b6d4"),
    ("Floor Screeds & Tiling", "Screeds, floor tiling, wall tiling", 18, "#10b981"),
    ("Plumbing Second Fix", "Fixtures, geyser, taps", 7, "#a855f7"),
    ("Electrical Second Fix", "Switches, plugs, light fittings, DB connections", 7, "#eab308"),
    ("Joinery & Carpentry", "Doors, frames, built-in cupboards, skirting", 10, "#92400e"),
    ("Painting", "Internal painting, external painting", 18, "#22c55e"),
    ("External Works", "Driveway, paving, landscaping, boundary wall", 18, "#84cc16"),
    ("Snag List & Handover", "Defect inspection, remedial work, NHBRC inspection, occupancy certificate", 10, "#059669"),
]

SA_BUILD_PHASES_TEMPLATE: List[PhaseTemplate] = [
    PhaseTemplate(name=name, description=description, duration_days=days, color=color)
    for name, description, days, color in _PHASE_ROWS
]


def schedule_phases(start_date: date, template: List[PhaseTemplate]) -> List[BuildPhase]:
    """
    Phase i runs [start, start + duration - 1]; the next phase starts the
    following day. Each phase depends on the one before it.
    """
    phases: List[BuildPhase] = []
    current = start_date
    for index, row in enumerate(template):
        end = current + timedelta(days=row.duration_days - 1)
        phases.append(BuildPhase(
            id=str(uuid.uuid4()),
            name=row.name,
            description=row.description,
            order=index + 1,
            status="not_started",
            start_date=current,
            end_date=end,
            percent_complete=0,
            depends_on=[phases[-1].id] if phases else [],
            color=row.color,
        ))
        current = end + timedelta(days=1)
    return phases


class TimelineEngine:

    def initialize(self, project_id: str, start_date: date,
                   template: Optional[List[PhaseTemplate]] = None) -> TimelineData:
        """Fresh schedule from ``template`` (default: the 17 SA build phases). Replaces any existing timeline."""
        rows = template if template is not None else SA_BUILD_PHASES_TEMPLATE
        phases = schedule_phases(start_date, rows)
        logger.info(
            f"Timeline initialized: {len(phases)} phases from {start_date.isoformat()} "
            f"to {phases[-1].end_date.isoformat() if phases else start_date.isoformat()}",
            extra={"project_id": project_id},
        )
        return TimelineData(project_id=project_id, phases=phases, milestones=[])

    def update_phase(self, timeline: TimelineData, phase_id: str, updates: PhaseUpdate) -> TimelineData:
        changes = {
            k: v for k, v in updates.model_dump(exclude_unset=True).items()
            if v is not None or k in _NULLABLE_PHASE_FIELDS
        }
        phases = list(timeline.phases)
        for idx, phase in enumerate(phases):
            if phase.id == phase_id:
                phases[idx] = phase.model_copy(update=changes)
                break
        else:
            raise NotFoundError("Phase", phase_id)
        return timeline.model_copy(update={"phases": phases, "last_updated": now_iso()})

    def add_milestone(self, timeline: TimelineData, milestone: MilestoneCreate) -> TimelineData:
        new_milestone = Milestone(id=str(uuid.uuid4()), **milestone.model_dump())
        return timeline.model_copy(update={
            "milestones": list(timeline.milestones) + [new_milestone],
            "last_updated": now_iso(),
        })
