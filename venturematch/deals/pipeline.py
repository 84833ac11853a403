"""
Deal Pipeline Service.

Tracks each investor's position with a founder, from first interest to close.
"""

import logging
from datetime import datetime
from typing import Dict, Any, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from venturematch.core.errors import ConflictError, is_unique_violation
from venturematch.core.models import PipelineEntry, FounderProfile, Company, User

logger = logging.getLogger(__name__)

# Valid pipeline stages
PIPELINE_STAGES = [
    "interested",
    "contacted",
    "meeting",
    "due_diligence",
    "term_sheet",
    "closed",
    "passed",
]

CLOSED_STAGES = {"closed", "passed"}


def _validate_stage(stage: str) -> None:
    if stage not in PIPELINE_STAGES:
        raise ValueError(f"Invalid stage. Must be one of: {PIPELINE_STAGES}")


class DealPipeline:
    """Investor deal pipeline service."""

    def __init__(self, db: Session):
        self.db = db

    def _find(self, investor_id: int, founder_id: int) -> Optional[PipelineEntry]:
        return (
            self.db.query(PipelineEntry)
            .filter(
                PipelineEntry.investor_id == investor_id,
                PipelineEntry.founder_id == founder_id,
            )
            .first()
        )

    def create_entry(
        self, investor_id: int, founder_id: int, stage: str = "interested", notes: Optional[str] = None
    ) -> Dict[str, Any]:
        """Add a founder to the investor's pipeline."""
        _validate_stage(stage)

        founder = self.db.get(User, founder_id)
        if not founder:
            raise LookupError(f"Founder {founder_id} not found")

        now = datetime.utcnow()
        entry = PipelineEntry(
            investor_id=investor_id,
            founder_id=founder_id,
            stage=stage,
            status="closed" if stage in CLOSED_STAGES else "active",
            notes=notes,
            created_at=now,
            last_activity=now,
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if is_unique_violation(e):
                raise ConflictError("This founder is already in your pipeline")
            raise

        logger.info(f"Investor {investor_id} added founder {founder_id} at stage {stage}")
        return self._entry_to_dict(entry)

    def update_stage(
        self, investor_id: int, founder_id: int, stage: str, notes: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """Move an entry to a new stage. Returns None when the pair is not tracked."""
        _validate_stage(stage)

        entry = self._find(investor_id, founder_id)
        if not entry:
            return None

        entry.stage = stage
        entry.status = "closed" if stage in CLOSED_STAGES else "active"
        if notes is not None:
            entry.notes = notes
        entry.last_activity = datetime.utcnow()
        self.db.commit()
        return self._entry_to_dict(entry)

    def get_entry(self, investor_id: int, founder_id: int) -> Optional[Dict[str, Any]]:
        entry = self._find(investor_id, founder_id)
        return self._entry_to_dict(entry) if entry else None

    def get_dashboard(self, investor_id: int, recent_limit: int = 10) -> Dict[str, Any]:
        """Stage counts plus the most recently touched entries."""
        stage_rows = (
            self.db.query(PipelineEntry.stage, func.count(PipelineEntry.id))
            .filter(PipelineEntry.investor_id == investor_id)
            .group_by(PipelineEntry.stage)
            .all()
        )
        by_stage = {stage: 0 for stage in PIPELINE_STAGES}
        by_stage.update({stage: count for stage, count in stage_rows})

        total = sum(by_stage.values())
        active = sum(c for s, c in by_stage.items() if s not in CLOSED_STAGES)

        recent = (
            self.db.query(PipelineEntry, Company.company_name)
            .outerjoin(FounderProfile, FounderProfile.id == PipelineEntry.founder_id)
            .outerjoin(Company, Company.id == FounderProfile.active_company_id)
            .filter(PipelineEntry.investor_id == investor_id)
            .order_by(PipelineEntry.last_activity.desc(), PipelineEntry.id.desc())
            .limit(recent_limit)
            .all()
        )

        entries: List[Dict[str, Any]] = []
        for entry, company_name in recent:
            item = self._entry_to_dict(entry)
            item["company_name"] = company_name
            entries.append(item)

        return {
            "total": total,
            "active": active,
            "closed": total - active,
            "by_stage": by_stage,
            "recent": entries,
        }

    def _entry_to_dict(self, entry: PipelineEntry) -> Dict[str, Any]:
        return {
            "id": entry.id,
            "investor_id": entry.investor_id,
            "founder_id": entry.founder_id,
            "stage": entry.stage,
            "status": entry.status,
            "notes": entry.notes,
            "created_at": entry.created_at.isoformat() if entry.created_at else None,
            "last_activity": entry.last_activity.isoformat() if entry.last_activity else None,
        }
