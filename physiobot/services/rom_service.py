from __future__ import annotations

import json
import logging
from typing import Any

from sqlalchemy.orm import Session

from physiobot.core.errors import NotFoundError, ValidationError
from physiobot.database.session import commit_or_raise, query_or_raise
from physiobot.models.rom import RomRecord
from physiobot.schemas.rom import RomRecordItem, RomSummaryResponse
from physiobot.services.assessment_service import get_assessment

logger = logging.getLogger(__name__)


def submit_rom(db: Session, assessment_id: int, range_of_motion: dict[str, Any]) -> RomRecord:
    get_assessment(db, assessment_id)
    if not range_of_motion:
        raise ValidationError("rangeOfMotion must not be empty")

    r = RomRecord(assessment_id=assessment_id, range_of_motion_json=json.dumps(range_of_motion))
    db.add(r)
    commit_or_raise(db, "save ROM analysis")
    db.refresh(r)
    logger.info("Stored ROM record %s for assessment %s", r.id, assessment_id)
    return r


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def list_rom_records(db: Session, assessment_id: int) -> list[RomRecord]:
    query = db.query(RomRecord).filter(RomRecord.assessment_id == assessment_id).order_by(RomRecord.id.asc())
    return query_or_raise(db, "load ROM records", query.all)


def build_rom_summary(db: Session, assessment_id: int) -> RomSummaryResponse:
    get_assessment(db, assessment_id)
    rows = list_rom_records(db, assessment_id)
    if not rows:
        raise NotFoundError("no ROM data found for assessment")

    records = [
        RomRecordItem(id=int(r.id), range_of_motion=json.loads(r.range_of_motion_json or "{}"), created_at=r.created_at.isoformat())
        for r in rows
    ]

    # Widest range seen across attempts; non-numeric payloads are skipped.
    minima = [m for m in (_number(rec.range_of_motion.get("minimum")) for rec in records) if m is not None]
    maxima = [m for m in (_number(rec.range_of_motion.get("maximum")) for rec in records) if m is not None]

    return RomSummaryResponse(
        assessment_id=assessment_id,
        count=len(records),
        minimum=min(minima) if minima else None,
        maximum=max(maxima) if maxima else None,
        records=records,
    )
