from fastapi import APIRouter, status

from physiobot.api.deps import DbDep
from physiobot.api.envelope import send_response
from physiobot.schemas.rom import RomSubmission
from physiobot.services.rom_service import build_rom_summary, submit_rom

router = APIRouter()


@router.post("/assessments/{assessment_id}/rom", status_code=status.HTTP_201_CREATED)
def submit(assessment_id: int, payload: RomSubmission, db: DbDep):
    submit_rom(db, assessment_id, payload.range_of_motion)
    return send_response("ROM analysis submitted successfully", status.HTTP_201_CREATED)


@router.get("/assessments/{assessment_id}/rom")
def summary(assessment_id: int, db: DbDep):
    return send_response(build_rom_summary(db, assessment_id))
