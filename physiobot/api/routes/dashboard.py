from fastapi import APIRouter

from physiobot.api.deps import DbDep, GatewayDep
from physiobot.api.envelope import send_response
from physiobot.services.dashboard_service import get_saved_analysis, run_dashboard

router = APIRouter()


@router.get("/assessments/{assessment_id}/dashboard")
def dashboard(assessment_id: int, db: DbDep, gateway: GatewayDep):
    # Runs the full fetch -> analyze -> persist -> complete workflow.
    return send_response(run_dashboard(db, gateway, assessment_id))


@router.get("/assessments/{assessment_id}/dashboardByAssessmentId")
def saved_dashboard(assessment_id: int, db: DbDep):
    return send_response(get_saved_analysis(db, assessment_id))
