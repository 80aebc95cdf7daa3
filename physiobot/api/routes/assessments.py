from typing import Annotated, Any

from fastapi import APIRouter, Body, status

from physiobot.api.deps import DbDep, GatewayDep
from physiobot.api.envelope import send_response
from physiobot.schemas.assessment import AssessmentCreate, ChatRequest, StatusUpdate, StatusUpdateResponse
from physiobot.services.assessment_service import (
    build_questionnaire_history,
    create_assessment,
    get_assessment,
    parse_question_request,
    route_chat,
    route_questionnaire,
    to_response,
    update_status,
)

router = APIRouter()


@router.post("/assessments", status_code=status.HTTP_201_CREATED)
def create(payload: AssessmentCreate, db: DbDep):
    a = create_assessment(db, payload.user_id, payload.anatomy_id, payload.assessment_type)
    return send_response(to_response(a), status.HTTP_201_CREATED)


@router.get("/assessments/{assessment_id}")
def read(assessment_id: int, db: DbDep):
    return send_response(to_response(get_assessment(db, assessment_id)))


@router.post("/assessments/{assessment_id}/chat")
def chat(assessment_id: int, payload: ChatRequest, db: DbDep, gateway: GatewayDep):
    result = route_chat(db, gateway, assessment_id, payload)
    return send_response(result.data)


@router.post("/assessments/{assessment_id}/status")
def set_status(assessment_id: int, payload: StatusUpdate, db: DbDep):
    a = update_status(db, assessment_id, payload.status)
    return send_response(StatusUpdateResponse(id=int(a.id), status=a.status))


@router.post("/assessments/{assessment_id}/questionnaires")
def questionnaire(assessment_id: int, body: Annotated[dict[str, Any], Body()], db: DbDep, gateway: GatewayDep):
    # The body is parsed once here and handed down; both accepted shapes are resolved from it.
    request = parse_question_request(body)
    result = route_questionnaire(db, gateway, assessment_id, request)
    return send_response(result.data)


@router.get("/assessments/{assessment_id}/questionnaires")
def questionnaire_history(assessment_id: int, db: DbDep):
    return send_response(build_questionnaire_history(db, assessment_id))
