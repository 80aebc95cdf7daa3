"""Assessment lifecycle: creation, status transitions and routing of conversation turns.

Status moves forward only: started -> in_progress -> completed | abandoned.
Every status write is a conditional UPDATE on the current status, so two
requests racing on the same assessment cannot regress a terminal status.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from physiobot.core.errors import NotFoundError, PersistenceError, StateError, ValidationError
from physiobot.database.session import commit_or_raise, query_or_raise
from physiobot.models.assessment import ALLOWED_TRANSITIONS, Assessment, AssessmentStatus
from physiobot.models.conversation import (
    CHANNEL_CHAT,
    CHANNEL_QUESTIONNAIRE,
    ROLE_SYSTEM,
    ROLE_USER,
    ConversationTurn,
)
from physiobot.schemas.ai import AIReply
from physiobot.schemas.assessment import (
    AssessmentResponse,
    ChatRequest,
    QuestionMessage,
    QuestionnaireHistoryResponse,
    QuestionnaireTurnItem,
    QuestionRequest,
)
from physiobot.services.ai_gateway import ConversationGateway
from physiobot.services.dedup import dedupe_body_part_turns

logger = logging.getLogger(__name__)


@dataclass
class RouteResult:
    """AI reply for the caller plus any non-fatal problems hit while recording side effects."""

    data: dict[str, Any]
    warnings: list[str] = field(default_factory=list)


def to_response(a: Assessment) -> AssessmentResponse:
    return AssessmentResponse(
        id=int(a.id),
        user_id=int(a.user_id),
        anatomy_id=int(a.anatomy_id),
        assessment_type=a.assessment_type,
        status=a.status,
        created_at=a.created_at.isoformat(),
    )


def create_assessment(db: Session, user_id: int, anatomy_id: int, assessment_type: str) -> Assessment:
    if user_id is None or user_id <= 0:
        raise ValidationError("userId is required")
    if anatomy_id is None or anatomy_id <= 0:
        raise ValidationError("anatomyId is required")
    if not assessment_type or not assessment_type.strip():
        raise ValidationError("assessmentType is required")

    a = Assessment(
        user_id=user_id,
        anatomy_id=anatomy_id,
        assessment_type=assessment_type.strip(),
        status=AssessmentStatus.STARTED.value,
    )
    db.add(a)
    commit_or_raise(db, "create assessment")
    db.refresh(a)
    logger.info("Created assessment %s for user %s (anatomy=%s, type=%s)", a.id, user_id, anatomy_id, a.assessment_type)
    return a


def get_assessment(db: Session, assessment_id: int) -> Assessment:
    a = query_or_raise(db, "load assessment", db.query(Assessment).filter(Assessment.id == assessment_id).first)
    if not a:
        raise NotFoundError("assessment not found")
    return a


def parse_status(value: str) -> AssessmentStatus:
    try:
        return AssessmentStatus(value.strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in AssessmentStatus)
        raise ValidationError(f"Invalid status '{value}'. Expected one of: {allowed}") from None


def ensure_active(a: Assessment) -> None:
    if AssessmentStatus(a.status).is_terminal:
        logger.info("Assessment %s is already %s", a.id, a.status)
        raise StateError(f"Assessment is already {a.status}")


def _compare_and_set(
    db: Session, assessment_id: int, sources: set[AssessmentStatus], target: AssessmentStatus
) -> bool:
    """Write `target` only if the stored status is still one of `sources`. Returns whether a row changed."""
    stmt = (
        update(Assessment)
        .where(Assessment.id == assessment_id, Assessment.status.in_([s.value for s in sources]))
        .values(status=target.value, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    try:
        result = db.execute(stmt)
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceError("Failed to update assessment status") from exc
    commit_or_raise(db, "update assessment status")
    return result.rowcount > 0


def transition_status(db: Session, assessment_id: int, target: AssessmentStatus) -> Assessment:
    a = get_assessment(db, assessment_id)
    current = AssessmentStatus(a.status)
    if current == target:
        return a
    if target not in ALLOWED_TRANSITIONS[current]:
        raise StateError(f"Cannot move assessment from {current.value} to {target.value}")

    sources = {s for s, targets in ALLOWED_TRANSITIONS.items() if target in targets}
    if not _compare_and_set(db, assessment_id, sources, target):
        # Someone else moved it first; re-read to report what happened.
        a = get_assessment(db, assessment_id)
        if a.status == target.value:
            return a
        raise StateError(f"Assessment is already {a.status}")

    logger.info("Assessment %s status %s -> %s", assessment_id, current.value, target.value)
    return get_assessment(db, assessment_id)


def update_status(db: Session, assessment_id: int, value: str) -> Assessment:
    # Existence is checked before the status string so an unknown id is always a 404.
    get_assessment(db, assessment_id)
    return transition_status(db, assessment_id, parse_status(value))


def _advance_on_action(db: Session, assessment_id: int, reply: AIReply) -> list[str]:
    if not reply.has_action:
        return []
    logger.info("AI action for assessment %s: %s", assessment_id, reply.action)
    try:
        moved = _compare_and_set(db, assessment_id, {AssessmentStatus.STARTED}, AssessmentStatus.IN_PROGRESS)
    except PersistenceError as exc:
        logger.warning("Failed to update assessment %s status: %s", assessment_id, exc)
        return [f"status update failed: {exc.message}"]
    if moved:
        logger.info("Assessment %s status started -> in_progress", assessment_id)
    return []


def _record_turns(db: Session, assessment_id: int, channel: str, user_text: str | None, reply: AIReply) -> list[str]:
    if user_text:
        db.add(ConversationTurn(assessment_id=assessment_id, channel=channel, role=ROLE_USER, content=user_text))
    db.add(
        ConversationTurn(
            assessment_id=assessment_id,
            channel=channel,
            role=ROLE_SYSTEM,
            content=reply.text,
            action=reply.action,
            payload_json=json.dumps(reply.as_data()),
        )
    )
    try:
        commit_or_raise(db, f"record {channel} turns")
    except PersistenceError as exc:
        logger.warning("Assessment %s: %s", assessment_id, exc)
        return [f"{channel} history not saved: {exc.message}"]
    return []


def route_chat(db: Session, gateway: ConversationGateway, assessment_id: int, request: ChatRequest) -> RouteResult:
    ensure_active(get_assessment(db, assessment_id))

    if request.has_video:
        # Body-part identification: the clip goes to the video call only and never into stored history.
        logger.info("Received video for body part identification (assessment %s)", assessment_id)
        reply = gateway.send_video(assessment_id, request.chat_history, request.video or "")
        return RouteResult(data=reply.as_data(), warnings=_advance_on_action(db, assessment_id, reply))

    logger.info("Routing chat for assessment %s with %d messages", assessment_id, len(request.chat_history))
    reply = gateway.send_chat(assessment_id, request.chat_history)

    latest = request.chat_history[-1].user if request.chat_history else None
    warnings = _record_turns(db, assessment_id, CHANNEL_CHAT, latest, reply)
    warnings += _advance_on_action(db, assessment_id, reply)
    return RouteResult(data=reply.as_data(), warnings=warnings)


def parse_question_request(body: Any) -> QuestionRequest:
    """Accept either {"question_history": [...], ...} or the {"chat_history": [...]} form the web client sends."""
    if not isinstance(body, dict):
        raise ValidationError("Invalid request payload")
    try:
        return QuestionRequest.model_validate(body)
    except PydanticValidationError:
        pass

    history = body.get("chat_history")
    if not isinstance(history, list):
        raise ValidationError("Invalid request payload")
    extra = {k: v for k, v in body.items() if k != "chat_history"}
    try:
        return QuestionRequest.model_validate(
            {**extra, "question_history": [QuestionMessage.model_validate(m) for m in history]}
        )
    except PydanticValidationError as exc:
        raise ValidationError("Invalid request payload") from exc


def route_questionnaire(
    db: Session, gateway: ConversationGateway, assessment_id: int, request: QuestionRequest
) -> RouteResult:
    ensure_active(get_assessment(db, assessment_id))

    history = dedupe_body_part_turns(request.question_history)
    removed = len(request.question_history) - len(history)
    if removed:
        logger.info("Removed %d duplicate body part message(s) for assessment %s", removed, assessment_id)
    logger.info("Processing questionnaire for assessment %s with %d messages", assessment_id, len(history))

    reply = gateway.send_questions(assessment_id, history, request.model_extra or {})

    latest = history[-1].user if history else None
    warnings = _record_turns(db, assessment_id, CHANNEL_QUESTIONNAIRE, latest, reply)
    warnings += _advance_on_action(db, assessment_id, reply)
    return RouteResult(data=reply.as_data(), warnings=warnings)


def list_turns(db: Session, assessment_id: int, channel: str) -> list[ConversationTurn]:
    query = (
        db.query(ConversationTurn)
        .filter(ConversationTurn.assessment_id == assessment_id, ConversationTurn.channel == channel)
        .order_by(ConversationTurn.id.asc())
    )
    return query_or_raise(db, f"load {channel} turns", query.all)


def build_questionnaire_history(db: Session, assessment_id: int) -> QuestionnaireHistoryResponse:
    get_assessment(db, assessment_id)
    turns = list_turns(db, assessment_id, CHANNEL_QUESTIONNAIRE)
    if not turns:
        raise NotFoundError("no questionnaire data found for assessment")
    return QuestionnaireHistoryResponse(
        assessment_id=assessment_id,
        turns=[
            QuestionnaireTurnItem(
                id=int(t.id),
                role=t.role,
                content=t.content,
                action=t.action,
                payload=json.loads(t.payload_json or "{}"),
                created_at=t.created_at.isoformat(),
            )
            for t in turns
        ],
    )
