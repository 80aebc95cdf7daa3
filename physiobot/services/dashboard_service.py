from __future__ import annotations

import enum
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import desc
from sqlalchemy.orm import Session

from physiobot.core.errors import AssessmentError, NotFoundError, StateError
from physiobot.database.session import commit_or_raise, query_or_raise
from physiobot.models.analysis import DashboardAnalysis
from physiobot.models.assessment import AssessmentStatus
from physiobot.models.conversation import CHANNEL_CHAT, CHANNEL_QUESTIONNAIRE
from physiobot.services.ai_gateway import ConversationGateway
from physiobot.services.assessment_service import get_assessment, list_turns, to_response, transition_status
from physiobot.services.rom_service import list_rom_records

logger = logging.getLogger(__name__)


class Step(str, enum.Enum):
    FETCH = "fetch"
    ANALYZE = "analyze"
    PERSIST = "persist"
    COMPLETE = "complete"


STEP_ORDER = (Step.FETCH, Step.ANALYZE, Step.PERSIST, Step.COMPLETE)


@dataclass
class StepResult:
    step: Step
    ok: bool
    error: AssessmentError | None = None


@dataclass
class PipelineResult:
    assessment_id: int
    steps: list[StepResult] = field(default_factory=list)
    dashboard_data: dict[str, Any] | None = None
    analysis: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return len(self.steps) == len(STEP_ORDER) and all(s.ok for s in self.steps)

    @property
    def failed(self) -> StepResult | None:
        return next((s for s in self.steps if not s.ok), None)

    @property
    def error(self) -> AssessmentError | None:
        failed = self.failed
        return failed.error if failed else None

    @property
    def ran(self) -> list[Step]:
        return [s.step for s in self.steps]

    @property
    def skipped(self) -> list[Step]:
        return [s for s in STEP_ORDER if s not in self.ran]


def build_dashboard_data(db: Session, assessment_id: int) -> dict[str, Any]:
    a = get_assessment(db, assessment_id)
    questionnaire = list_turns(db, assessment_id, CHANNEL_QUESTIONNAIRE)
    rom = list_rom_records(db, assessment_id)
    if not questionnaire and not rom:
        raise NotFoundError("no dashboard data found for assessment")

    chat = list_turns(db, assessment_id, CHANNEL_CHAT)
    return {
        "assessment": to_response(a).model_dump(),
        "chat": [{"role": t.role, "content": t.content} for t in chat],
        "questionnaire": [{"role": t.role, "content": t.content, "action": t.action} for t in questionnaire],
        "range_of_motion": [json.loads(r.range_of_motion_json or "{}") for r in rom],
    }


def save_analysis(db: Session, assessment_id: int, dashboard_data: dict[str, Any], analysis: dict[str, Any]) -> None:
    db.add(
        DashboardAnalysis(
            assessment_id=assessment_id,
            dashboard_data_json=json.dumps(dashboard_data),
            analysis_json=json.dumps(analysis),
        )
    )
    commit_or_raise(db, "save AI analysis")


class DashboardPipeline:
    """
    fetch -> analyze -> persist -> complete, strictly in order.
    The first failing step stops the run; nothing already written is undone,
    so re-running the pipeline is how a partial run is recovered.
    """

    def __init__(self, db: Session, gateway: ConversationGateway) -> None:
        self.db = db
        self.gateway = gateway

    def _fetch(self, result: PipelineResult) -> None:
        result.dashboard_data = build_dashboard_data(self.db, result.assessment_id)

    def _analyze(self, result: PipelineResult) -> None:
        result.analysis = self.gateway.request_analysis(result.assessment_id, result.dashboard_data or {})

    def _persist(self, result: PipelineResult) -> None:
        save_analysis(self.db, result.assessment_id, result.dashboard_data or {}, result.analysis or {})

    def _complete(self, result: PipelineResult) -> None:
        transition_status(self.db, result.assessment_id, AssessmentStatus.COMPLETED)

    def _handlers(self) -> dict[Step, Callable[[PipelineResult], None]]:
        return {
            Step.FETCH: self._fetch,
            Step.ANALYZE: self._analyze,
            Step.PERSIST: self._persist,
            Step.COMPLETE: self._complete,
        }

    def run(self, assessment_id: int) -> PipelineResult:
        result = PipelineResult(assessment_id=assessment_id)
        handlers = self._handlers()
        for step in STEP_ORDER:
            try:
                handlers[step](result)
            except AssessmentError as exc:
                logger.warning("Dashboard step %s failed for assessment %s: %s", step.value, assessment_id, exc)
                result.steps.append(StepResult(step=step, ok=False, error=exc))
                break
            result.steps.append(StepResult(step=step, ok=True))
            logger.debug("Dashboard step %s done for assessment %s", step.value, assessment_id)
        return result


def run_dashboard(db: Session, gateway: ConversationGateway, assessment_id: int) -> dict[str, Any]:
    a = get_assessment(db, assessment_id)
    if a.status == AssessmentStatus.ABANDONED.value:
        raise StateError("Assessment is already abandoned")

    result = DashboardPipeline(db, gateway).run(assessment_id)
    if result.error is not None:
        raise result.error
    logger.info("Dashboard analysis completed for assessment %s", assessment_id)
    return result.analysis or {}


def get_saved_analysis(db: Session, assessment_id: int) -> dict[str, Any]:
    get_assessment(db, assessment_id)
    query = (
        db.query(DashboardAnalysis)
        .filter(DashboardAnalysis.assessment_id == assessment_id)
        .order_by(desc(DashboardAnalysis.id))
    )
    row = query_or_raise(db, "load AI analysis", query.first)
    if not row:
        raise NotFoundError("no analysis found for assessment")
    return json.loads(row.analysis_json or "{}")
