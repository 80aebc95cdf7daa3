"""Tests for the dashboard completion pipeline (fetch -> analyze -> persist -> complete)."""

from __future__ import annotations

import pytest

from physiobot.core.errors import NotFoundError, PersistenceError, StateError, UpstreamError
from physiobot.models.analysis import DashboardAnalysis
from physiobot.models.rom import RomRecord
from physiobot.schemas.assessment import QuestionMessage, QuestionRequest
from physiobot.services import dashboard_service
from physiobot.services.assessment_service import create_assessment, get_assessment, route_questionnaire, update_status
from physiobot.services.dashboard_service import (
    DashboardPipeline,
    Step,
    build_dashboard_data,
    get_saved_analysis,
    run_dashboard,
)
from physiobot.services.rom_service import submit_rom


@pytest.fixture
def assessment(db):
    return create_assessment(db, user_id=1, anatomy_id=2, assessment_type="knee")


@pytest.fixture
def ready(db, gateway, assessment):
    """An assessment with questionnaire turns and one ROM record."""
    route_questionnaire(db, gateway, assessment.id, QuestionRequest(question_history=[QuestionMessage(user="Two weeks")]))
    submit_rom(db, assessment.id, {"minimum": 10, "maximum": 95})
    gateway.calls.clear()
    return assessment


def _analysis_rows(db) -> int:
    return db.query(DashboardAnalysis).count()


class TestDashboardData:
    def test_collects_questionnaire_and_rom(self, db, ready):
        data = build_dashboard_data(db, ready.id)
        assert data["assessment"]["id"] == ready.id
        assert [t["role"] for t in data["questionnaire"]] == ["user", "system"]
        assert data["range_of_motion"] == [{"minimum": 10, "maximum": 95}]
        assert data["chat"] == []

    def test_rom_alone_is_enough(self, db, assessment):
        submit_rom(db, assessment.id, {"minimum": 0, "maximum": 40})
        assert build_dashboard_data(db, assessment.id)["questionnaire"] == []

    def test_nothing_accumulated(self, db, assessment):
        with pytest.raises(NotFoundError):
            build_dashboard_data(db, assessment.id)


class TestPipeline:
    def test_success_runs_every_step_and_completes(self, db, gateway, ready):
        result = DashboardPipeline(db, gateway).run(ready.id)

        assert result.ok
        assert result.ran == [Step.FETCH, Step.ANALYZE, Step.PERSIST, Step.COMPLETE]
        assert result.skipped == []
        assert result.analysis == gateway.analysis
        assert _analysis_rows(db) == 1
        assert get_assessment(db, ready.id).status == "completed"

    def test_fetch_failure_writes_nothing(self, db, gateway, assessment):
        result = DashboardPipeline(db, gateway).run(assessment.id)

        assert not result.ok
        assert result.failed.step == Step.FETCH
        assert isinstance(result.error, NotFoundError)
        assert result.skipped == [Step.ANALYZE, Step.PERSIST, Step.COMPLETE]
        assert gateway.calls == []
        assert _analysis_rows(db) == 0
        assert get_assessment(db, assessment.id).status == "started"

    def test_store_read_failure_is_reported_as_fetch_step(self, db, engine, gateway, ready):
        RomRecord.__table__.drop(bind=engine)
        result = DashboardPipeline(db, gateway).run(ready.id)

        assert result.ran == [Step.FETCH]
        assert isinstance(result.error, PersistenceError)
        assert result.skipped == [Step.ANALYZE, Step.PERSIST, Step.COMPLETE]
        assert gateway.calls == []
        assert get_assessment(db, ready.id).status == "started"

    def test_analysis_failure_halts_before_persist(self, db, gateway, ready):
        gateway.failures["request_analysis"] = UpstreamError("model down")
        result = DashboardPipeline(db, gateway).run(ready.id)

        assert result.failed.step == Step.ANALYZE
        assert result.skipped == [Step.PERSIST, Step.COMPLETE]
        assert _analysis_rows(db) == 0
        assert get_assessment(db, ready.id).status == "started"

    def test_persist_failure_leaves_status_unchanged(self, db, gateway, ready, monkeypatch):
        def _broken(*args, **kwargs):
            raise PersistenceError("Failed to save AI analysis")

        monkeypatch.setattr(dashboard_service, "save_analysis", _broken)
        result = DashboardPipeline(db, gateway).run(ready.id)

        assert result.failed.step == Step.PERSIST
        assert result.skipped == [Step.COMPLETE]
        assert len(gateway.called("request_analysis")) == 1
        assert get_assessment(db, ready.id).status == "started"

    def test_complete_failure_keeps_saved_analysis(self, db, gateway, ready, monkeypatch):
        def _broken(*args, **kwargs):
            raise PersistenceError("Failed to update assessment status")

        monkeypatch.setattr(dashboard_service, "transition_status", _broken)
        result = DashboardPipeline(db, gateway).run(ready.id)

        assert result.failed.step == Step.COMPLETE
        assert _analysis_rows(db) == 1
        assert get_assessment(db, ready.id).status == "started"


class TestRunDashboard:
    def test_returns_analysis_and_serves_it_afterwards(self, db, gateway, ready):
        analysis = run_dashboard(db, gateway, ready.id)
        assert analysis == gateway.analysis

        gateway.calls.clear()
        assert get_saved_analysis(db, ready.id) == analysis
        assert gateway.calls == []

    def test_error_of_failed_step_is_raised(self, db, gateway, ready):
        gateway.failures["request_analysis"] = UpstreamError("model down")
        with pytest.raises(UpstreamError):
            run_dashboard(db, gateway, ready.id)

    def test_rerun_after_completion_is_idempotent(self, db, gateway, ready):
        run_dashboard(db, gateway, ready.id)
        gateway.analysis = {"summary": "second pass"}
        assert run_dashboard(db, gateway, ready.id) == {"summary": "second pass"}
        assert get_assessment(db, ready.id).status == "completed"
        assert get_saved_analysis(db, ready.id) == {"summary": "second pass"}

    def test_rerun_recovers_from_failed_completion(self, db, gateway, ready, monkeypatch):
        original = dashboard_service.transition_status

        def _broken(*args, **kwargs):
            raise PersistenceError("Failed to update assessment status")

        monkeypatch.setattr(dashboard_service, "transition_status", _broken)
        with pytest.raises(PersistenceError):
            run_dashboard(db, gateway, ready.id)

        monkeypatch.setattr(dashboard_service, "transition_status", original)
        run_dashboard(db, gateway, ready.id)
        assert get_assessment(db, ready.id).status == "completed"

    def test_abandoned_assessment_is_rejected_up_front(self, db, gateway, ready):
        update_status(db, ready.id, "abandoned")
        with pytest.raises(StateError):
            run_dashboard(db, gateway, ready.id)
        assert gateway.calls == []
        assert _analysis_rows(db) == 0

    def test_unknown_assessment(self, db, gateway):
        with pytest.raises(NotFoundError):
            run_dashboard(db, gateway, 77)

    def test_saved_analysis_missing(self, db, assessment):
        with pytest.raises(NotFoundError):
            get_saved_analysis(db, assessment.id)
