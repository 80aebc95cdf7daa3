"""Shared fixtures: in-memory database, fake AI gateway and an HTTP test client."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from physiobot.api.deps import get_db, get_gateway
from physiobot.main import app
from physiobot.models import Base
from physiobot.schemas.ai import AIReply


class FakeGateway:
    """Stands in for the AI backend; records every call and can be told to fail."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.failures: dict[str, Exception] = {}
        self.chat_reply = AIReply(response="Can you tell me where it hurts?")
        self.video_reply = AIReply(response="lower back identified as body part", action="next_api")
        self.question_reply = AIReply(question="How long have you had this pain?", options=["days", "weeks"])
        self.analysis: dict[str, Any] = {"summary": "Mild lumbar strain", "recovery_score": 72}

    def _record(self, name: str, **kwargs: Any) -> None:
        self.calls.append((name, kwargs))
        if name in self.failures:
            raise self.failures[name]

    def called(self, name: str) -> list[dict[str, Any]]:
        return [kwargs for call, kwargs in self.calls if call == name]

    def send_chat(self, assessment_id, chat_history):
        self._record("send_chat", assessment_id=assessment_id, chat_history=chat_history)
        return self.chat_reply

    def send_video(self, assessment_id, chat_history, video):
        self._record("send_video", assessment_id=assessment_id, chat_history=chat_history, video=video)
        return self.video_reply

    def send_questions(self, assessment_id, question_history, extra=None):
        self._record("send_questions", assessment_id=assessment_id, question_history=question_history, extra=extra)
        return self.question_reply

    def request_analysis(self, assessment_id, dashboard_data):
        self._record("request_analysis", assessment_id=assessment_id, dashboard_data=dashboard_data)
        return dict(self.analysis)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def client(session_factory, gateway):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()
