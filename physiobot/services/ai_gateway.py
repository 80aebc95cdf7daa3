from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
from pydantic import ValidationError as PydanticValidationError

from physiobot.core.config import Settings, settings
from physiobot.core.errors import AI_GENERIC_MESSAGE, AI_UNAVAILABLE_MESSAGE, UpstreamError
from physiobot.schemas.ai import AIReply
from physiobot.schemas.assessment import ChatMessage, QuestionMessage

logger = logging.getLogger(__name__)


class ConversationGateway(Protocol):
    """Calls the orchestrator needs from the AI backend."""

    def send_chat(self, assessment_id: int, chat_history: list[ChatMessage]) -> AIReply: ...

    def send_video(self, assessment_id: int, chat_history: list[ChatMessage], video: str) -> AIReply: ...

    def send_questions(
        self, assessment_id: int, question_history: list[QuestionMessage], extra: dict[str, Any] | None = None
    ) -> AIReply: ...

    def request_analysis(self, assessment_id: int, dashboard_data: dict[str, Any]) -> dict[str, Any]: ...


def _history(messages: list[Any]) -> list[dict[str, Any]]:
    return [m.model_dump(exclude_none=True) for m in messages]


class HttpAIGateway:
    """Stateless JSON-over-HTTP client for the AI backend. No retries; callers decide."""

    def __init__(self, config: Settings = settings, transport: httpx.BaseTransport | None = None) -> None:
        self.base_url = config.ai_base_url.rstrip("/")
        self.api_key = config.ai_api_key
        self.timeout = httpx.Timeout(config.ai_timeout_seconds, connect=config.ai_connect_timeout_seconds)
        self._transport = transport

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(f"{self.base_url}{path}", headers=headers, json=payload)
        except httpx.TimeoutException as exc:
            raise UpstreamError(f"AI backend timed out on {path}", AI_UNAVAILABLE_MESSAGE) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"failed to reach AI backend on {path}: {exc}", AI_UNAVAILABLE_MESSAGE) from exc

        if response.status_code >= 400:
            raise UpstreamError(
                f"AI backend returned {response.status_code} on {path}: {response.text[:300]}",
                AI_GENERIC_MESSAGE,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise UpstreamError(f"AI backend sent a non-JSON body on {path}", AI_GENERIC_MESSAGE) from exc

        # The backend wraps results as {"success": ..., "data": {...}}; accept a bare object too.
        data = body.get("data", body) if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise UpstreamError(f"AI backend sent an unexpected payload on {path}", AI_GENERIC_MESSAGE)
        return data

    def _reply(self, path: str, payload: dict[str, Any]) -> AIReply:
        data = self._post(path, payload)
        try:
            return AIReply.model_validate(data)
        except PydanticValidationError as exc:
            raise UpstreamError(f"AI backend reply on {path} did not validate: {exc}", AI_GENERIC_MESSAGE) from exc

    def send_chat(self, assessment_id: int, chat_history: list[ChatMessage]) -> AIReply:
        return self._reply("/chat", {"assessment_id": assessment_id, "chat_history": _history(chat_history)})

    def send_video(self, assessment_id: int, chat_history: list[ChatMessage], video: str) -> AIReply:
        return self._reply(
            "/video",
            {"assessment_id": assessment_id, "chat_history": _history(chat_history), "video": video},
        )

    def send_questions(
        self, assessment_id: int, question_history: list[QuestionMessage], extra: dict[str, Any] | None = None
    ) -> AIReply:
        payload: dict[str, Any] = dict(extra or {})
        payload.update({"assessment_id": assessment_id, "question_history": _history(question_history)})
        return self._reply("/questionnaire", payload)

    def request_analysis(self, assessment_id: int, dashboard_data: dict[str, Any]) -> dict[str, Any]:
        return self._post("/analysis", {"assessment_id": assessment_id, "dashboard_data": dashboard_data})
