"""Domain errors raised by the assessment services.

Each error carries the HTTP status it maps to and the message shown to the
client. The app-level exception handlers in ``physiobot.main`` turn them into
the ``{success, data, error}`` envelope.
"""

from __future__ import annotations

from fastapi import status


class AssessmentError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def user_message(self) -> str:
        return self.message


class ValidationError(AssessmentError):
    """Malformed or missing input."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AssessmentError):
    """Unknown assessment or resource."""

    status_code = status.HTTP_404_NOT_FOUND


class StateError(AssessmentError):
    """Operation attempted on an assessment whose status does not allow it."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(AssessmentError):
    status_code = status.HTTP_401_UNAUTHORIZED


class PersistenceError(AssessmentError):
    """Store write or read failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


AI_UNAVAILABLE_MESSAGE = "AI service is temporarily unavailable. Please try again in a moment."
AI_GENERIC_MESSAGE = "Error processing your request. Please try again."


class UpstreamError(AssessmentError):
    """AI gateway failure.

    ``message`` is the internal description (logged); ``user_message`` is what
    the client sees.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, user_message: str = AI_GENERIC_MESSAGE) -> None:
        super().__init__(message)
        self._user_message = user_message

    @property
    def user_message(self) -> str:
        return self._user_message
