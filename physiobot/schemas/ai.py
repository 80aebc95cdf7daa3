from typing import Any

from pydantic import BaseModel, ConfigDict


class AIReply(BaseModel):
    """
    Reply from the AI conversation backend.
    `action` is the signal used to advance the assessment (e.g. "next_api", "rom_api", "dashboard_api").
    Anything else the backend sends (options, body part, ...) is kept as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    response: str | None = None
    question: str | None = None
    action: str | None = None
    options: Any = None

    @property
    def has_action(self) -> bool:
        return bool(self.action)

    @property
    def text(self) -> str:
        return self.question or self.response or ""

    def as_data(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
