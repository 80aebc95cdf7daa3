from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AssessmentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId")
    anatomy_id: int = Field(..., alias="anatomyId")
    assessment_type: str = Field(..., alias="assessmentType", max_length=100)


class AssessmentResponse(BaseModel):
    id: int
    user_id: int
    anatomy_id: int
    assessment_type: str
    status: str
    created_at: str


class StatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)


class StatusUpdateResponse(BaseModel):
    id: int
    status: str


class ChatMessage(BaseModel):
    # Client history entries look like {"user": "...", "response": "..."}
    model_config = ConfigDict(extra="allow")

    user: str = ""
    response: str | None = None


class ChatRequest(BaseModel):
    chat_history: list[ChatMessage] = Field(default_factory=list)
    video: str | None = None  # base64 data URL of a short clip

    @property
    def has_video(self) -> bool:
        return bool(self.video and self.video.strip())


class QuestionMessage(BaseModel):
    # Questionnaire entries look like {"user": "...", "assistant": "..."}
    model_config = ConfigDict(extra="allow")

    user: str = ""
    assistant: str | None = None


class QuestionRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    question_history: list[QuestionMessage]


class QuestionnaireTurnItem(BaseModel):
    id: int
    role: str
    content: str
    action: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: str


class QuestionnaireHistoryResponse(BaseModel):
    assessment_id: int
    turns: list[QuestionnaireTurnItem]
