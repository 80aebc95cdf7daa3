from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from physiobot.models.base import Base

CHANNEL_CHAT = "chat"
CHANNEL_QUESTIONNAIRE = "questionnaire"

ROLE_USER = "user"
ROLE_SYSTEM = "system"


class ConversationTurn(Base):
    """
    One logged exchange unit for an assessment.
    Rows are only ever appended; video identification turns are never stored.
    """

    __tablename__ = "conversation_turns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    assessment_id: Mapped[int] = mapped_column(Integer, ForeignKey("assessments.id"), index=True, nullable=False)

    channel: Mapped[str] = mapped_column(String, index=True, nullable=False)  # "chat" | "questionnaire"
    role: Mapped[str] = mapped_column(String, nullable=False)  # "user" | "system"
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    action: Mapped[str | None] = mapped_column(String, nullable=True)

    # Full AI reply for system turns (JSON string), so question options survive.
    payload_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
