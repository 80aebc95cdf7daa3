import enum
from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from physiobot.models.base import Base


class AssessmentStatus(str, enum.Enum):
    STARTED = "started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({AssessmentStatus.COMPLETED, AssessmentStatus.ABANDONED})

# Forward-only lifecycle. Terminal statuses have no outgoing edges.
# started may jump straight to completed or abandoned: the dashboard completes
# an assessment whether or not the AI ever sent an action, and a user may quit early.
ALLOWED_TRANSITIONS: dict[AssessmentStatus, frozenset[AssessmentStatus]] = {
    AssessmentStatus.STARTED: frozenset(
        {AssessmentStatus.IN_PROGRESS, AssessmentStatus.COMPLETED, AssessmentStatus.ABANDONED}
    ),
    AssessmentStatus.IN_PROGRESS: frozenset({AssessmentStatus.COMPLETED, AssessmentStatus.ABANDONED}),
    AssessmentStatus.COMPLETED: frozenset(),
    AssessmentStatus.ABANDONED: frozenset(),
}


class Assessment(Base):
    __tablename__ = "assessments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    anatomy_id: Mapped[int] = mapped_column(Integer, nullable=False)
    assessment_type: Mapped[str] = mapped_column(String, nullable=False)

    # "started" | "in_progress" | "completed" | "abandoned"
    status: Mapped[str] = mapped_column(String, nullable=False, default=AssessmentStatus.STARTED.value)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
