from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from physiobot.models.base import Base


class DashboardAnalysis(Base):
    """
    Final AI analysis of an assessment, stored next to the dashboard data it was computed from.
    Re-running the dashboard workflow appends a new row; the latest one is served.
    """

    __tablename__ = "dashboard_analyses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    assessment_id: Mapped[int] = mapped_column(Integer, ForeignKey("assessments.id"), index=True, nullable=False)

    dashboard_data_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    analysis_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
