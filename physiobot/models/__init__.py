from physiobot.models.analysis import DashboardAnalysis
from physiobot.models.assessment import Assessment, AssessmentStatus
from physiobot.models.base import Base
from physiobot.models.conversation import ConversationTurn
from physiobot.models.rom import RomRecord
from physiobot.models.user import User

__all__ = [
    "Assessment",
    "AssessmentStatus",
    "Base",
    "ConversationTurn",
    "DashboardAnalysis",
    "RomRecord",
    "User",
]
