from .chat import Chat, ChatMessage, MessageRole
from .report import HealthReport, ReportType
from .user import User
from .vitals import Vitals

__all__ = [
    "Chat",
    "ChatMessage",
    "HealthReport",
    "MessageRole",
    "ReportType",
    "User",
    "Vitals",
]
