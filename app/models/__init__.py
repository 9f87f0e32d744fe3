from .base import Base
from .user import User
from .friend import Friend
from .reminder_log import ReminderLog

__all__ = [
    "Base",
    "User",
    "Friend",
    "ReminderLog",
]
