import datetime as dt
from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


REMINDER_STATUS_SENT = "sent"
REMINDER_STATUS_FAILED = "failed"


class ReminderLog(Base):
    __tablename__ = "reminder_logs"
    __table_args__ = (
        UniqueConstraint("user_id", "friend_id", "remind_for_date", name="uq_reminder_logs_user_friend_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    friend_id: Mapped[int] = mapped_column(ForeignKey("friends.id", ondelete="CASCADE"), index=True)
    remind_for_date: Mapped[dt.date] = mapped_column(Date)

    status: Mapped[str] = mapped_column(String(16), default=REMINDER_STATUS_SENT)
    error_message: Mapped[str | None] = mapped_column(String(400), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=lambda: dt.datetime.utcnow())

    user = relationship("User", back_populates="reminder_logs")
    friend = relationship("Friend", back_populates="reminder_logs")
