"""Per-user flashcard with SM-2 scheduling state, independent of categories."""

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from lingocards.config import utcnow
from lingocards.models.base import Base, TimestampMixin


class LegacyCard(Base, TimestampMixin):
    __tablename__ = "legacy_cards"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    word: Mapped[str] = mapped_column(String(500), nullable=False)
    translation: Mapped[str] = mapped_column(String(500), nullable=False)
    category: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    easiness: Mapped[float] = mapped_column(Float, nullable=False, default=2.5)
    interval: Mapped[int] = mapped_column(Integer, nullable=False, default=1)  # days
    repetitions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    next_review: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)
    last_reviewed: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
