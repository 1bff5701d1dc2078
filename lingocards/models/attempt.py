"""Attempt model aggregating one practice session's answers within a category."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lingocards.config import utcnow
from lingocards.models.base import Base, TimestampMixin


class Attempt(Base, TimestampMixin):
    """One practice session; ``attempt_id`` is chosen by the client and unique per user."""

    __tablename__ = "attempts"
    __table_args__ = (
        UniqueConstraint("attempt_id", "user_id", name="uq_attempt_user"),
        CheckConstraint("correct_answers <= total_answers", name="ck_attempt_answers"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    attempt_id: Mapped[str] = mapped_column(String(100), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    language_id: Mapped[int] = mapped_column(ForeignKey("languages.id"), nullable=False)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # flash, test, dictation
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    correct_answers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_answers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    share_token: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    share_token_expires: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    user: Mapped["User"] = relationship(lazy="selectin")  # type: ignore[name-defined] # noqa: F821
    language: Mapped["Language"] = relationship(lazy="selectin")  # type: ignore[name-defined] # noqa: F821
    category: Mapped["Category"] = relationship(lazy="selectin")  # type: ignore[name-defined] # noqa: F821
