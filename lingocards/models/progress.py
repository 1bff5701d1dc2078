"""Per-user progress ledger for each category of a language."""

from sqlalchemy import Boolean, Float, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lingocards.models.base import Base, TimestampMixin


class UserProgress(Base, TimestampMixin):
    """Per user, language and category ledger; ``max_score`` never decreases."""

    __tablename__ = "user_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "language_id", "category_id", name="uq_progress_user_language_category"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    language_id: Mapped[int] = mapped_column(ForeignKey("languages.id"), nullable=False)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False)
    total_cards: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)  # latest attempt's score
    max_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    unlocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    category: Mapped["Category"] = relationship(lazy="selectin")  # type: ignore[name-defined] # noqa: F821
