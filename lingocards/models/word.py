"""Word model: a single vocabulary entry in one language."""

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lingocards.models.base import Base, TimestampMixin


class Word(Base, TimestampMixin):
    __tablename__ = "words"
    __table_args__ = (UniqueConstraint("text", "language_id", name="uq_word_text_language"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    text: Mapped[str] = mapped_column(String(500), nullable=False)
    language_id: Mapped[int] = mapped_column(ForeignKey("languages.id"), nullable=False, index=True)

    language: Mapped["Language"] = relationship(back_populates="words")  # type: ignore[name-defined] # noqa: F821
