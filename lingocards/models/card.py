"""Card model pairing a prompt word with its translation inside a category."""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lingocards.models.base import Base, TimestampMixin


class Card(Base, TimestampMixin):
    __tablename__ = "cards"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    word_id: Mapped[int] = mapped_column(ForeignKey("words.id", ondelete="CASCADE"), nullable=False)
    translation_id: Mapped[int] = mapped_column(ForeignKey("words.id", ondelete="CASCADE"), nullable=False)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False, index=True)
    meaning: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    word: Mapped["Word"] = relationship(foreign_keys=[word_id], lazy="selectin")  # type: ignore[name-defined] # noqa: F821
    translation: Mapped["Word"] = relationship(foreign_keys=[translation_id], lazy="selectin")  # type: ignore[name-defined] # noqa: F821
    category: Mapped["Category"] = relationship(back_populates="cards", lazy="selectin")  # type: ignore[name-defined] # noqa: F821
