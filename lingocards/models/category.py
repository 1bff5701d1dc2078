"""Category model: an ordered, unlockable group of cards within one language."""

from sqlalchemy import Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lingocards.config import settings
from lingocards.models.base import Base, TimestampMixin


class Category(Base, TimestampMixin):
    """An ordered unit of cards; reaching ``required_score`` unlocks the next one."""

    __tablename__ = "categories"
    __table_args__ = (UniqueConstraint("language_id", "order", name="uq_category_language_order"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    language_id: Mapped[int] = mapped_column(ForeignKey("languages.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    required_score: Mapped[float] = mapped_column(
        Float, nullable=False, default=lambda: settings.default_required_score
    )

    language: Mapped["Language"] = relationship(back_populates="categories")  # type: ignore[name-defined] # noqa: F821
    cards: Mapped[list["Card"]] = relationship(  # type: ignore[name-defined] # noqa: F821
        back_populates="category", cascade="all, delete-orphan"
    )
