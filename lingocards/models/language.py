"""Language model and its words."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lingocards.models.base import Base, TimestampMixin


class Language(Base, TimestampMixin):
    __tablename__ = "languages"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(10), unique=True, nullable=False)  # ISO 639-1, e.g. "en"
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    words: Mapped[list["Word"]] = relationship(  # type: ignore[name-defined] # noqa: F821
        back_populates="language", cascade="all, delete-orphan"
    )
    categories: Mapped[list["Category"]] = relationship(  # type: ignore[name-defined] # noqa: F821
        back_populates="language", cascade="all, delete-orphan"
    )
