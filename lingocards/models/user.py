"""User model and its learning-language association table."""

from sqlalchemy import Column, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lingocards.models.base import Base, TimestampMixin

user_learning_languages = Table(
    "user_learning_languages",
    Base.metadata,
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("language_id", ForeignKey("languages.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")  # user, admin
    native_language_id: Mapped[int | None] = mapped_column(
        ForeignKey("languages.id", ondelete="SET NULL"), nullable=True
    )

    native_language: Mapped["Language"] = relationship(lazy="selectin")  # type: ignore[name-defined] # noqa: F821
    learning_languages: Mapped[list["Language"]] = relationship(  # type: ignore[name-defined] # noqa: F821
        secondary=user_learning_languages, lazy="selectin"
    )

    @property
    def learning_language_ids(self) -> list[int]:
        return [language.id for language in self.learning_languages]

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def can_access_language(self, language_id: int) -> bool:
        """Native and learning languages are the only ones a user may practise."""
        return language_id == self.native_language_id or language_id in self.learning_language_ids
