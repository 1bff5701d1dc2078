"""SQLAlchemy ORM models for the Lingocards database."""

from lingocards.models.attempt import Attempt
from lingocards.models.base import Base
from lingocards.models.card import Card
from lingocards.models.category import Category
from lingocards.models.language import Language
from lingocards.models.legacy_card import LegacyCard
from lingocards.models.progress import UserProgress
from lingocards.models.user import User, user_learning_languages
from lingocards.models.word import Word

__all__ = [
    "Attempt",
    "Base",
    "Card",
    "Category",
    "Language",
    "LegacyCard",
    "User",
    "UserProgress",
    "Word",
    "user_learning_languages",
]
