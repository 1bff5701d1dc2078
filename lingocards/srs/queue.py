"""Card selection for practice sessions.

Handles which cards a user may see, building review and multiple-choice
decks from unlocked categories, and finding legacy cards due for review.
"""

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import Select, and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from lingocards.config import utcnow
from lingocards.errors import BadRequestError, ForbiddenError, NotFoundError
from lingocards.models.card import Card
from lingocards.models.category import Category
from lingocards.models.language import Language
from lingocards.models.legacy_card import LegacyCard
from lingocards.models.progress import UserProgress
from lingocards.models.user import User
from lingocards.models.word import Word
from lingocards.srs.attempts import new_attempt_id
from lingocards.srs.progress import find_progress

logger = logging.getLogger(__name__)

MAX_DISTRACTORS = 3


@dataclass
class Option:
    text: str
    is_correct: bool


@dataclass
class ChoiceCard:
    """A card presented as a multiple-choice question."""

    card: Card
    options: list[Option] = field(default_factory=list)


@dataclass
class ReviewDeck:
    """Cards for one practice session.

    Only single-category decks carry an attempt id; an attempt scores one
    category, so a deck spanning several has none.
    """

    cards: list[Card] = field(default_factory=list)
    attempt_id: str | None = None

    @property
    def total(self) -> int:
        return len(self.cards)


def visible_cards_stmt(native_language_id: int | None, language_ids: list[int]) -> Select:
    """Cards whose prompt is in the native language and translation in one of ``language_ids``."""
    prompt = aliased(Word)
    translation = aliased(Word)
    return (
        select(Card)
        .join(prompt, Card.word_id == prompt.id)
        .join(translation, Card.translation_id == translation.id)
        .where(
            and_(
                prompt.language_id == native_language_id,
                translation.language_id.in_(language_ids),
            )
        )
    )


async def find_visible_card(
    db: AsyncSession, card_id: int, native_language_id: int | None, language_id: int
) -> Card | None:
    stmt = visible_cards_stmt(native_language_id, [language_id]).where(Card.id == card_id)
    return (await db.execute(stmt)).scalar_one_or_none()


async def list_cards(
    db: AsyncSession,
    user: User,
    *,
    category_id: int | None = None,
    meaning: str | None = None,
    limit: int = 20,
    skip: int = 0,
    include_all: bool = False,
) -> list[Card]:
    """List cards visible to a user; admins see every card."""
    if include_all or user.is_admin:
        stmt = select(Card)
    else:
        stmt = visible_cards_stmt(user.native_language_id, user.learning_language_ids)
    if category_id is not None:
        stmt = stmt.where(Card.category_id == category_id)
    if meaning:
        stmt = stmt.where(Card.meaning.ilike(f"%{meaning}%"))
    stmt = stmt.order_by(Card.id.asc()).offset(skip).limit(limit)
    return list((await db.execute(stmt)).scalars().all())


async def load_learner(db: AsyncSession, user_id: int, language_id: int) -> tuple[User, Language]:
    """Fetch a user and a language they may practise, or raise.

    Checks run in a fixed order: user, learning languages, language, access.
    """
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if not user.learning_languages:
        raise BadRequestError("User must have at least one learning language")

    language = await db.get(Language, language_id)
    if language is None:
        raise NotFoundError("Language not found")
    if not user.can_access_language(language_id):
        logger.warning("User %d denied access to language %d", user_id, language_id)
        raise ForbiddenError("Access to this language is restricted")
    return user, language


async def _check_category_open(
    db: AsyncSession, user_id: int, language_id: int, category_id: int
) -> UserProgress:
    category = await db.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    progress = await find_progress(db, user_id, language_id, category_id)
    if progress is None or not progress.unlocked:
        raise ForbiddenError("Category is locked")
    return progress


async def build_review_deck(
    db: AsyncSession,
    user_id: int,
    language_id: int,
    category_id: int | None = None,
) -> ReviewDeck:
    """Collect the cards of the user's unlocked categories in a language.

    With ``category_id`` the deck is limited to that category, which must be
    unlocked; it gets a fresh attempt id and the category's progress
    ``score`` is reset. Without it the deck has no attempt id.
    """
    user, _ = await load_learner(db, user_id, language_id)
    progress = None
    if category_id is not None:
        progress = await _check_category_open(db, user_id, language_id, category_id)

    unlocked = select(UserProgress.category_id).where(
        and_(
            UserProgress.user_id == user_id,
            UserProgress.language_id == language_id,
            UserProgress.unlocked.is_(True),
        )
    )
    stmt = (
        visible_cards_stmt(user.native_language_id, [language_id])
        .join(Category, Card.category_id == Category.id)
        .where(Card.category_id.in_(unlocked))
        .order_by(Category.order.asc(), Card.id.asc())
    )
    if category_id is not None:
        stmt = stmt.where(Card.category_id == category_id)
    cards = list((await db.execute(stmt)).scalars().all())

    deck = ReviewDeck(cards=cards)
    if progress is not None:
        deck.attempt_id = new_attempt_id()
        progress.score = 0.0
        await db.commit()

    logger.info(
        "Built deck for user %d in language %d: %d cards (attempt %s)",
        user_id,
        language_id,
        deck.total,
        deck.attempt_id,
    )
    return deck


async def build_test_cards(
    db: AsyncSession,
    deck: ReviewDeck,
    language_id: int,
    rng: random.Random | None = None,
) -> list[ChoiceCard]:
    """Turn a deck into multiple-choice questions.

    Each question offers the correct translation plus up to three other
    words of the same language, shuffled.
    """
    rng = rng or random.Random()
    test_cards: list[ChoiceCard] = []
    for card in deck.cards:
        stmt = (
            select(Word.text)
            .where(and_(Word.language_id == language_id, Word.id != card.translation_id))
            .limit(MAX_DISTRACTORS)
        )
        distractors = (await db.execute(stmt)).scalars().all()
        options = [Option(text=card.translation.text, is_correct=True)]
        options.extend(Option(text=text, is_correct=False) for text in distractors)
        rng.shuffle(options)
        test_cards.append(ChoiceCard(card=card, options=options))
    return test_cards


async def due_legacy_cards(
    db: AsyncSession,
    user_id: int,
    now: datetime | None = None,
) -> list[LegacyCard]:
    """Legacy cards whose ``next_review`` has passed, most overdue first."""
    now = now or utcnow()
    stmt = (
        select(LegacyCard)
        .where(and_(LegacyCard.user_id == user_id, LegacyCard.next_review <= now))
        .order_by(LegacyCard.next_review.asc())
    )
    return list((await db.execute(stmt)).scalars().all())
