"""Progress ledger and unlock propagation.

Every (user, language, category) has at most one ``UserProgress`` row. Its
``max_score`` is the best attempt score reached in that category and only
ever grows. Categories of a language form a linear chain by ``order``: the
first one is open from the start and each next one opens once ``max_score``
in the current one reaches the current category's ``required_score``.
"""

import logging

from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lingocards.models.card import Card
from lingocards.models.category import Category
from lingocards.models.progress import UserProgress
from lingocards.models.word import Word

logger = logging.getLogger(__name__)

FIRST_ORDER = 1


async def count_category_cards(db: AsyncSession, category_id: int, language_id: int) -> int:
    """Count the cards of a category whose translation is in ``language_id``."""
    stmt = (
        select(func.count(Card.id))
        .join(Word, Card.translation_id == Word.id)
        .where(and_(Card.category_id == category_id, Word.language_id == language_id))
    )
    return (await db.execute(stmt)).scalar() or 0


async def find_progress(
    db: AsyncSession, user_id: int, language_id: int, category_id: int
) -> UserProgress | None:
    stmt = select(UserProgress).where(
        and_(
            UserProgress.user_id == user_id,
            UserProgress.language_id == language_id,
            UserProgress.category_id == category_id,
        )
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def _create_progress(
    db: AsyncSession,
    user_id: int,
    language_id: int,
    category_id: int,
    *,
    score: float,
    unlocked: bool,
) -> UserProgress:
    progress = UserProgress(
        user_id=user_id,
        language_id=language_id,
        category_id=category_id,
        total_cards=await count_category_cards(db, category_id, language_id),
        score=score,
        max_score=score,
        unlocked=unlocked,
    )
    db.add(progress)
    await db.flush()
    return progress


async def record_progress(
    db: AsyncSession,
    *,
    user_id: int,
    language_id: int,
    category: Category,
    score: float,
) -> UserProgress:
    """Fold an attempt's cumulative score into the category's progress.

    Creates the row on first use, open only for the first category of the
    chain. On later calls ``max_score`` is raised with a conditional update,
    so a lower score (or a racing writer) can never lower it. Does not commit.
    """
    progress = await find_progress(db, user_id, language_id, category.id)
    if progress is None:
        progress = await _create_progress(
            db,
            user_id,
            language_id,
            category.id,
            score=score,
            unlocked=category.order == FIRST_ORDER,
        )
        logger.info(
            "Created progress for user %d in category %d (unlocked=%s)",
            user_id,
            category.id,
            progress.unlocked,
        )
        return progress

    await db.execute(
        update(UserProgress)
        .where(UserProgress.id == progress.id)
        .values(score=score)
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        update(UserProgress)
        .where(and_(UserProgress.id == progress.id, UserProgress.max_score < score))
        .values(max_score=score)
        .execution_options(synchronize_session=False)
    )
    await db.refresh(progress, ["score", "max_score"])
    return progress


async def next_category(db: AsyncSession, category: Category) -> Category | None:
    stmt = select(Category).where(
        and_(Category.language_id == category.language_id, Category.order == category.order + 1)
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def _unlock(
    db: AsyncSession, user_id: int, language_id: int, category_id: int
) -> UserProgress:
    progress = await find_progress(db, user_id, language_id, category_id)
    if progress is None:
        progress = await _create_progress(db, user_id, language_id, category_id, score=0.0, unlocked=True)
    elif not progress.unlocked:
        await db.execute(
            update(UserProgress)
            .where(UserProgress.id == progress.id)
            .values(unlocked=True)
            .execution_options(synchronize_session=False)
        )
        await db.refresh(progress, ["unlocked"])
    else:
        return progress

    logger.info("Unlocked category %d for user %d", category_id, user_id)
    return progress


async def propagate_unlock(
    db: AsyncSession,
    *,
    user_id: int,
    language_id: int,
    category: Category,
    progress: UserProgress,
) -> UserProgress | None:
    """Open the category after ``category`` once its threshold is met.

    Returns the next category's progress when it is unlocked, or None when
    the threshold is not reached or ``category`` is the last of its chain.
    Unlocking is idempotent and never locks anything. Does not commit.
    """
    following = await next_category(db, category)
    if following is None or progress.max_score < category.required_score:
        return None
    return await _unlock(db, user_id, language_id, following.id)


async def ensure_first_category_progress(
    db: AsyncSession, user_id: int, language_id: int
) -> UserProgress | None:
    """Open the first category of a language a user has just started learning."""
    stmt = select(Category).where(
        and_(Category.language_id == language_id, Category.order == FIRST_ORDER)
    )
    first = (await db.execute(stmt)).scalar_one_or_none()
    if first is None:
        return None
    return await _unlock(db, user_id, language_id, first.id)


async def sync_total_cards(db: AsyncSession, category_id: int, language_id: int) -> int:
    """Recount the card denominator on existing progress rows of a category."""
    total = await count_category_cards(db, category_id, language_id)
    await db.execute(
        update(UserProgress)
        .where(and_(UserProgress.category_id == category_id, UserProgress.language_id == language_id))
        .values(total_cards=total)
        .execution_options(synchronize_session=False)
    )
    return total
