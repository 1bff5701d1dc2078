"""Attempt aggregation.

An attempt is one practice session identified by a client-chosen id that is
unique per user. Each submitted card adds to the attempt's running score and
answer counters. Cards of a category split 100 points evenly, so answering
every card of a category correctly within one attempt scores 100.
"""

import logging
import uuid

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lingocards.config import utcnow
from lingocards.errors import BadRequestError
from lingocards.models.attempt import Attempt
from lingocards.srs.assessment import CORRECT_QUALITY, ExerciseType

logger = logging.getLogger(__name__)

MAX_SCORE = 100.0


def attempt_score(quality: int, total_cards: int) -> float:
    """Points one card contributes: ``(quality / 5) * (100 / total_cards)``."""
    score_per_card = MAX_SCORE / total_cards if total_cards > 0 else 0.0
    return (quality / CORRECT_QUALITY) * score_per_card


def new_attempt_id() -> str:
    return str(uuid.uuid4())


async def find_attempt(db: AsyncSession, attempt_id: str, user_id: int) -> Attempt | None:
    stmt = select(Attempt).where(and_(Attempt.attempt_id == attempt_id, Attempt.user_id == user_id))
    return (await db.execute(stmt)).scalar_one_or_none()


async def record_attempt(
    db: AsyncSession,
    *,
    attempt_id: str | None,
    user_id: int,
    language_id: int,
    category_id: int,
    exercise_type: ExerciseType | str,
    score: float,
    is_correct: bool,
) -> Attempt:
    """Create the attempt on its first card or add one card's result to it.

    Counters are incremented in SQL rather than read-modified-written in
    Python, so two submissions racing on an existing attempt both count. Two
    racing first submissions trip the (attempt_id, user_id) constraint.
    Does not commit.
    """
    correct = 1 if is_correct else 0

    if attempt_id:
        attempt = await find_attempt(db, attempt_id, user_id)
        if attempt is not None:
            if attempt.category_id != category_id:
                raise BadRequestError("Attempt belongs to another category")
            return await _increment(db, attempt, score, correct)

    attempt = Attempt(
        attempt_id=attempt_id or new_attempt_id(),
        user_id=user_id,
        language_id=language_id,
        category_id=category_id,
        type=ExerciseType(exercise_type).value,
        date=utcnow(),
        score=score,
        correct_answers=correct,
        total_answers=1,
    )
    db.add(attempt)
    await db.flush()

    logger.info("Started attempt %s for user %d in category %d", attempt.attempt_id, user_id, category_id)
    return attempt


async def _increment(db: AsyncSession, attempt: Attempt, score: float, correct: int) -> Attempt:
    stmt = (
        update(Attempt)
        .where(Attempt.id == attempt.id)
        .values(
            score=Attempt.score + score,
            correct_answers=Attempt.correct_answers + correct,
            total_answers=Attempt.total_answers + 1,
        )
        .execution_options(synchronize_session=False)
    )
    await db.execute(stmt)
    await db.refresh(attempt, ["score", "correct_answers", "total_answers"])
    return attempt
