"""Card submission flow.

Coordinates the scoring policy, attempt aggregation, the progress ledger and
unlock propagation into the single ``record_submission`` operation. The
whole submission is committed once at the end, so a failure part-way leaves
nothing behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from lingocards.errors import NotFoundError
from lingocards.models.attempt import Attempt
from lingocards.models.progress import UserProgress
from lingocards.srs.assessment import ExerciseType, expected_answer, judge_answer
from lingocards.srs.attempts import attempt_score, record_attempt
from lingocards.srs.progress import count_category_cards, propagate_unlock, record_progress
from lingocards.srs.queue import find_visible_card, load_learner

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    """Everything the API reports back after a submitted answer."""

    attempt: Attempt
    progress: UserProgress
    is_correct: bool
    correct_translation: str
    quality: int
    next_progress: UserProgress | None = None


async def record_submission(
    db: AsyncSession,
    *,
    user_id: int,
    card_id: int,
    language_id: int,
    answer: str | None,
    attempt_id: str | None = None,
    exercise_type: ExerciseType | str = ExerciseType.TEST,
) -> SubmissionResult:
    """Judge one answer and fold it into the attempt and the progress ledger.

    Args:
        db: Database session.
        user_id: The authenticated user.
        card_id: The card answered.
        language_id: The language being learned.
        answer: The submitted text.
        attempt_id: Client attempt id; a fresh one is generated when missing.
        exercise_type: flash, test or dictation.

    Returns:
        SubmissionResult with the updated attempt and progress.
    """
    exercise_type = ExerciseType(exercise_type)
    user, _ = await load_learner(db, user_id, language_id)

    card = await find_visible_card(db, card_id, user.native_language_id, language_id)
    if card is None:
        raise NotFoundError("Card not found")
    category = card.category

    expected = expected_answer(exercise_type, card.word.text, card.translation.text)
    judgement = judge_answer(answer, expected)

    total_cards = await count_category_cards(db, category.id, language_id)
    attempt = await record_attempt(
        db,
        attempt_id=attempt_id,
        user_id=user_id,
        language_id=language_id,
        category_id=category.id,
        exercise_type=exercise_type,
        score=attempt_score(judgement.quality, total_cards),
        is_correct=judgement.is_correct,
    )

    progress = await record_progress(
        db,
        user_id=user_id,
        language_id=language_id,
        category=category,
        score=attempt.score,
    )
    next_progress = await propagate_unlock(
        db,
        user_id=user_id,
        language_id=language_id,
        category=category,
        progress=progress,
    )
    await db.commit()

    logger.info(
        "User %d answered card %d (%s): correct=%s attempt_score=%.2f max_score=%.2f",
        user_id,
        card_id,
        exercise_type.value,
        judgement.is_correct,
        attempt.score,
        progress.max_score,
    )
    return SubmissionResult(
        attempt=attempt,
        progress=progress,
        is_correct=judgement.is_correct,
        correct_translation=expected,
        quality=judgement.quality,
        next_progress=next_progress,
    )
