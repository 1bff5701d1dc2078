"""SM-2 (SuperMemo 2) scheduler for legacy per-user cards.

Key concepts:
- Easiness (EF): how easy the card is, floored at 1.3, starting at 2.5.
- Interval: days until the next review.
- Repetitions: number of reviews so far.
- Quality: graded recall 0-5; anything below 3 counts as a failure.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from lingocards.config import utcnow
from lingocards.errors import BadRequestError, NotFoundError
from lingocards.models.legacy_card import LegacyCard

logger = logging.getLogger(__name__)

DEFAULT_EASINESS = 2.5
MIN_EASINESS = 1.3
PASSING_QUALITY = 3
FIRST_INTERVAL = 1
SECOND_INTERVAL = 6


@dataclass
class SM2State:
    """The scheduling state of a legacy card."""

    easiness: float = DEFAULT_EASINESS
    interval: int = FIRST_INTERVAL
    repetitions: int = 0
    next_review: datetime = field(default_factory=utcnow)
    last_reviewed: datetime = field(default_factory=utcnow)


class SM2Scheduler:
    """Applies the SM-2 ease/interval recurrence."""

    def review(self, state: SM2State, quality: int, review_time: datetime | None = None) -> SM2State:
        """Apply a graded review to a card state.

        Args:
            state: Current card state.
            quality: Recall quality from 0 (blackout) to 5 (perfect).
            review_time: When the review happened (defaults to now).

        Returns:
            The new card state; ``state`` is left untouched.
        """
        if isinstance(quality, bool) or not isinstance(quality, int) or not 0 <= quality <= 5:
            raise BadRequestError("Quality must be an integer between 0 and 5")
        review_time = review_time or utcnow()

        repetitions = state.repetitions + 1
        easiness = self.next_easiness(state.easiness, quality)

        if quality < PASSING_QUALITY:
            interval = FIRST_INTERVAL
        elif repetitions == 1:
            interval = FIRST_INTERVAL
        elif repetitions == 2:
            interval = SECOND_INTERVAL
        else:
            interval = math.floor(state.interval * easiness + 0.5)  # round half up

        return replace(
            state,
            easiness=easiness,
            interval=interval,
            repetitions=repetitions,
            next_review=review_time + timedelta(days=interval),
            last_reviewed=review_time,
        )

    @staticmethod
    def next_easiness(easiness: float, quality: int) -> float:
        """EF' = EF + 0.1 - (5 - q) * (0.08 + (5 - q) * 0.02), floored at 1.3."""
        miss = 5 - quality
        return max(MIN_EASINESS, easiness + 0.1 - miss * (0.08 + miss * 0.02))


def state_of(card: LegacyCard) -> SM2State:
    return SM2State(
        easiness=card.easiness,
        interval=card.interval,
        repetitions=card.repetitions,
        next_review=card.next_review,
        last_reviewed=card.last_reviewed,
    )


async def review_legacy_card(
    db: AsyncSession,
    user_id: int,
    card_id: int,
    quality: int,
    scheduler: SM2Scheduler | None = None,
) -> LegacyCard:
    """Apply a graded review to one of the user's legacy cards and save it."""
    card = await db.get(LegacyCard, card_id)
    if card is None or card.user_id != user_id:
        raise NotFoundError("Card not found")

    new_state = (scheduler or SM2Scheduler()).review(state_of(card), quality)
    card.easiness = new_state.easiness
    card.interval = new_state.interval
    card.repetitions = new_state.repetitions
    card.next_review = new_state.next_review
    card.last_reviewed = new_state.last_reviewed
    await db.commit()

    logger.info(
        "Reviewed legacy card %d: quality=%d interval=%dd easiness=%.2f",
        card.id,
        quality,
        card.interval,
        card.easiness,
    )
    return card
