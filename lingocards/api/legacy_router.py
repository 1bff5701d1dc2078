"""API routes for the per-user SM-2 cards of the older deck format."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lingocards.api.deps import Identity, get_identity
from lingocards.api.schemas import LegacyCardCreate, LegacyCardResponse, LegacyReviewRequest
from lingocards.database import get_session
from lingocards.models.legacy_card import LegacyCard
from lingocards.srs.queue import due_legacy_cards
from lingocards.srs.sm2 import review_legacy_card

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/legacy/cards", tags=["legacy"])


@router.post("", response_model=LegacyCardResponse, status_code=201)
async def create_legacy_card(
    request: LegacyCardCreate,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
) -> LegacyCard:
    card = LegacyCard(
        user_id=identity.user_id,
        word=request.word.strip(),
        translation=request.translation.strip(),
        category=request.category,
    )
    db.add(card)
    await db.commit()
    return card


@router.get("/due", response_model=list[LegacyCardResponse])
async def get_due_cards(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
) -> list[LegacyCard]:
    """Get the caller's legacy cards due for review, most overdue first."""
    return await due_legacy_cards(db, identity.user_id)


@router.put("/{card_id}/review", response_model=LegacyCardResponse)
async def review_card(
    card_id: int,
    request: LegacyReviewRequest,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
) -> LegacyCard:
    return await review_legacy_card(db, identity.user_id, card_id, request.quality)
