"""API routes for cards: browsing, practice decks, answers and admin edits."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lingocards.api.deps import Identity, get_identity, require_admin
from lingocards.api.schemas import (
    CardCreate,
    CardResponse,
    CardUpdate,
    ChoiceCardResponse,
    ChoiceCardsResponse,
    MessageResponse,
    ReviewCardsResponse,
    SubmitAnswerRequest,
    SubmitAnswerResponse,
)
from lingocards.database import get_session
from lingocards.errors import BadRequestError, NotFoundError
from lingocards.models.card import Card
from lingocards.models.category import Category
from lingocards.models.user import User
from lingocards.models.word import Word
from lingocards.srs.progress import sync_total_cards
from lingocards.srs.queue import build_review_deck, build_test_cards, list_cards
from lingocards.srs.submission import record_submission

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cards", tags=["cards"])


@router.get("", response_model=list[CardResponse])
async def get_cards(
    category_id: int | None = None,
    meaning: str | None = None,
    limit: int = Query(default=20, ge=1, le=200),
    skip: int = Query(default=0, ge=0),
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
) -> list[Card]:
    """List cards in the caller's native/learning languages (admins see all)."""
    user = await db.get(User, identity.user_id)
    if user is None:
        raise NotFoundError("User not found")
    if category_id is not None and await db.get(Category, category_id) is None:
        raise NotFoundError("Category not found")
    return await list_cards(
        db,
        user,
        category_id=category_id,
        meaning=meaning,
        limit=limit,
        skip=skip,
        include_all=identity.is_admin,
    )


@router.get("/review", response_model=ReviewCardsResponse)
async def get_review_cards(
    language_id: int,
    category_id: int | None = None,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
) -> ReviewCardsResponse:
    """Cards for a flash or dictation session, with a fresh attempt id."""
    deck = await build_review_deck(db, identity.user_id, language_id, category_id)
    return ReviewCardsResponse(
        cards=[CardResponse.model_validate(card) for card in deck.cards],
        attempt_id=deck.attempt_id,
        total=deck.total,
    )


@router.get("/test", response_model=ChoiceCardsResponse)
async def get_test_cards(
    language_id: int,
    category_id: int | None = None,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
) -> ChoiceCardsResponse:
    """Multiple-choice questions for a test session, with a fresh attempt id."""
    deck = await build_review_deck(db, identity.user_id, language_id, category_id)
    choice_cards = await build_test_cards(db, deck, language_id)
    return ChoiceCardsResponse(
        cards=[
            ChoiceCardResponse.model_validate(
                {
                    "id": choice.card.id,
                    "word": choice.card.word,
                    "category": choice.card.category,
                    "options": choice.options,
                },
                from_attributes=True,
            )
            for choice in choice_cards
        ],
        attempt_id=deck.attempt_id,
        total=deck.total,
    )


@router.post("/{card_id}/submit", response_model=SubmitAnswerResponse)
async def submit_answer(
    card_id: int,
    request: SubmitAnswerRequest,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
) -> SubmitAnswerResponse:
    """Check an answer and update the attempt, progress and unlocks."""
    result = await record_submission(
        db,
        user_id=identity.user_id,
        card_id=card_id,
        language_id=request.language_id,
        answer=request.answer,
        attempt_id=request.attempt_id,
        exercise_type=request.type,
    )
    unlocked = result.next_progress
    return SubmitAnswerResponse.model_validate(
        {
            "attempt": result.attempt,
            "progress": result.progress,
            "is_correct": result.is_correct,
            "correct_translation": result.correct_translation,
            "quality": result.quality,
            "unlocked_category_id": unlocked.category_id if unlocked is not None else None,
        },
        from_attributes=True,
    )


async def _load_card_parts(
    db: AsyncSession, word_id: int, translation_id: int, category_id: int
) -> tuple[Word, Word, Category]:
    if word_id == translation_id:
        raise BadRequestError("Cannot use the same word as original and translation")
    word = await db.get(Word, word_id)
    if word is None:
        raise NotFoundError("Original word not found")
    translation = await db.get(Word, translation_id)
    if translation is None:
        raise NotFoundError("Translation word not found")
    category = await db.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return word, translation, category


@router.post("", response_model=CardResponse, status_code=201)
async def create_card(
    request: CardCreate,
    _: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> Card:
    _, translation, category = await _load_card_parts(
        db, request.word_id, request.translation_id, request.category_id
    )
    card = Card(
        word_id=request.word_id,
        translation_id=request.translation_id,
        category_id=request.category_id,
        meaning=request.meaning,
    )
    db.add(card)
    await db.flush()
    await sync_total_cards(db, category.id, translation.language_id)
    await db.commit()
    await db.refresh(card, ["word", "translation", "category"])
    logger.info("Created card %d in category %d", card.id, category.id)
    return card


@router.put("/{card_id}", response_model=CardResponse)
async def update_card(
    card_id: int,
    request: CardUpdate,
    _: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> Card:
    card = await db.get(Card, card_id)
    if card is None:
        raise NotFoundError("Card not found")
    old_category_id = card.category_id
    old_language_id = card.translation.language_id

    _, translation, category = await _load_card_parts(
        db,
        request.word_id if request.word_id is not None else card.word_id,
        request.translation_id if request.translation_id is not None else card.translation_id,
        request.category_id if request.category_id is not None else card.category_id,
    )
    card.word_id = request.word_id if request.word_id is not None else card.word_id
    card.translation_id = translation.id
    card.category_id = category.id
    if request.meaning is not None:
        card.meaning = request.meaning
    await db.flush()

    await sync_total_cards(db, old_category_id, old_language_id)
    if (category.id, translation.language_id) != (old_category_id, old_language_id):
        await sync_total_cards(db, category.id, translation.language_id)
    await db.commit()
    await db.refresh(card, ["word", "translation", "category"])
    return card


@router.delete("/{card_id}", response_model=MessageResponse)
async def delete_card(
    card_id: int,
    _: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    card = await db.get(Card, card_id)
    if card is None:
        raise NotFoundError("Card not found")
    category_id = card.category_id
    language_id = card.translation.language_id
    await db.delete(card)
    await db.flush()
    await sync_total_cards(db, category_id, language_id)
    await db.commit()
    return MessageResponse(message="Card deleted successfully")
