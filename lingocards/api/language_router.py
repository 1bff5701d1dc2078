"""API routes for languages and their words."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lingocards.api.deps import Identity, get_identity, require_admin
from lingocards.api.schemas import (
    LanguageCreate,
    LanguageResponse,
    LanguageUpdate,
    MessageResponse,
    WordCreate,
    WordResponse,
    WordUpdate,
)
from lingocards.database import get_session
from lingocards.errors import BadRequestError, NotFoundError
from lingocards.models.attempt import Attempt
from lingocards.models.card import Card
from lingocards.models.category import Category
from lingocards.models.language import Language
from lingocards.models.progress import UserProgress
from lingocards.models.user import User, user_learning_languages
from lingocards.models.word import Word
from lingocards.srs.progress import sync_total_cards

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["languages"])


@router.get("/languages", response_model=list[LanguageResponse])
async def list_languages(db: AsyncSession = Depends(get_session)) -> list[Language]:
    result = await db.execute(select(Language).order_by(Language.name.asc()))
    return list(result.scalars().all())


@router.post("/languages", response_model=LanguageResponse, status_code=201)
async def create_language(
    request: LanguageCreate,
    _: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> Language:
    code = request.code.strip()
    existing = (await db.execute(select(Language).where(Language.code == code))).scalar_one_or_none()
    if existing is not None:
        raise BadRequestError("Language code already exists")

    language = Language(code=code, name=request.name.strip())
    db.add(language)
    await db.commit()
    logger.info("Created language %s (%d)", language.code, language.id)
    return language


@router.put("/languages/{language_id}", response_model=LanguageResponse)
async def update_language(
    language_id: int,
    request: LanguageUpdate,
    _: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> Language:
    language = await db.get(Language, language_id)
    if language is None:
        raise NotFoundError("Language not found")
    if request.code:
        code = request.code.strip()
        clash = await db.execute(select(Language.id).where(and_(Language.code == code, Language.id != language_id)))
        if clash.first() is not None:
            raise BadRequestError("Language code already exists")
        language.code = code
    if request.name:
        language.name = request.name.strip()
    await db.commit()
    return language


@router.delete("/languages/{language_id}", response_model=MessageResponse)
async def delete_language(
    language_id: int,
    _: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Delete a language with its words, categories and every card using them."""
    language = await db.get(Language, language_id)
    if language is None:
        raise NotFoundError("Language not found")

    word_ids = select(Word.id).where(Word.language_id == language_id)
    category_ids = select(Category.id).where(Category.language_id == language_id)
    await db.execute(
        delete(Card).where(
            or_(
                Card.word_id.in_(word_ids),
                Card.translation_id.in_(word_ids),
                Card.category_id.in_(category_ids),
            )
        )
    )
    await db.execute(
        delete(UserProgress).where(
            or_(UserProgress.language_id == language_id, UserProgress.category_id.in_(category_ids))
        )
    )
    await db.execute(
        delete(Attempt).where(or_(Attempt.language_id == language_id, Attempt.category_id.in_(category_ids)))
    )
    await db.execute(delete(user_learning_languages).where(user_learning_languages.c.language_id == language_id))
    await db.execute(
        update(User).where(User.native_language_id == language_id).values(native_language_id=None)
    )
    await db.delete(language)
    await db.commit()
    logger.info("Deleted language %d", language_id)
    return MessageResponse(message="Language deleted successfully")


@router.get("/words", response_model=list[WordResponse])
async def list_words(
    language_id: int | None = None,
    _: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
) -> list[Word]:
    stmt = select(Word).order_by(Word.text.asc())
    if language_id is not None:
        stmt = stmt.where(Word.language_id == language_id)
    return list((await db.execute(stmt)).scalars().all())


async def _check_word_unique(db: AsyncSession, text: str, language_id: int, word_id: int | None = None) -> None:
    stmt = select(Word.id).where(and_(Word.text == text, Word.language_id == language_id))
    if word_id is not None:
        stmt = stmt.where(Word.id != word_id)
    if (await db.execute(stmt)).first() is not None:
        raise BadRequestError("Word already exists in this language")


@router.post("/words", response_model=WordResponse, status_code=201)
async def create_word(
    request: WordCreate,
    _: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> Word:
    if await db.get(Language, request.language_id) is None:
        raise NotFoundError("Language not found")
    text = request.text.strip()
    await _check_word_unique(db, text, request.language_id)

    word = Word(text=text, language_id=request.language_id)
    db.add(word)
    await db.commit()
    return word


@router.put("/words/{word_id}", response_model=WordResponse)
async def update_word(
    word_id: int,
    request: WordUpdate,
    _: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> Word:
    word = await db.get(Word, word_id)
    if word is None:
        raise NotFoundError("Word not found")
    if request.language_id is not None and await db.get(Language, request.language_id) is None:
        raise NotFoundError("Language not found")

    text = request.text.strip() if request.text else word.text
    language_id = request.language_id if request.language_id is not None else word.language_id
    await _check_word_unique(db, text, language_id, word_id)
    word.text = text
    word.language_id = language_id
    await db.commit()
    return word


@router.delete("/words/{word_id}", response_model=MessageResponse)
async def delete_word(
    word_id: int,
    _: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Delete a word and its cards, recounting progress totals of the categories that lost cards."""
    word = await db.get(Word, word_id)
    if word is None:
        raise NotFoundError("Word not found")
    uses_word = or_(Card.word_id == word_id, Card.translation_id == word_id)
    affected = (
        await db.execute(
            select(Card.category_id, Word.language_id)
            .join(Word, Card.translation_id == Word.id)
            .where(uses_word)
            .distinct()
        )
    ).all()
    await db.execute(delete(Card).where(uses_word))
    await db.delete(word)
    await db.flush()
    for category_id, language_id in affected:
        await sync_total_cards(db, category_id, language_id)
    await db.commit()
    return MessageResponse(message="Word deleted successfully")
