"""API routes for user records and their language choices."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lingocards.api.deps import Identity, get_identity, require_admin
from lingocards.api.schemas import UserCreate, UserLanguagesUpdate, UserResponse
from lingocards.database import get_session
from lingocards.errors import BadRequestError, NotFoundError
from lingocards.models.language import Language
from lingocards.models.user import User
from lingocards.srs.progress import ensure_first_category_progress

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


def _to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        username=user.username,
        role=user.role,
        native_language_id=user.native_language_id,
        learning_language_ids=user.learning_language_ids,
    )


async def _load_languages(db: AsyncSession, language_ids: list[int]) -> list[Language]:
    unique_ids = list(dict.fromkeys(language_ids))
    if not unique_ids:
        return []
    result = await db.execute(select(Language).where(Language.id.in_(unique_ids)))
    languages = list(result.scalars().all())
    if len(languages) != len(unique_ids):
        raise NotFoundError("Language not found")
    return languages


async def _check_native_language(db: AsyncSession, language_id: int | None) -> None:
    if language_id is not None and await db.get(Language, language_id) is None:
        raise NotFoundError("Native language not found")


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    request: UserCreate,
    _: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    email = request.email.strip().lower()
    existing = (await db.execute(select(User.id).where(User.email == email))).first()
    if existing is not None:
        raise BadRequestError("Email already registered")
    await _check_native_language(db, request.native_language_id)
    languages = await _load_languages(db, request.learning_language_ids)

    user = User(
        email=email,
        username=request.username.strip(),
        role=request.role,
        native_language_id=request.native_language_id,
        learning_languages=languages,
    )
    db.add(user)
    await db.flush()
    for language in languages:
        await ensure_first_category_progress(db, user.id, language.id)
    await db.commit()
    logger.info("Created user %d (%s)", user.id, user.role)
    return _to_response(user)


@router.get("/me", response_model=UserResponse)
async def get_me(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    user = await db.get(User, identity.user_id)
    if user is None:
        raise NotFoundError("User not found")
    return _to_response(user)


@router.put("/me/languages", response_model=UserResponse)
async def update_my_languages(
    request: UserLanguagesUpdate,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Replace the caller's native and learning languages.

    Newly added learning languages get their first category opened.
    """
    user = await db.get(User, identity.user_id)
    if user is None:
        raise NotFoundError("User not found")
    await _check_native_language(db, request.native_language_id)
    languages = await _load_languages(db, request.learning_language_ids)

    added = set(language.id for language in languages) - set(user.learning_language_ids)
    if request.native_language_id is not None:
        user.native_language_id = request.native_language_id
    user.learning_languages = languages
    await db.flush()
    for language_id in sorted(added):
        await ensure_first_category_progress(db, user.id, language_id)
    await db.commit()
    logger.info("User %d now learning %s", user.id, user.learning_language_ids)
    return _to_response(user)
