"""API routes for sharing attempts through expiring links."""

import logging
import uuid
from datetime import timedelta

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lingocards.api.deps import Identity, get_identity
from lingocards.api.schemas import AttemptResponse, ShareAttemptResponse, SharedAttemptResponse
from lingocards.config import settings, utcnow
from lingocards.database import get_session
from lingocards.errors import NotFoundError
from lingocards.models.attempt import Attempt
from lingocards.srs.attempts import find_attempt

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/attempts", tags=["attempts"])


@router.post("/{attempt_id}/share", response_model=ShareAttemptResponse)
async def share_attempt(
    attempt_id: str,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
) -> ShareAttemptResponse:
    """Issue a fresh share token for one of the caller's attempts."""
    attempt = await find_attempt(db, attempt_id, identity.user_id)
    if attempt is None:
        raise NotFoundError("Attempt not found")

    attempt.share_token = uuid.uuid4().hex
    attempt.share_token_expires = utcnow() + timedelta(days=settings.share_token_ttl_days)
    await db.commit()
    logger.info("Shared attempt %s of user %d", attempt_id, identity.user_id)
    return ShareAttemptResponse(
        share_url=f"{settings.frontend_url}/attempts/view/{attempt.share_token}",
        share_token=attempt.share_token,
        expires_at=attempt.share_token_expires,
    )


@router.get("/view/{token}", response_model=SharedAttemptResponse)
async def view_shared_attempt(
    token: str,
    db: AsyncSession = Depends(get_session),
) -> SharedAttemptResponse:
    """Show a shared attempt; no identity needed, but the link must be live."""
    attempt = (await db.execute(select(Attempt).where(Attempt.share_token == token))).scalar_one_or_none()
    if attempt is None or attempt.share_token_expires is None or attempt.share_token_expires < utcnow():
        raise NotFoundError("Shared attempt not found or link expired")

    return SharedAttemptResponse(
        **AttemptResponse.model_validate(attempt).model_dump(),
        username=attempt.user.username,
        language_name=attempt.language.name,
        category_name=attempt.category.name,
    )
