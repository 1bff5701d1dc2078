"""API routes for progress, statistics and the leaderboard."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lingocards.api.deps import Identity, get_identity
from lingocards.api.schemas import (
    AttemptResponse,
    LeaderboardEntry,
    ProgressWithCategory,
    StatsResponse,
    TypeStats,
)
from lingocards.config import settings
from lingocards.database import get_session
from lingocards.errors import NotFoundError
from lingocards.models.attempt import Attempt
from lingocards.models.category import Category
from lingocards.models.language import Language
from lingocards.models.progress import UserProgress
from lingocards.models.user import User
from lingocards.srs.assessment import ExerciseType
from lingocards.srs.queue import load_learner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["stats"])


@router.get("/progress", response_model=list[ProgressWithCategory])
async def get_progress(
    language_id: int,
    category_id: int | None = None,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
) -> list[UserProgress]:
    """Get the caller's progress rows in a language, in category order."""
    await load_learner(db, identity.user_id, language_id)
    if category_id is not None and await db.get(Category, category_id) is None:
        raise NotFoundError("Category not found")

    stmt = (
        select(UserProgress)
        .join(Category, UserProgress.category_id == Category.id)
        .where(and_(UserProgress.user_id == identity.user_id, UserProgress.language_id == language_id))
        .order_by(Category.order.asc())
    )
    if category_id is not None:
        stmt = stmt.where(UserProgress.category_id == category_id)
    return list((await db.execute(stmt)).scalars().all())


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    language_id: int,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
) -> StatsResponse:
    """Get progress, per-exercise-type totals and attempt history in a language."""
    progress = await get_progress(language_id, None, identity, db)

    # Totals per exercise type
    totals_stmt = (
        select(
            Attempt.type,
            func.coalesce(func.sum(Attempt.correct_answers), 0),
            func.coalesce(func.sum(Attempt.total_answers), 0),
        )
        .where(and_(Attempt.user_id == identity.user_id, Attempt.language_id == language_id))
        .group_by(Attempt.type)
    )
    stats_by_type = {exercise_type.value: TypeStats() for exercise_type in ExerciseType}
    for exercise_type, correct, total in (await db.execute(totals_stmt)).all():
        stats_by_type[exercise_type] = TypeStats(correct_answers=correct, total_answers=total)

    attempts_stmt = (
        select(Attempt)
        .where(and_(Attempt.user_id == identity.user_id, Attempt.language_id == language_id))
        .order_by(Attempt.date.desc(), Attempt.id.desc())
    )
    attempts = (await db.execute(attempts_stmt)).scalars().all()

    return StatsResponse(
        progress=[ProgressWithCategory.model_validate(row) for row in progress],
        stats_by_type=stats_by_type,
        attempts=[AttemptResponse.model_validate(attempt) for attempt in attempts],
    )


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
async def get_leaderboard(
    language_id: int,
    _: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
) -> list[LeaderboardEntry]:
    """Rank non-admin users by the sum of their best category scores in a language."""
    if await db.get(Language, language_id) is None:
        raise NotFoundError("Language not found")

    # Aggregate each table separately; joining both would multiply the rows.
    progress_totals = (
        select(
            UserProgress.user_id.label("user_id"),
            func.sum(UserProgress.max_score).label("total_score"),
        )
        .where(UserProgress.language_id == language_id)
        .group_by(UserProgress.user_id)
        .subquery()
    )
    attempt_totals = (
        select(
            Attempt.user_id.label("user_id"),
            func.avg(Attempt.score).label("avg_attempt_score"),
            func.avg(
                case(
                    (Attempt.total_answers > 0, Attempt.correct_answers * 1.0 / Attempt.total_answers),
                    else_=0.0,
                )
            ).label("avg_correct"),
        )
        .where(Attempt.language_id == language_id)
        .group_by(Attempt.user_id)
        .subquery()
    )
    total_score = func.coalesce(progress_totals.c.total_score, 0.0)
    stmt = (
        select(
            User.id,
            User.username,
            total_score,
            func.coalesce(attempt_totals.c.avg_attempt_score, 0.0),
            func.coalesce(attempt_totals.c.avg_correct, 0.0),
        )
        .join(progress_totals, progress_totals.c.user_id == User.id)
        .outerjoin(attempt_totals, attempt_totals.c.user_id == User.id)
        .where(User.role != "admin")
        .order_by(total_score.desc(), User.id.asc())
        .limit(settings.leaderboard_size)
    )
    rows = (await db.execute(stmt)).all()
    return [
        LeaderboardEntry(
            user_id=user_id,
            username=username,
            total_score=round(float(total), 2),
            avg_attempt_score=round(float(avg_score), 2),
            avg_correct_percentage=round(float(avg_correct) * 100, 2),
        )
        for user_id, username, total, avg_score, avg_correct in rows
    ]
