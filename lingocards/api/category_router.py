"""API routes for categories and their order within a language."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import and_, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lingocards.api.deps import Identity, get_identity, require_admin
from lingocards.api.schemas import (
    CategoryCreate,
    CategoryOrdersRequest,
    CategoryResponse,
    CategoryUpdate,
    MessageResponse,
)
from lingocards.config import settings
from lingocards.database import get_session
from lingocards.errors import BadRequestError, NotFoundError
from lingocards.models.attempt import Attempt
from lingocards.models.card import Card
from lingocards.models.category import Category
from lingocards.models.language import Language
from lingocards.models.progress import UserProgress

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/categories", tags=["categories"])


async def _order_taken(db: AsyncSession, language_id: int, order: int, exclude_id: int | None = None) -> bool:
    stmt = select(Category.id).where(and_(Category.language_id == language_id, Category.order == order))
    if exclude_id is not None:
        stmt = stmt.where(Category.id != exclude_id)
    return (await db.execute(stmt)).first() is not None


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    language_id: int | None = None,
    _: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
) -> list[Category]:
    stmt = select(Category).order_by(Category.language_id.asc(), Category.order.asc())
    if language_id is not None:
        stmt = stmt.where(Category.language_id == language_id)
    return list((await db.execute(stmt)).scalars().all())


@router.post("", response_model=CategoryResponse, status_code=201)
async def create_category(
    request: CategoryCreate,
    _: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> Category:
    if await db.get(Language, request.language_id) is None:
        raise NotFoundError("Language not found")
    if await _order_taken(db, request.language_id, request.order):
        raise BadRequestError("Order value is already taken")

    category = Category(
        language_id=request.language_id,
        name=request.name.strip(),
        description=request.description,
        order=request.order,
        required_score=(
            request.required_score if request.required_score is not None else settings.default_required_score
        ),
    )
    db.add(category)
    await db.commit()
    logger.info("Created category %d at order %d", category.id, category.order)
    return category


@router.put("/orders", response_model=MessageResponse)
async def update_category_orders(
    request: CategoryOrdersRequest,
    _: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Reorder categories in two phases.

    Every listed category first moves to a temporary order above
    ``reorder_offset``, then to its final order, so the unique
    (language, order) constraint never sees a transient duplicate. Both
    phases run in one transaction.
    """
    orders = request.orders
    if len({o.order for o in orders}) != len(orders) or len({o.id for o in orders}) != len(orders):
        raise BadRequestError("Order values must be unique")

    ids = [o.id for o in orders]
    categories = (await db.execute(select(Category).where(Category.id.in_(ids)))).scalars().all()
    if len(categories) != len(orders):
        raise BadRequestError("One or more category IDs not found")

    final_orders = {o.id: o.order for o in orders}
    for language_id in {c.language_id for c in categories}:
        untouched = select(Category.order).where(
            and_(Category.language_id == language_id, Category.id.not_in(ids))
        )
        taken = set((await db.execute(untouched)).scalars().all())
        wanted = {final_orders[c.id] for c in categories if c.language_id == language_id}
        if taken & wanted:
            raise BadRequestError("Order value is already taken")

    for idx, item in enumerate(orders):
        await db.execute(
            update(Category)
            .where(Category.id == item.id)
            .values(order=settings.reorder_offset + idx)
            .execution_options(synchronize_session=False)
        )
    for item in orders:
        await db.execute(
            update(Category)
            .where(Category.id == item.id)
            .values(order=item.order)
            .execution_options(synchronize_session=False)
        )
    await db.commit()
    logger.info("Reordered %d categories", len(orders))
    return MessageResponse(message="Category orders updated successfully")


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    request: CategoryUpdate,
    _: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> Category:
    category = await db.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    if request.order is not None and await _order_taken(db, category.language_id, request.order, category_id):
        raise BadRequestError("Order value is already taken")

    if request.name:
        category.name = request.name.strip()
    if request.description is not None:
        category.description = request.description
    if request.order is not None:
        category.order = request.order
    if request.required_score is not None:
        category.required_score = request.required_score
    await db.commit()
    return category


@router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: int,
    _: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    category = await db.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    await db.execute(delete(Card).where(Card.category_id == category_id))
    await db.execute(delete(UserProgress).where(UserProgress.category_id == category_id))
    await db.execute(delete(Attempt).where(Attempt.category_id == category_id))
    await db.delete(category)
    await db.commit()
    logger.info("Deleted category %d", category_id)
    return MessageResponse(message="Category deleted successfully")
