"""CLI interface for Lingocards.

Usage:
    python -m lingocards_cli init                                Create the database tables
    python -m lingocards_cli seed data/seed.json                 Load languages, categories, cards and users
    python -m lingocards_cli progress --user-id 1 --language-id 2
    python -m lingocards_cli add --user-id 1 "hola" "hello"      Add a legacy review card
    python -m lingocards_cli due --user-id 1                     Show legacy cards due for review
    python -m lingocards_cli review --user-id 1                  Review due legacy cards
"""

import argparse
import asyncio
import json
import logging
from collections.abc import Callable
from pathlib import Path

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lingocards.config import settings
from lingocards.database import async_session, engine, ensure_sqlite_directory
from lingocards.errors import LingoError
from lingocards.models import Base
from lingocards.models.category import Category
from lingocards.models.legacy_card import LegacyCard
from lingocards.models.progress import UserProgress
from lingocards.srs.queue import due_legacy_cards, load_learner
from lingocards.srs.sm2 import SM2Scheduler, review_legacy_card
from scripts.load_to_db import seed_database


async def ensure_db() -> None:
    """Create tables if they don't exist."""
    ensure_sqlite_directory(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def progress_lines(db: AsyncSession, user_id: int, language_id: int) -> list[str]:
    """One line per category of a language: order, name, best score and lock state."""
    _, language = await load_learner(db, user_id, language_id)
    stmt = (
        select(Category, UserProgress)
        .outerjoin(
            UserProgress,
            and_(UserProgress.category_id == Category.id, UserProgress.user_id == user_id),
        )
        .where(Category.language_id == language_id)
        .order_by(Category.order.asc())
    )
    lines = [f"  {language.name} progress"]
    for category, progress in (await db.execute(stmt)).all():
        if progress is None or not progress.unlocked:
            status = "locked"
        else:
            status = f"best {progress.max_score:.1f} / {category.required_score:.0f}"
        lines.append(f"  {category.order:>3}. {category.name:<24} {status}")
    return lines


async def review_cards(
    db: AsyncSession,
    user_id: int,
    cards: list[LegacyCard],
    ask: Callable[[str], str] = input,
    scheduler: SM2Scheduler | None = None,
) -> int:
    """Walk through due legacy cards, grading each answer 0-5.

    Returns the number of cards reviewed. An answer of 'q' ends the session.
    """
    scheduler = scheduler or SM2Scheduler()
    reviewed = 0
    for i, card in enumerate(cards, 1):
        print(f"  [{i}/{len(cards)}] {card.word}")
        response = ask("  Your answer: ").strip()
        if response.lower() == "q":
            print("\n  Session ended early.")
            break

        if response.lower() == card.translation.strip().lower():
            print("  Correct!")
            suggested = 5
        else:
            print(f"  Answer: {card.translation}")
            suggested = 1

        quality = suggested
        rate_input = ask(f"  Rate [0-5, enter={suggested}]: ").strip()
        if rate_input.isdigit() and 0 <= int(rate_input) <= 5:
            quality = int(rate_input)

        updated = await review_legacy_card(db, user_id, card.id, quality, scheduler)
        reviewed += 1
        print(f"  Next review in {updated.interval} days\n")
    return reviewed


async def cmd_init(args: argparse.Namespace) -> None:
    await ensure_db()
    print(f"  Database ready at {settings.database_url}")


async def cmd_seed(args: argparse.Namespace) -> None:
    """Load a seed JSON file."""
    await ensure_db()
    data = json.loads(args.path.read_text(encoding="utf-8"))
    async with async_session() as db:
        summary = await seed_database(db, data)
    print(
        f"  Seeded {summary.languages} languages, {summary.categories} categories, "
        f"{summary.cards} cards, {summary.users} users"
    )


async def cmd_progress(args: argparse.Namespace) -> None:
    """Show category progress for a user in one language."""
    await ensure_db()
    async with async_session() as db:
        for line in await progress_lines(db, args.user_id, args.language_id):
            print(line)


async def cmd_add(args: argparse.Namespace) -> None:
    """Add a legacy card for a user."""
    await ensure_db()
    async with async_session() as db:
        card = LegacyCard(
            user_id=args.user_id,
            word=args.word,
            translation=args.translation,
            category=args.category,
        )
        db.add(card)
        await db.commit()
        print(f"  Added card {card.id}: {card.word} -> {card.translation}")


async def cmd_due(args: argparse.Namespace) -> None:
    """Show how many legacy cards are due."""
    await ensure_db()
    async with async_session() as db:
        due = await due_legacy_cards(db, args.user_id)
    print(f"  {len(due)} cards due")


async def cmd_review(args: argparse.Namespace) -> None:
    """Run an interactive legacy review session."""
    await ensure_db()
    async with async_session() as db:
        cards = (await due_legacy_cards(db, args.user_id))[: args.max_cards]
        if not cards:
            print("\nNo cards due for review. You're all caught up!")
            return
        print(f"\n  Review Session: {len(cards)} cards")
        print("  Type 'q' to quit\n")
        reviewed = await review_cards(db, args.user_id, cards)
    print(f"\n  Session Complete! Reviewed: {reviewed}\n")


def main() -> None:
    """Entry point for the Lingocards CLI."""
    parser = argparse.ArgumentParser(
        prog="lingocards",
        description="Lingocards vocabulary trainer",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init", help="Create the database tables")

    seed_parser = subparsers.add_parser("seed", help="Load a seed JSON file")
    seed_parser.add_argument("path", type=Path, help="Path to the seed JSON file")

    progress_parser = subparsers.add_parser("progress", help="Show category progress")
    progress_parser.add_argument("--user-id", type=int, required=True)
    progress_parser.add_argument("--language-id", type=int, required=True)

    add_parser = subparsers.add_parser("add", help="Add a legacy review card")
    add_parser.add_argument("--user-id", type=int, required=True)
    add_parser.add_argument("word", help="Prompt word")
    add_parser.add_argument("translation", help="Expected answer")
    add_parser.add_argument("-c", "--category", default="", help="Free-form category label")

    due_parser = subparsers.add_parser("due", help="Show legacy cards due for review")
    due_parser.add_argument("--user-id", type=int, required=True)

    review_parser = subparsers.add_parser("review", help="Review due legacy cards")
    review_parser.add_argument("--user-id", type=int, required=True)
    review_parser.add_argument("--max-cards", type=int, default=20, help="Max cards per session")

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if not args.command:
        parser.print_help()
        return

    cmd_map = {
        "init": cmd_init,
        "seed": cmd_seed,
        "progress": cmd_progress,
        "add": cmd_add,
        "due": cmd_due,
        "review": cmd_review,
    }

    try:
        asyncio.run(cmd_map[args.command](args))
    except LingoError as exc:
        parser.exit(1, f"  Error: {exc.message}\n")


if __name__ == "__main__":
    main()
