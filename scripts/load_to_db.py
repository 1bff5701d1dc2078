"""Seed languages, words, categories, cards and users from a JSON file.

Usage:
    python -m scripts.load_to_db data/seed.json
    python -m scripts.load_to_db data/seed.json -v

The file holds up to four lists, each entry referring to languages by code::

    {
      "languages": [{"code": "en", "name": "English"}],
      "categories": [{"language": "es", "name": "Greetings", "order": 1, "required_score": 80}],
      "cards": [{"word": "hello", "word_language": "en", "translation": "hola",
                 "translation_language": "es", "category": "Greetings", "meaning": ""}],
      "users": [{"email": "ana@example.com", "username": "ana",
                 "native_language": "en", "learning_languages": ["es"]}]
    }

Existing rows are reused, so the loader is safe to re-run.
"""

import argparse
import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lingocards.config import settings
from lingocards.database import async_session, engine, ensure_sqlite_directory
from lingocards.models import Base
from lingocards.models.card import Card
from lingocards.models.category import Category
from lingocards.models.language import Language
from lingocards.models.user import User
from lingocards.models.word import Word
from lingocards.srs.progress import ensure_first_category_progress, sync_total_cards

logger = logging.getLogger(__name__)


@dataclass
class SeedSummary:
    languages: int = 0
    categories: int = 0
    words: int = 0
    cards: int = 0
    users: int = 0


async def _get_or_create_word(
    session: AsyncSession, text: str, language: Language, summary: SeedSummary
) -> Word:
    stmt = select(Word).where(and_(Word.text == text, Word.language_id == language.id))
    word = (await session.execute(stmt)).scalar_one_or_none()
    if word is None:
        word = Word(text=text, language_id=language.id)
        session.add(word)
        await session.flush()
        summary.words += 1
    return word


async def load_languages(session: AsyncSession, entries: list[dict[str, Any]], summary: SeedSummary) -> dict[str, Language]:
    """Create missing languages; returns every known language by code."""
    for entry in entries:
        code = entry["code"].strip()
        existing = (await session.execute(select(Language).where(Language.code == code))).scalar_one_or_none()
        if existing:
            logger.info("Skipping duplicate language: %s", code)
            continue
        session.add(Language(code=code, name=entry["name"].strip()))
        summary.languages += 1
    await session.flush()
    languages = (await session.execute(select(Language))).scalars().all()
    return {language.code: language for language in languages}


async def load_categories(
    session: AsyncSession,
    entries: list[dict[str, Any]],
    languages: dict[str, Language],
    summary: SeedSummary,
) -> None:
    for entry in entries:
        language = languages[entry["language"]]
        stmt = select(Category).where(
            and_(Category.language_id == language.id, Category.name == entry["name"])
        )
        if (await session.execute(stmt)).scalar_one_or_none():
            logger.info("Skipping duplicate category: %s", entry["name"])
            continue
        session.add(
            Category(
                language_id=language.id,
                name=entry["name"],
                description=entry.get("description", ""),
                order=entry["order"],
                required_score=entry.get("required_score", settings.default_required_score),
            )
        )
        summary.categories += 1
    await session.flush()


async def load_cards(
    session: AsyncSession,
    entries: list[dict[str, Any]],
    languages: dict[str, Language],
    summary: SeedSummary,
) -> None:
    touched: set[tuple[int, int]] = set()
    for entry in entries:
        prompt_language = languages[entry["word_language"]]
        translation_language = languages[entry["translation_language"]]
        category = (
            await session.execute(
                select(Category).where(
                    and_(
                        Category.language_id == translation_language.id,
                        Category.name == entry["category"],
                    )
                )
            )
        ).scalar_one_or_none()
        if category is None:
            logger.warning("No category %r for card %r", entry["category"], entry["word"])
            continue

        word = await _get_or_create_word(session, entry["word"], prompt_language, summary)
        translation = await _get_or_create_word(session, entry["translation"], translation_language, summary)
        stmt = select(Card.id).where(
            and_(
                Card.word_id == word.id,
                Card.translation_id == translation.id,
                Card.category_id == category.id,
            )
        )
        if (await session.execute(stmt)).first() is not None:
            continue
        session.add(
            Card(
                word_id=word.id,
                translation_id=translation.id,
                category_id=category.id,
                meaning=entry.get("meaning", ""),
            )
        )
        summary.cards += 1
        touched.add((category.id, translation_language.id))
    await session.flush()

    for category_id, language_id in touched:
        await sync_total_cards(session, category_id, language_id)


async def load_users(
    session: AsyncSession,
    entries: list[dict[str, Any]],
    languages: dict[str, Language],
    summary: SeedSummary,
) -> None:
    for entry in entries:
        email = entry["email"].strip().lower()
        if (await session.execute(select(User.id).where(User.email == email))).first() is not None:
            logger.info("Skipping duplicate user: %s", email)
            continue
        native = languages.get(entry.get("native_language", ""))
        learning = [languages[code] for code in entry.get("learning_languages", [])]
        user = User(
            email=email,
            username=entry.get("username", email.split("@")[0]),
            role=entry.get("role", "user"),
            native_language_id=native.id if native else None,
            learning_languages=learning,
        )
        session.add(user)
        await session.flush()
        for language in learning:
            await ensure_first_category_progress(session, user.id, language.id)
        summary.users += 1


async def seed_database(session: AsyncSession, data: dict[str, Any]) -> SeedSummary:
    """Load one seed document and commit it as a single transaction."""
    summary = SeedSummary()
    languages = await load_languages(session, data.get("languages", []), summary)
    await load_categories(session, data.get("categories", []), languages, summary)
    await load_cards(session, data.get("cards", []), languages, summary)
    await load_users(session, data.get("users", []), languages, summary)
    await session.commit()
    logger.info(
        "Seeded %d languages, %d categories, %d words, %d cards, %d users",
        summary.languages,
        summary.categories,
        summary.words,
        summary.cards,
        summary.users,
    )
    return summary


async def seed_file(path: Path) -> SeedSummary:
    ensure_sqlite_directory(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    data = json.loads(path.read_text(encoding="utf-8"))
    async with async_session() as session:
        return await seed_database(session, data)


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the database from a JSON file")
    parser.add_argument("path", type=Path, help="Path to the seed JSON file")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    summary = asyncio.run(seed_file(args.path))
    print(f"Loaded {summary.cards} cards and {summary.users} users.")
    print("Done.")


if __name__ == "__main__":
    main()
