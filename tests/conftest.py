import os

os.environ.setdefault("LINGOCARDS_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from collections.abc import AsyncGenerator  # noqa: E402
from dataclasses import dataclass  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from lingocards.database import get_session  # noqa: E402
from lingocards.main import app  # noqa: E402
from lingocards.models import Base, Card, Category, Language, User, Word  # noqa: E402
from lingocards.srs.progress import ensure_first_category_progress  # noqa: E402


@dataclass
class World:
    """A small course: English speakers learning Spanish, two categories."""

    english: Language
    spanish: Language
    french: Language
    greetings: Category
    food: Category
    hello: Card
    goodbye: Card
    bread: Card
    learner: User
    admin: User


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def world(db: AsyncSession) -> World:
    english = Language(code="en", name="English")
    spanish = Language(code="es", name="Spanish")
    french = Language(code="fr", name="French")
    db.add_all([english, spanish, french])
    await db.flush()

    words = {
        text: Word(text=text, language_id=language.id)
        for text, language in [
            ("hello", english),
            ("goodbye", english),
            ("bread", english),
            ("hola", spanish),
            ("adiós", spanish),
            ("pan", spanish),
            ("agua", spanish),
        ]
    }
    db.add_all(words.values())
    greetings = Category(language_id=spanish.id, name="Greetings", order=1, required_score=100.0)
    food = Category(language_id=spanish.id, name="Food", order=2, required_score=80.0)
    db.add_all([greetings, food])
    await db.flush()

    hello = Card(word_id=words["hello"].id, translation_id=words["hola"].id, category_id=greetings.id)
    goodbye = Card(word_id=words["goodbye"].id, translation_id=words["adiós"].id, category_id=greetings.id)
    bread = Card(word_id=words["bread"].id, translation_id=words["pan"].id, category_id=food.id, meaning="food")
    db.add_all([hello, goodbye, bread])

    learner = User(
        email="ana@example.com",
        username="ana",
        role="user",
        native_language_id=english.id,
        learning_languages=[spanish],
    )
    admin = User(email="admin@example.com", username="admin", role="admin", native_language_id=english.id)
    db.add_all([learner, admin])
    await db.flush()
    await ensure_first_category_progress(db, learner.id, spanish.id)
    await db.commit()

    return World(
        english=english,
        spanish=spanish,
        french=french,
        greetings=greetings,
        food=food,
        hello=hello,
        goodbye=goodbye,
        bread=bread,
        learner=learner,
        admin=admin,
    )


@pytest_asyncio.fixture
async def client(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncClient, None]:
    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


