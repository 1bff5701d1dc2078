"""Tests for attempt aggregation, the progress ledger and unlock propagation."""

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lingocards.errors import BadRequestError, ForbiddenError, NotFoundError
from lingocards.models import Attempt, Card, Category, User, UserProgress, Word
from lingocards.srs.assessment import ExerciseType
from lingocards.srs.attempts import record_attempt
from lingocards.srs.progress import (
    count_category_cards,
    ensure_first_category_progress,
    find_progress,
    propagate_unlock,
    record_progress,
    sync_total_cards,
)
from lingocards.srs.queue import build_review_deck, build_test_cards, due_legacy_cards, list_cards
from lingocards.srs.submission import record_submission


async def submit(db: AsyncSession, world, card: Card, answer: str, attempt_id: str | None = "a1", **kwargs):
    return await record_submission(
        db,
        user_id=world.learner.id,
        card_id=card.id,
        language_id=world.spanish.id,
        answer=answer,
        attempt_id=attempt_id,
        **kwargs,
    )


class TestSubmission:
    @pytest.mark.asyncio
    async def test_greetings_unlocks_food(self, db: AsyncSession, world) -> None:
        first = await submit(db, world, world.hello, "hola")
        assert first.is_correct
        assert first.quality == 5
        assert first.attempt.score == pytest.approx(50.0)
        assert first.progress.max_score == pytest.approx(50.0)
        assert first.next_progress is None
        assert await find_progress(db, world.learner.id, world.spanish.id, world.food.id) is None

        second = await submit(db, world, world.goodbye, "Adiós ")
        assert second.attempt.id == first.attempt.id
        assert second.attempt.score == pytest.approx(100.0)
        assert second.attempt.correct_answers == 2
        assert second.attempt.total_answers == 2
        assert second.progress.max_score == pytest.approx(100.0)
        assert second.next_progress is not None
        assert second.next_progress.category_id == world.food.id
        assert second.next_progress.unlocked

        food = await find_progress(db, world.learner.id, world.spanish.id, world.food.id)
        assert food is not None and food.unlocked
        assert food.max_score == 0.0
        assert food.total_cards == 1

    @pytest.mark.asyncio
    async def test_wrong_answer_counts_but_scores_nothing(self, db: AsyncSession, world) -> None:
        result = await submit(db, world, world.hello, "adiós")
        assert not result.is_correct
        assert result.quality == 0
        assert result.correct_translation == "hola"
        assert result.attempt.score == 0.0
        assert result.attempt.correct_answers == 0
        assert result.attempt.total_answers == 1

    @pytest.mark.asyncio
    async def test_flash_checks_prompt_word(self, db: AsyncSession, world) -> None:
        result = await submit(db, world, world.hello, "Hello", exercise_type=ExerciseType.FLASH)
        assert result.is_correct
        assert result.correct_translation == "hello"
        assert result.attempt.type == "flash"

    @pytest.mark.asyncio
    async def test_missing_attempt_id_starts_new_attempt(self, db: AsyncSession, world) -> None:
        first = await submit(db, world, world.hello, "hola", attempt_id=None)
        second = await submit(db, world, world.goodbye, "adiós", attempt_id=None)
        assert first.attempt.attempt_id != second.attempt.attempt_id
        assert second.attempt.score == pytest.approx(50.0)

    @pytest.mark.asyncio
    async def test_max_score_never_decreases(self, db: AsyncSession, world) -> None:
        await submit(db, world, world.hello, "hola", attempt_id="a1")
        await submit(db, world, world.goodbye, "adiós", attempt_id="a1")
        later = await submit(db, world, world.hello, "wrong", attempt_id="a2")
        assert later.attempt.score == 0.0
        assert later.progress.score == 0.0
        assert later.progress.max_score == pytest.approx(100.0)

    @pytest.mark.asyncio
    async def test_repeat_unlock_is_idempotent(self, db: AsyncSession, world) -> None:
        await submit(db, world, world.hello, "hola", attempt_id="a1")
        await submit(db, world, world.goodbye, "adiós", attempt_id="a1")
        again = await submit(db, world, world.hello, "hola", attempt_id="a2")
        assert again.next_progress is not None
        assert again.next_progress.unlocked
        rows = (
            await db.execute(
                select(UserProgress).where(
                    UserProgress.user_id == world.learner.id,
                    UserProgress.category_id == world.food.id,
                )
            )
        ).scalars().all()
        assert len(rows) == 1

    @pytest.mark.asyncio
    async def test_locked_category_submission_records_locked_progress(self, db: AsyncSession, world) -> None:
        result = await submit(db, world, world.bread, "pan", attempt_id="f1")
        assert result.progress.category_id == world.food.id
        assert not result.progress.unlocked
        assert result.progress.max_score == pytest.approx(100.0)

    @pytest.mark.asyncio
    async def test_attempt_cannot_span_categories(self, db: AsyncSession, world) -> None:
        await submit(db, world, world.hello, "hola", attempt_id="a1")
        await submit(db, world, world.goodbye, "adiós", attempt_id="a1")
        with pytest.raises(BadRequestError, match="another category"):
            await submit(db, world, world.bread, "pan", attempt_id="a1")

        food = await submit(db, world, world.bread, "pan", attempt_id="f1")
        assert food.attempt.score == pytest.approx(100.0)
        assert food.progress.max_score == pytest.approx(100.0)
        attempt = (await db.execute(select(Attempt).where(Attempt.attempt_id == "a1"))).scalar_one()
        assert attempt.total_answers == 2

    @pytest.mark.asyncio
    async def test_three_card_category_reaches_hundred(self, db: AsyncSession, world) -> None:
        agua = (await db.execute(select(Word).where(Word.text == "agua"))).scalar_one()
        water = Card(word_id=world.bread.word_id, translation_id=agua.id, category_id=world.greetings.id)
        db.add(water)
        await db.flush()
        await sync_total_cards(db, world.greetings.id, world.spanish.id)
        await db.commit()

        for card, answer in ((world.hello, "hola"), (world.goodbye, "adiós"), (water, "agua")):
            result = await submit(db, world, card, answer, attempt_id="a3")
        assert result.attempt.total_answers == 3
        assert result.attempt.score == pytest.approx(100.0)
        assert result.progress.max_score == pytest.approx(100.0)
        assert result.next_progress is not None and result.next_progress.unlocked

    @pytest.mark.asyncio
    async def test_unknown_card(self, db: AsyncSession, world) -> None:
        card = Card(id=9999, word_id=1, translation_id=1, category_id=world.greetings.id)
        with pytest.raises(NotFoundError, match="Card not found"):
            await submit(db, world, card, "hola")

    @pytest.mark.asyncio
    async def test_language_not_learned(self, db: AsyncSession, world) -> None:
        with pytest.raises(ForbiddenError):
            await record_submission(
                db,
                user_id=world.learner.id,
                card_id=world.hello.id,
                language_id=world.french.id,
                answer="hola",
            )

    @pytest.mark.asyncio
    async def test_user_without_learning_languages(self, db: AsyncSession, world) -> None:
        with pytest.raises(BadRequestError):
            await record_submission(
                db,
                user_id=world.admin.id,
                card_id=world.hello.id,
                language_id=world.spanish.id,
                answer="hola",
            )

    @pytest.mark.asyncio
    async def test_unknown_user(self, db: AsyncSession, world) -> None:
        with pytest.raises(NotFoundError, match="User not found"):
            await record_submission(
                db, user_id=424242, card_id=world.hello.id, language_id=world.spanish.id, answer="hola"
            )


class TestLedger:
    @pytest.mark.asyncio
    async def test_threshold_boundary_unlocks(self, db: AsyncSession, world) -> None:
        world.greetings.required_score = 50.0
        await db.commit()
        progress = await record_progress(
            db, user_id=world.learner.id, language_id=world.spanish.id, category=world.greetings, score=50.0
        )
        unlocked = await propagate_unlock(
            db, user_id=world.learner.id, language_id=world.spanish.id, category=world.greetings, progress=progress
        )
        assert unlocked is not None and unlocked.unlocked

    @pytest.mark.asyncio
    async def test_below_threshold_stays_locked(self, db: AsyncSession, world) -> None:
        progress = await record_progress(
            db, user_id=world.learner.id, language_id=world.spanish.id, category=world.greetings, score=99.9
        )
        unlocked = await propagate_unlock(
            db, user_id=world.learner.id, language_id=world.spanish.id, category=world.greetings, progress=progress
        )
        assert unlocked is None

    @pytest.mark.asyncio
    async def test_last_category_has_nothing_to_unlock(self, db: AsyncSession, world) -> None:
        progress = await record_progress(
            db, user_id=world.learner.id, language_id=world.spanish.id, category=world.food, score=100.0
        )
        unlocked = await propagate_unlock(
            db, user_id=world.learner.id, language_id=world.spanish.id, category=world.food, progress=progress
        )
        assert unlocked is None

    @pytest.mark.asyncio
    async def test_first_category_opens_on_creation(self, db: AsyncSession, world) -> None:
        progress = await find_progress(db, world.learner.id, world.spanish.id, world.greetings.id)
        assert progress is not None
        assert progress.unlocked
        assert progress.total_cards == 2

    @pytest.mark.asyncio
    async def test_ensure_first_category_is_idempotent(self, db: AsyncSession, world) -> None:
        again = await ensure_first_category_progress(db, world.learner.id, world.spanish.id)
        assert again is not None and again.unlocked
        assert await ensure_first_category_progress(db, world.learner.id, world.french.id) is None

    @pytest.mark.asyncio
    async def test_attempt_counters_accumulate(self, db: AsyncSession, world) -> None:
        for is_correct in (True, False, True):
            attempt = await record_attempt(
                db,
                attempt_id="x1",
                user_id=world.learner.id,
                language_id=world.spanish.id,
                category_id=world.greetings.id,
                exercise_type="test",
                score=25.0 if is_correct else 0.0,
                is_correct=is_correct,
            )
        await db.commit()
        assert attempt.score == pytest.approx(50.0)
        assert attempt.correct_answers == 2
        assert attempt.total_answers == 3
        count = len((await db.execute(select(Attempt).where(Attempt.attempt_id == "x1"))).scalars().all())
        assert count == 1

    @pytest.mark.asyncio
    async def test_empty_category_scores_zero(self, db: AsyncSession, world) -> None:
        empty = Category(language_id=world.spanish.id, name="Empty", order=3)
        db.add(empty)
        await db.commit()
        assert empty.required_score == 80.0
        assert await count_category_cards(db, empty.id, world.spanish.id) == 0

    @pytest.mark.asyncio
    async def test_sync_total_cards(self, db: AsyncSession, world) -> None:
        agua = (await db.execute(select(Word).where(Word.text == "agua"))).scalar_one()
        bread_word = world.bread.word_id
        db.add(Card(word_id=bread_word, translation_id=agua.id, category_id=world.greetings.id))
        await db.flush()
        assert await sync_total_cards(db, world.greetings.id, world.spanish.id) == 3
        await db.commit()
        progress = await find_progress(db, world.learner.id, world.spanish.id, world.greetings.id)
        await db.refresh(progress)
        assert progress.total_cards == 3


class TestQueue:
    @pytest.mark.asyncio
    async def test_review_deck_uses_unlocked_categories(self, db: AsyncSession, world) -> None:
        deck = await build_review_deck(db, world.learner.id, world.spanish.id)
        assert [card.id for card in deck.cards] == [world.hello.id, world.goodbye.id]
        assert deck.total == 2
        assert deck.attempt_id is None

    @pytest.mark.asyncio
    async def test_locked_category_deck_refused(self, db: AsyncSession, world) -> None:
        with pytest.raises(ForbiddenError, match="Category is locked"):
            await build_review_deck(db, world.learner.id, world.spanish.id, world.food.id)

    @pytest.mark.asyncio
    async def test_category_deck_resets_score(self, db: AsyncSession, world) -> None:
        await submit(db, world, world.hello, "hola")
        deck = await build_review_deck(db, world.learner.id, world.spanish.id, world.greetings.id)
        assert deck.attempt_id
        assert deck.total == 2
        progress = await find_progress(db, world.learner.id, world.spanish.id, world.greetings.id)
        assert progress.score == 0.0
        assert progress.max_score == pytest.approx(50.0)

    @pytest.mark.asyncio
    async def test_test_cards_include_correct_option(self, db: AsyncSession, world) -> None:
        deck = await build_review_deck(db, world.learner.id, world.spanish.id)
        choice_cards = await build_test_cards(db, deck, world.spanish.id)
        assert len(choice_cards) == 2
        for choice in choice_cards:
            correct = [option.text for option in choice.options if option.is_correct]
            assert correct == [choice.card.translation.text]
            assert 2 <= len(choice.options) <= 4

    @pytest.mark.asyncio
    async def test_list_cards_visibility(self, db: AsyncSession, world) -> None:
        learner = await db.get(User, world.learner.id)
        cards = await list_cards(db, learner, meaning="foo")
        assert [card.id for card in cards] == [world.bread.id]
        outsider = User(email="zoe@example.com", username="zoe", role="user", native_language_id=world.french.id)
        db.add(outsider)
        await db.commit()
        assert await list_cards(db, outsider) == []
        assert len(await list_cards(db, outsider, include_all=True)) == 3

    @pytest.mark.asyncio
    async def test_no_legacy_cards_due(self, db: AsyncSession, world) -> None:
        assert await due_legacy_cards(db, world.learner.id) == []
