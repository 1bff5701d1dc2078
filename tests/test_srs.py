"""Tests for the scoring policy, attempt scoring and the SM-2 scheduler."""

from datetime import datetime, timedelta

import pytest

from lingocards.errors import BadRequestError
from lingocards.srs.assessment import (
    CORRECT_QUALITY,
    INCORRECT_QUALITY,
    ExerciseType,
    expected_answer,
    judge_answer,
    normalize_answer,
)
from lingocards.srs.attempts import attempt_score
from lingocards.srs.sm2 import MIN_EASINESS, SM2Scheduler, SM2State

# --- Scoring policy ---


class TestAssessment:
    def test_exact_match(self) -> None:
        judgement = judge_answer("hola", "hola")
        assert judgement.is_correct
        assert judgement.quality == CORRECT_QUALITY

    def test_case_and_whitespace_ignored(self) -> None:
        assert judge_answer("  HoLa ", "hola").is_correct
        assert judge_answer("hola", " Hola\t").is_correct

    def test_wrong_answer(self) -> None:
        judgement = judge_answer("adiós", "hola")
        assert not judgement.is_correct
        assert judgement.quality == INCORRECT_QUALITY
        assert judgement.expected == "hola"

    def test_no_partial_credit(self) -> None:
        assert judge_answer("hol", "hola").quality == INCORRECT_QUALITY

    def test_missing_answer_is_wrong(self) -> None:
        judgement = judge_answer(None, "hola")
        assert not judgement.is_correct
        assert judgement.actual == ""

    def test_accents_matter(self) -> None:
        assert not judge_answer("adios", "adiós").is_correct

    def test_normalize(self) -> None:
        assert normalize_answer("  Buenos Días ") == "buenos días"

    def test_flash_expects_prompt_word(self) -> None:
        assert expected_answer(ExerciseType.FLASH, "hello", "hola") == "hello"

    def test_test_and_dictation_expect_translation(self) -> None:
        assert expected_answer(ExerciseType.TEST, "hello", "hola") == "hola"
        assert expected_answer("dictation", "hello", "hola") == "hola"

    def test_unknown_exercise_type(self) -> None:
        with pytest.raises(ValueError):
            expected_answer("essay", "hello", "hola")


# --- Attempt scoring ---


class TestAttemptScore:
    def test_correct_card_splits_hundred(self) -> None:
        assert attempt_score(CORRECT_QUALITY, 2) == 50.0
        assert attempt_score(CORRECT_QUALITY, 4) == 25.0

    def test_wrong_card_scores_zero(self) -> None:
        assert attempt_score(INCORRECT_QUALITY, 2) == 0.0

    def test_no_cards_scores_zero(self) -> None:
        assert attempt_score(CORRECT_QUALITY, 0) == 0.0

    def test_full_category_reaches_hundred(self) -> None:
        total = sum(attempt_score(CORRECT_QUALITY, 3) for _ in range(3))
        assert total == pytest.approx(100.0)


# --- SM-2 scheduler ---


class TestSM2:
    def setup_method(self) -> None:
        self.scheduler = SM2Scheduler()
        self.now = datetime(2024, 1, 1, 12, 0, 0)
        self.state = SM2State(next_review=self.now, last_reviewed=self.now)

    def test_first_review(self) -> None:
        state = self.scheduler.review(self.state, 5, review_time=self.now)
        assert state.repetitions == 1
        assert state.interval == 1
        assert state.easiness == pytest.approx(2.6)
        assert state.next_review == self.now + timedelta(days=1)
        assert state.last_reviewed == self.now

    def test_second_review(self) -> None:
        state = self.scheduler.review(self.state, 5, review_time=self.now)
        state = self.scheduler.review(state, 5, review_time=self.now)
        assert state.repetitions == 2
        assert state.interval == 6

    def test_third_review_multiplies_interval(self) -> None:
        state = self.state
        for _ in range(3):
            state = self.scheduler.review(state, 5, review_time=self.now)
        assert state.repetitions == 3
        assert state.easiness == pytest.approx(2.8)
        assert state.interval == round(6 * 2.8)
        assert state.next_review == self.now + timedelta(days=17)

    def test_failure_resets_interval(self) -> None:
        state = self.state
        for _ in range(4):
            state = self.scheduler.review(state, 5, review_time=self.now)
        assert state.interval > 1
        failed = self.scheduler.review(state, 2, review_time=self.now)
        assert failed.interval == 1
        assert failed.repetitions == state.repetitions + 1

    def test_easiness_floor(self) -> None:
        state = self.state
        for _ in range(10):
            state = self.scheduler.review(state, 0, review_time=self.now)
        assert state.easiness == MIN_EASINESS

    def test_quality_three_lowers_easiness(self) -> None:
        state = self.scheduler.review(self.state, 3, review_time=self.now)
        assert state.easiness == pytest.approx(2.36)

    def test_input_state_untouched(self) -> None:
        self.scheduler.review(self.state, 5, review_time=self.now)
        assert self.state.repetitions == 0
        assert self.state.easiness == 2.5

    @pytest.mark.parametrize("quality", [-1, 6, 2.5, True, "5"])
    def test_invalid_quality(self, quality: object) -> None:
        with pytest.raises(BadRequestError):
            self.scheduler.review(self.state, quality)  # type: ignore[arg-type]
