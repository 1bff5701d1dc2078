"""Scoring policy for submitted card answers.

Answers are compared after trimming and lowercasing. The result is binary:
a correct answer has quality 5, anything else quality 0. There is no partial
credit and no fuzzy matching.
"""

from dataclasses import dataclass
from enum import Enum

CORRECT_QUALITY = 5
INCORRECT_QUALITY = 0


class ExerciseType(str, Enum):
    """How a card is practised."""

    FLASH = "flash"          # Shown the translation, recall the prompt word
    TEST = "test"            # Multiple choice over translations
    DICTATION = "dictation"  # Hear the translation, type it


@dataclass(frozen=True)
class Judgement:
    """The outcome of checking one answer."""

    is_correct: bool
    quality: int
    expected: str
    actual: str


def normalize_answer(text: str) -> str:
    return text.strip().lower()


def expected_answer(exercise_type: ExerciseType | str, prompt_text: str, translation_text: str) -> str:
    """Pick the text an answer is checked against.

    Flash cards are answered with the prompt word; test and dictation
    exercises with the translation word.
    """
    if ExerciseType(exercise_type) is ExerciseType.FLASH:
        return prompt_text
    return translation_text


def judge_answer(answer: str | None, expected: str) -> Judgement:
    """Decide whether ``answer`` matches ``expected``."""
    actual = answer or ""
    is_correct = normalize_answer(actual) == normalize_answer(expected)
    return Judgement(
        is_correct=is_correct,
        quality=CORRECT_QUALITY if is_correct else INCORRECT_QUALITY,
        expected=expected,
        actual=actual,
    )
