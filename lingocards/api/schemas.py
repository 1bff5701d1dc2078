"""Pydantic schemas for API request/response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from lingocards.srs.assessment import ExerciseType


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# --- Languages & words ---


class LanguageCreate(BaseModel):
    code: str = Field(min_length=1, max_length=10)
    name: str = Field(min_length=1, max_length=100)


class LanguageUpdate(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=10)
    name: str | None = Field(default=None, min_length=1, max_length=100)


class LanguageResponse(ORMModel):
    id: int
    code: str
    name: str


class WordCreate(BaseModel):
    text: str = Field(min_length=1, max_length=500)
    language_id: int


class WordUpdate(BaseModel):
    text: str | None = Field(default=None, min_length=1, max_length=500)
    language_id: int | None = None


class WordResponse(ORMModel):
    id: int
    text: str
    language_id: int


# --- Categories ---


class CategoryCreate(BaseModel):
    language_id: int
    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    order: int = Field(ge=1)
    required_score: float | None = Field(default=None, ge=0, le=100)


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    order: int | None = Field(default=None, ge=1)
    required_score: float | None = Field(default=None, ge=0, le=100)


class CategoryOrder(BaseModel):
    id: int
    order: int = Field(ge=1)


class CategoryOrdersRequest(BaseModel):
    orders: list[CategoryOrder] = Field(min_length=1)


class CategoryResponse(ORMModel):
    id: int
    language_id: int
    name: str
    description: str
    order: int
    required_score: float


class CategorySummary(ORMModel):
    id: int
    name: str
    order: int
    required_score: float


# --- Cards ---


class CardCreate(BaseModel):
    word_id: int
    translation_id: int
    category_id: int
    meaning: str = ""


class CardUpdate(BaseModel):
    word_id: int | None = None
    translation_id: int | None = None
    category_id: int | None = None
    meaning: str | None = None


class CardResponse(ORMModel):
    id: int
    word: WordResponse
    translation: WordResponse
    category: CategorySummary
    meaning: str


class ReviewCardsResponse(BaseModel):
    """A deck of cards and the attempt id to submit answers under."""

    cards: list[CardResponse]
    attempt_id: str | None = None
    total: int


class OptionResponse(ORMModel):
    text: str
    is_correct: bool


class ChoiceCardResponse(BaseModel):
    id: int
    word: WordResponse
    category: CategorySummary
    options: list[OptionResponse]


class ChoiceCardsResponse(BaseModel):
    cards: list[ChoiceCardResponse]
    attempt_id: str | None = None
    total: int


class SubmitAnswerRequest(BaseModel):
    language_id: int
    answer: str
    attempt_id: str | None = Field(default=None, max_length=100)
    type: ExerciseType = ExerciseType.TEST


class AttemptResponse(ORMModel):
    attempt_id: str
    user_id: int
    language_id: int
    category_id: int
    type: str
    date: datetime
    score: float
    correct_answers: int
    total_answers: int


class ProgressResponse(ORMModel):
    id: int
    user_id: int
    language_id: int
    category_id: int
    total_cards: int
    score: float
    max_score: float
    unlocked: bool


class SubmitAnswerResponse(BaseModel):
    attempt: AttemptResponse
    progress: ProgressResponse
    is_correct: bool
    correct_translation: str
    quality: int
    unlocked_category_id: int | None = None


# --- Users ---


class UserCreate(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    username: str = Field(min_length=1, max_length=100)
    role: str = Field(default="user", pattern="^(user|admin)$")
    native_language_id: int | None = None
    learning_language_ids: list[int] = Field(default_factory=list)


class UserLanguagesUpdate(BaseModel):
    native_language_id: int | None = None
    learning_language_ids: list[int] = Field(default_factory=list)


class UserResponse(BaseModel):
    id: int
    email: str
    username: str
    role: str
    native_language_id: int | None
    learning_language_ids: list[int]


# --- Stats, leaderboard, sharing ---


class TypeStats(BaseModel):
    correct_answers: int = 0
    total_answers: int = 0


class ProgressWithCategory(ProgressResponse):
    category: CategorySummary


class StatsResponse(BaseModel):
    """Progress and attempt history for one user in one language."""

    progress: list[ProgressWithCategory]
    stats_by_type: dict[str, TypeStats]
    attempts: list[AttemptResponse]


class LeaderboardEntry(BaseModel):
    user_id: int
    username: str
    total_score: float
    avg_attempt_score: float
    avg_correct_percentage: float


class ShareAttemptResponse(BaseModel):
    share_url: str
    share_token: str
    expires_at: datetime


class SharedAttemptResponse(AttemptResponse):
    username: str
    language_name: str
    category_name: str


# --- Legacy SM-2 cards ---


class LegacyCardCreate(BaseModel):
    word: str = Field(min_length=1, max_length=500)
    translation: str = Field(min_length=1, max_length=500)
    category: str = ""


class LegacyReviewRequest(BaseModel):
    quality: int


class LegacyCardResponse(ORMModel):
    id: int
    user_id: int
    word: str
    translation: str
    category: str
    easiness: float
    interval: int
    repetitions: int
    next_review: datetime
    last_reviewed: datetime


class MessageResponse(BaseModel):
    message: str
