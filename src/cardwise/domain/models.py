"""
Domain models for flashcards and study sessions.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Literal

from .constants import DEFAULT_CATEGORY, DEFAULT_DIFFICULTY, PASSING_QUALITY
from .errors import UnknownStudyModeError

Difficulty = Literal["easy", "medium", "hard"]


class StudyMode(str, Enum):
    """Named selection policy that partitions a deck for a session."""

    NEW = "new"
    REVIEW = "review"
    MASTERED = "mastered"
    DIFFICULT = "difficult"
    MIXED = "mixed"

    @classmethod
    def parse(cls, value: "str | StudyMode") -> "StudyMode":
        """Resolve a mode name, failing closed on anything unrecognized."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise UnknownStudyModeError(value)


@dataclass
class Card:
    """
    A single flashcard.

    Attributes:
        id: Opaque identifier assigned at creation. Never changes.
        question: Prompt side of the card.
        answer: Answer side of the card.
        reasoning: Optional explanation shown with the answer.
        mastery_level: 0 (unknown) to 100 (fully mastered).
        review_count: Number of reviews applied so far.
        last_reviewed: Time of the most recent review. None marks a new card.
        next_review_date: When the card becomes due again.
        interval: Days between last_reviewed and next_review_date.
        ease_factor: Multiplier for interval growth past the fixed ladder.
        consecutive_correct: Current streak of passing reviews.
        consecutive_incorrect: Current streak of failed reviews.
    """

    id: str
    question: str
    answer: str
    reasoning: str | None = None
    category: str = DEFAULT_CATEGORY
    difficulty: Difficulty = DEFAULT_DIFFICULTY
    tags: list[str] = field(default_factory=list)
    user_tags: list[str] = field(default_factory=list)
    system_tags: list[str] = field(default_factory=list)
    created_at: datetime | None = None

    # Review state
    mastery_level: int = 0
    review_count: int = 0
    last_reviewed: datetime | None = None
    next_review_date: datetime | None = None
    interval: int | None = None
    ease_factor: float | None = None
    consecutive_correct: int = 0
    consecutive_incorrect: int = 0

    @property
    def is_new(self) -> bool:
        return self.last_reviewed is None


# A batch is an ordered, non-owning view over the deck.
StudyBatch = list[Card]


@dataclass(frozen=True)
class SessionStats:
    """Running tally of answers within one study session."""

    correct: int = 0
    incorrect: int = 0
    total: int = 0

    def record(self, quality: int) -> "SessionStats":
        if quality >= PASSING_QUALITY:
            return replace(self, correct=self.correct + 1, total=self.total + 1)
        return replace(self, incorrect=self.incorrect + 1, total=self.total + 1)

    @property
    def accuracy(self) -> float:
        if self.total == 0:
            return 0.0
        return self.correct / self.total * 100


@dataclass
class SessionRecord:
    """
    A finished (or in-progress) study session, kept for analytics.

    Attributes:
        total_time: Seconds between start and end.
    """

    id: str
    mode: StudyMode
    started_at: datetime
    ended_at: datetime | None = None
    cards_studied: list[str] = field(default_factory=list)
    correct_answers: int = 0
    incorrect_answers: int = 0
    total_time: float = 0.0
