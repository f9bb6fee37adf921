"""
Deck statistics derived from the card collection and the session log.

This is a pure computation module with no I/O.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from cardwise.application.scheduler import is_due, is_mastered, is_new
from cardwise.domain.constants import MAX_STREAK_DAYS
from cardwise.domain.models import Card, SessionRecord


@dataclass
class DeckStatistics:
    """Snapshot of a deck's study progress."""

    total_cards: int
    new_cards: int
    due_cards: int
    mastered_cards: int
    study_streak: int  # consecutive days with a session, ending today
    total_study_time: float  # seconds
    average_accuracy: float  # percent, 0 when nothing answered


class StatsCalculator:
    """
    Computes deck statistics.

    Stateless and side-effect free.
    """

    def compute(
        self,
        cards: list[Card],
        sessions: list[SessionRecord],
        now: datetime,
    ) -> DeckStatistics:
        return DeckStatistics(
            total_cards=len(cards),
            new_cards=sum(1 for c in cards if is_new(c)),
            due_cards=sum(1 for c in cards if is_due(c, now)),
            mastered_cards=sum(1 for c in cards if is_mastered(c)),
            study_streak=self._compute_streak(sessions, now),
            total_study_time=sum(s.total_time for s in sessions),
            average_accuracy=self._compute_accuracy(sessions),
        )

    def _compute_streak(self, sessions: list[SessionRecord], now: datetime) -> int:
        """
        Count consecutive calendar days, walking back from today, that have
        at least one session. A day without a session ends the streak.
        """
        study_days = {s.started_at.date() for s in sessions}
        day = now.date()
        streak = 0

        while streak < MAX_STREAK_DAYS and day in study_days:
            streak += 1
            day -= timedelta(days=1)

        return streak

    def _compute_accuracy(self, sessions: list[SessionRecord]) -> float:
        correct = sum(s.correct_answers for s in sessions)
        answered = sum(s.correct_answers + s.incorrect_answers for s in sessions)
        if answered == 0:
            return 0.0
        return correct / answered * 100
