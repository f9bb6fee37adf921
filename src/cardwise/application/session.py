"""
Study session controller.

Thin orchestration over the scheduler: pick a batch, walk it with a cursor,
apply each response, persist the collection and tally the results.
"""

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime

from ulid import ULID

from cardwise.application.scheduler import apply_review, order_cards, select_study_batch
from cardwise.domain.errors import NoCardsAvailableError, SessionFinishedError
from cardwise.domain.models import Card, SessionRecord, SessionStats, StudyBatch, StudyMode
from cardwise.domain.ports import CardRepository, SessionLogRepository

logger = logging.getLogger(__name__)


@dataclass
class SessionSummary:
    """Result of a finished session."""

    mode: StudyMode
    stats: SessionStats
    record: SessionRecord


class StudySessionController:
    """
    Drives one study session at a time for a single user.

    Follows Dependency Inversion: depends on the repository ports,
    not on concrete storage adapters.
    """

    def __init__(
        self,
        cards_repo: CardRepository,
        user_id: str,
        sessions_repo: SessionLogRepository | None = None,
        clock: Callable[[], datetime] = datetime.now,
        rng: random.Random | None = None,
    ):
        self._cards_repo = cards_repo
        self._sessions_repo = sessions_repo
        self._clock = clock
        self._rng = rng or random.Random()
        self.user_id = user_id

        self.cards: list[Card] = []
        self.batch: StudyBatch = []
        self.position = 0
        self.stats = SessionStats()
        self.record: SessionRecord | None = None
        self._finished = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.record is not None and not self._finished

    @property
    def is_finished(self) -> bool:
        return self._finished

    @property
    def current(self) -> Card | None:
        if not self.is_active or self.position >= len(self.batch):
            return None
        return self.batch[self.position]

    @property
    def remaining(self) -> int:
        if not self.is_active:
            return 0
        return len(self.batch) - self.position

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, mode: StudyMode | str, shuffle: bool = False) -> StudyBatch:
        """
        Load the deck and open a session for the given mode.

        Raises:
            UnknownStudyModeError: If mode is not recognized.
            NoCardsAvailableError: If the mode selects no cards.
        """
        mode = StudyMode.parse(mode)
        now = self._clock()

        self.cards = await self._cards_repo.load(self.user_id)
        batch = select_study_batch(self.cards, mode, now)
        if not batch:
            raise NoCardsAvailableError(mode.value)

        if shuffle:
            batch = order_cards(batch, "random", self._rng)

        self.batch = batch
        self.position = 0
        self.stats = SessionStats()
        self.record = SessionRecord(id=str(ULID()), mode=mode, started_at=now)
        self._finished = False

        logger.info(f"Started '{mode.value}' session with {len(batch)} cards")
        return batch

    async def respond(self, quality: int) -> Card:
        """
        Record the user's answer for the current card and advance.

        The updated collection is saved after every answer; a failed save is
        logged and the session carries on with the in-memory state.

        Returns:
            The reviewed card.
        """
        card = self.current
        if card is None or self.record is None:
            raise SessionFinishedError("No active study session")

        now = self._clock()
        updated = apply_review(card, quality, now)

        self.cards = [updated if c.id == updated.id else c for c in self.cards]
        self.batch[self.position] = updated

        if not await self._cards_repo.save(self.user_id, self.cards):
            logger.warning(f"Could not persist review of card {updated.id}")

        self.stats = self.stats.record(quality)
        self.record.cards_studied.append(updated.id)
        self.position += 1

        if self.position >= len(self.batch):
            await self.finish()

        return updated

    async def finish(self) -> SessionSummary:
        """End the session (early or after the last card) and log it."""
        if self.record is None:
            raise SessionFinishedError("No study session was started")

        if not self._finished:
            ended_at = self._clock()
            self.record = replace(
                self.record,
                ended_at=ended_at,
                correct_answers=self.stats.correct,
                incorrect_answers=self.stats.incorrect,
                total_time=(ended_at - self.record.started_at).total_seconds(),
            )
            self._finished = True

            if self._sessions_repo is not None:
                if not await self._sessions_repo.append(self.user_id, self.record):
                    logger.warning(f"Could not save session log {self.record.id}")

            logger.info(
                f"Finished '{self.record.mode.value}' session: "
                f"{self.stats.correct}/{self.stats.total} correct"
            )

        return SessionSummary(mode=self.record.mode, stats=self.stats, record=self.record)
