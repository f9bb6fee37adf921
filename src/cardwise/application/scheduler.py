"""
Spaced-repetition scheduler.

Two pure operations drive every study session:

1. ``apply_review`` moves a single card through its review state machine
   (interval ladder, ease factor, mastery, streak counters).
2. ``select_study_batch`` partitions a deck into the bucket for a study mode.

Neither function reads the clock or performs I/O; ``now`` is always passed in.
"""

import logging
import math
import random
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Literal

from cardwise.domain.constants import (
    DIFFICULT_BATCH_SIZE,
    DIFFICULT_INCORRECT_STREAK,
    DIFFICULT_MASTERY_CEILING,
    EASE_FACTOR_DECREASE,
    EASE_FACTOR_INCREASE,
    EASY_QUALITY,
    INITIAL_EASE_FACTOR,
    INTERVALS,
    MASTERED_BATCH_SIZE,
    MASTERY_GAIN,
    MASTERY_LOSS,
    MASTERY_THRESHOLD,
    MAX_MASTERY,
    MAX_QUALITY,
    MIN_EASE_FACTOR,
    MIN_MASTERY,
    MIN_QUALITY,
    MIXED_DUE_BATCH_SIZE,
    MIXED_NEW_BATCH_SIZE,
    NEW_BATCH_SIZE,
    PASSING_QUALITY,
    REVIEW_BATCH_SIZE,
)
from cardwise.domain.errors import InvalidQualityError
from cardwise.domain.models import Card, StudyBatch, StudyMode

logger = logging.getLogger(__name__)

CardOrder = Literal["sequential", "random", "due"]


# ---------------------------------------------------------------------------
# Review transition
# ---------------------------------------------------------------------------


def validate_quality(quality: object) -> int:
    """Return quality unchanged if it is an int in 0..5, else raise."""
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQualityError(quality)
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidQualityError(quality)
    return quality


def _round_half_up(value: float) -> int:
    # Interval growth rounds .5 upward rather than to the nearest even day.
    return math.floor(value + 0.5)


def apply_review(card: Card, quality: int, now: datetime) -> Card:
    """
    Apply one review to a card and return the updated copy.

    Args:
        card: The card being reviewed, in any state (including never reviewed).
        quality: Recall quality, 0 (blackout) to 5 (perfect).
        now: Time of the review.

    Returns:
        A new Card; the input card is left untouched.

    Raises:
        InvalidQualityError: If quality is not an integer in 0..5.
    """
    validate_quality(quality)

    prev_ease = card.ease_factor if card.ease_factor is not None else INITIAL_EASE_FACTOR
    prev_interval = card.interval if card.interval is not None else 1
    prior_correct = card.consecutive_correct

    if quality < PASSING_QUALITY:
        consecutive_correct = 0
        consecutive_incorrect = card.consecutive_incorrect + 1
        interval = 1
        ease_factor = max(MIN_EASE_FACTOR, prev_ease - EASE_FACTOR_DECREASE)
    else:
        consecutive_correct = prior_correct + 1
        consecutive_incorrect = 0
        if prior_correct == 0:
            interval = INTERVALS[0]
        elif prior_correct < len(INTERVALS):
            interval = INTERVALS[prior_correct]
        else:
            interval = _round_half_up(prev_interval * prev_ease)

        # No upper bound: long runs of easy answers keep stretching intervals.
        ease_factor = prev_ease + EASE_FACTOR_INCREASE if quality >= EASY_QUALITY else prev_ease

    mastery_change = MASTERY_GAIN if quality >= PASSING_QUALITY else -MASTERY_LOSS
    mastery_level = max(MIN_MASTERY, min(MAX_MASTERY, card.mastery_level + mastery_change))

    updated = replace(
        card,
        consecutive_correct=consecutive_correct,
        consecutive_incorrect=consecutive_incorrect,
        interval=interval,
        ease_factor=ease_factor,
        next_review_date=now + timedelta(days=interval),
        mastery_level=mastery_level,
        review_count=card.review_count + 1,
        last_reviewed=now,
    )
    logger.debug(
        f"Reviewed {card.id}: q={quality} interval={interval}d "
        f"ease={ease_factor:.2f} mastery={mastery_level}"
    )
    return updated


# ---------------------------------------------------------------------------
# Bucket predicates
# ---------------------------------------------------------------------------


def is_new(card: Card) -> bool:
    return card.last_reviewed is None


def is_due(card: Card, now: datetime) -> bool:
    """Due when the scheduled date falls on or before today (day granularity)."""
    if card.next_review_date is None:
        return False
    return card.next_review_date.date() <= now.date()


def is_mastered(card: Card) -> bool:
    return card.mastery_level >= MASTERY_THRESHOLD


def is_difficult(card: Card) -> bool:
    return (
        card.consecutive_incorrect > DIFFICULT_INCORRECT_STREAK
        or card.mastery_level < DIFFICULT_MASTERY_CEILING
    )


def _take(cards: Iterable[Card], predicate: Callable[[Card], bool], limit: int) -> StudyBatch:
    batch: StudyBatch = []
    for card in cards:
        if len(batch) >= limit:
            break
        if predicate(card):
            batch.append(card)
    return batch


# ---------------------------------------------------------------------------
# Batch selection
# ---------------------------------------------------------------------------


def select_study_batch(cards: list[Card], mode: StudyMode | str, now: datetime) -> StudyBatch:
    """
    Select the ordered subset of a deck to study in the given mode.

    Filters keep the incoming collection order; each mode truncates to its cap.
    An empty result is a valid outcome, not an error.

    Raises:
        UnknownStudyModeError: If mode is not a recognized study mode.
    """
    mode = StudyMode.parse(mode)

    if mode is StudyMode.NEW:
        batch = _take(cards, is_new, NEW_BATCH_SIZE)
    elif mode is StudyMode.REVIEW:
        batch = _take(
            cards,
            lambda c: is_due(c, now) and c.mastery_level < MASTERY_THRESHOLD,
            REVIEW_BATCH_SIZE,
        )
    elif mode is StudyMode.MASTERED:
        batch = _take(cards, is_mastered, MASTERED_BATCH_SIZE)
    elif mode is StudyMode.DIFFICULT:
        batch = _take(cards, is_difficult, DIFFICULT_BATCH_SIZE)
    else:
        # Mixed: new cards first, then anything due regardless of mastery.
        batch = _take(cards, is_new, MIXED_NEW_BATCH_SIZE) + _take(
            cards, lambda c: is_due(c, now), MIXED_DUE_BATCH_SIZE
        )

    logger.debug(f"Selected {len(batch)} of {len(cards)} cards for '{mode.value}' mode")
    return batch


def _instant(dt: datetime | None) -> float:
    # Naive values are local time, so aware and naive stamps compare on one axis.
    return dt.timestamp() if dt is not None else 0.0


def order_cards(
    cards: list[Card],
    order: CardOrder = "sequential",
    rng: random.Random | None = None,
) -> list[Card]:
    """
    Return a reordered copy of cards.

    - sequential: newest first by creation time.
    - random: shuffled with the supplied RNG (seed it for reproducible order).
    - due: earliest next_review_date first; unscheduled cards go last.
    """
    if order == "sequential":
        return sorted(
            cards,
            key=lambda c: (c.created_at is not None, _instant(c.created_at)),
            reverse=True,
        )
    if order == "random":
        shuffled = list(cards)
        (rng or random.Random()).shuffle(shuffled)
        return shuffled
    if order == "due":
        return sorted(
            cards,
            key=lambda c: (c.next_review_date is None, _instant(c.next_review_date)),
        )
    raise ValueError(f"Unknown card order: {order!r}")
