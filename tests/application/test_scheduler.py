import random
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from cardwise.application.scheduler import (
    apply_review,
    is_due,
    order_cards,
    select_study_batch,
)
from cardwise.domain.constants import INTERVALS
from cardwise.domain.errors import InvalidQualityError, UnknownStudyModeError
from cardwise.domain.models import StudyMode

# --- apply_review ---


def test_first_success_on_new_card(make_card, now):
    card = make_card()
    updated = apply_review(card, 5, now)

    assert updated.interval == 1
    assert updated.ease_factor == pytest.approx(2.65)
    assert updated.consecutive_correct == 1
    assert updated.consecutive_incorrect == 0
    assert updated.mastery_level == 15
    assert updated.review_count == 1
    assert updated.last_reviewed == now
    assert updated.next_review_date == now + timedelta(days=1)


def test_ladder_for_five_perfect_answers(make_card, now):
    card = make_card()
    intervals = []
    for day in range(5):
        card = apply_review(card, 5, now + timedelta(days=day))
        intervals.append(card.interval)

    assert intervals == [1, 6, 15, 30, 90]
    assert card.consecutive_correct == 5


def test_ladder_uses_prior_streak_as_index(make_card, now):
    card = make_card(consecutive_correct=6, interval=180, ease_factor=2.5, last_reviewed=now)
    updated = apply_review(card, 4, now)
    assert updated.interval == INTERVALS[6] == 365


def test_growth_past_ladder_multiplies_by_ease(make_card, now):
    card = make_card(consecutive_correct=7, interval=365, ease_factor=2.5, last_reviewed=now)
    updated = apply_review(card, 3, now)

    # 365 * 2.5 = 912.5 rounds half up
    assert updated.interval == 913
    assert updated.ease_factor == 2.5
    assert updated.consecutive_correct == 8


def test_growth_past_ladder_defaults_when_unset(make_card, now):
    card = make_card(consecutive_correct=9, last_reviewed=now)
    updated = apply_review(card, 3, now)
    assert updated.interval == 3  # round(1 * 2.5) half up


def test_quality_three_keeps_ease(make_card, now):
    card = make_card(ease_factor=2.1, consecutive_correct=1, last_reviewed=now)
    updated = apply_review(card, 3, now)
    assert updated.ease_factor == 2.1
    assert updated.interval == 6


def test_ease_has_no_upper_bound(make_card, now):
    card = make_card()
    for day in range(20):
        card = apply_review(card, 5, now + timedelta(days=day))
    assert card.ease_factor == pytest.approx(2.5 + 20 * 0.15)


def test_failure_resets_streak(make_card, now):
    card = make_card(
        consecutive_correct=4, interval=30, ease_factor=2.5, mastery_level=60, last_reviewed=now
    )
    updated = apply_review(card, 2, now)

    assert updated.consecutive_correct == 0
    assert updated.consecutive_incorrect == 1
    assert updated.interval == 1
    assert updated.ease_factor == pytest.approx(2.4)
    assert updated.mastery_level == 50


def test_failure_streak_accumulates(make_card, now):
    card = make_card()
    for _ in range(3):
        card = apply_review(card, 0, now)
    assert card.consecutive_incorrect == 3
    assert card.consecutive_correct == 0


def test_ease_floor(make_card, now):
    card = make_card(ease_factor=1.35, last_reviewed=now)
    updated = apply_review(card, 1, now)
    assert updated.ease_factor == 1.3


def test_success_after_failure_restarts_ladder(make_card, now):
    card = make_card(consecutive_incorrect=2, interval=1, ease_factor=1.8, last_reviewed=now)
    updated = apply_review(card, 4, now)
    assert updated.interval == 1
    assert updated.consecutive_correct == 1
    assert updated.consecutive_incorrect == 0


def test_mastery_clamped(make_card, now):
    assert apply_review(make_card(mastery_level=95), 5, now).mastery_level == 100
    assert apply_review(make_card(mastery_level=5), 0, now).mastery_level == 0


def test_untouched_fields_pass_through(make_card, now):
    card = make_card(reasoning="because", tags=["Python"], category="Lang", difficulty="hard")
    updated = apply_review(card, 4, now)

    assert updated.id == card.id
    assert updated.question == card.question
    assert updated.answer == card.answer
    assert updated.reasoning == card.reasoning
    assert updated.tags == card.tags
    assert updated.category == card.category
    assert updated.difficulty == card.difficulty
    assert updated.created_at == card.created_at


def test_input_card_not_mutated(make_card, now):
    card = make_card()
    snapshot = replace(card)
    apply_review(card, 5, now)
    assert card == snapshot


@pytest.mark.parametrize("quality", [-1, 6, 2.5, True, "3", None])
def test_invalid_quality_rejected(make_card, now, quality):
    card = make_card()
    snapshot = replace(card)
    with pytest.raises(InvalidQualityError):
        apply_review(card, quality, now)
    assert card == snapshot


@pytest.mark.parametrize("quality", range(6))
@pytest.mark.parametrize(
    "state",
    [
        {},
        {"consecutive_correct": 3, "interval": 30, "ease_factor": 2.8, "mastery_level": 80},
        {"consecutive_correct": 12, "interval": 400, "ease_factor": 1.3, "mastery_level": 100},
        {"consecutive_incorrect": 5, "interval": 1, "ease_factor": 1.3, "mastery_level": 0},
    ],
)
def test_invariants_hold_after_review(make_card, now, quality, state):
    card = make_card(review_count=7, last_reviewed=now - timedelta(days=3), **state)
    updated = apply_review(card, quality, now)

    assert 0 <= updated.mastery_level <= 100
    assert updated.ease_factor >= 1.3
    assert updated.interval >= 1
    assert updated.consecutive_correct == 0 or updated.consecutive_incorrect == 0
    assert updated.consecutive_correct + updated.consecutive_incorrect > 0
    assert updated.review_count == card.review_count + 1
    assert updated.next_review_date == now + timedelta(days=updated.interval)


# --- select_study_batch ---


def _due(make_card, now, **kw):
    fields = {
        "last_reviewed": now - timedelta(days=6),
        "next_review_date": now - timedelta(days=1),
        "interval": 5,
        "mastery_level": 40,
    }
    fields.update(kw)
    return make_card(**fields)


def _future(make_card, now, **kw):
    fields = {
        "last_reviewed": now,
        "next_review_date": now + timedelta(days=10),
        "interval": 10,
        "mastery_level": 60,
    }
    fields.update(kw)
    return make_card(**fields)


def test_mixed_puts_new_before_due(make_card, now):
    due = [_due(make_card, now) for _ in range(15)]
    new = [make_card() for _ in range(10)]
    # Interleave to show the result is grouped, not input-ordered overall
    cards = [c for pair in zip(due, new) for c in pair] + due[10:]

    batch = select_study_batch(cards, "mixed", now)

    assert len(batch) == 25
    assert [c.id for c in batch[:10]] == [c.id for c in new]
    assert [c.id for c in batch[10:]] == [c.id for c in due]


def test_mixed_caps(make_card, now):
    cards = [make_card() for _ in range(15)] + [_due(make_card, now) for _ in range(25)]
    batch = select_study_batch(cards, StudyMode.MIXED, now)
    assert len(batch) == 30
    assert sum(1 for c in batch if c.last_reviewed is None) == 10


def test_mixed_ignores_mastery_for_due_cards(make_card, now):
    mastered_due = _due(make_card, now, mastery_level=95)
    assert select_study_batch([mastered_due], "mixed", now) == [mastered_due]
    assert select_study_batch([mastered_due], "review", now) == []


def test_new_mode(make_card, now):
    cards = [make_card() for _ in range(25)] + [_future(make_card, now)]
    batch = select_study_batch(cards, "new", now)
    assert len(batch) == 20
    assert batch == cards[:20]


def test_review_mode_excludes_future_and_new(make_card, now):
    due = _due(make_card, now)
    cards = [make_card(), _future(make_card, now), due]
    assert select_study_batch(cards, "review", now) == [due]


def test_review_mode_cap(make_card, now):
    cards = [_due(make_card, now) for _ in range(40)]
    assert len(select_study_batch(cards, "review", now)) == 30


def test_mastery_threshold_boundary(make_card, now):
    card = _due(make_card, now, mastery_level=85)
    assert select_study_batch([card], "review", now) == []
    assert select_study_batch([card], "mastered", now) == [card]

    below = _due(make_card, now, mastery_level=84)
    assert select_study_batch([below], "review", now) == [below]
    assert select_study_batch([below], "mastered", now) == []


def test_mastered_mode_cap(make_card, now):
    cards = [_future(make_card, now, mastery_level=90) for _ in range(25)]
    assert len(select_study_batch(cards, "mastered", now)) == 20


def test_difficult_mode(make_card, now):
    struggling = _future(make_card, now, consecutive_incorrect=3, mastery_level=50)
    borderline = _future(make_card, now, consecutive_incorrect=2, mastery_level=50)
    weak = _future(make_card, now, mastery_level=29)
    solid = _future(make_card, now, mastery_level=30)

    batch = select_study_batch([struggling, borderline, weak, solid], "difficult", now)
    assert batch == [struggling, weak]


def test_difficult_mode_cap(make_card, now):
    cards = [_future(make_card, now, mastery_level=10) for _ in range(20)]
    assert len(select_study_batch(cards, "difficult", now)) == 15


def test_due_uses_calendar_day(make_card, now):
    later_today = _due(make_card, now, next_review_date=now.replace(hour=23, minute=59))
    tomorrow = _due(
        make_card, now, next_review_date=datetime(now.year, now.month, now.day + 1, 0, 1)
    )
    assert is_due(later_today, now)
    assert not is_due(tomorrow, now)
    assert select_study_batch([later_today, tomorrow], "review", now) == [later_today]


def test_empty_batch_is_not_an_error(make_card, now):
    assert select_study_batch([], "mixed", now) == []
    assert select_study_batch([make_card()], "mastered", now) == []


def test_mode_names_are_case_insensitive(make_card, now):
    card = make_card()
    assert select_study_batch([card], "NEW", now) == [card]


def test_unknown_mode_fails_closed(make_card, now):
    with pytest.raises(UnknownStudyModeError):
        select_study_batch([make_card()], "cram", now)


def test_batch_is_view_not_copy(make_card, now):
    card = make_card()
    assert select_study_batch([card], "new", now)[0] is card


# --- order_cards ---


def test_order_random_is_reproducible_with_seed(make_card):
    cards = [make_card() for _ in range(10)]
    first = order_cards(cards, "random", random.Random(7))
    second = order_cards(cards, "random", random.Random(7))

    assert [c.id for c in first] == [c.id for c in second]
    assert sorted(c.id for c in first) == sorted(c.id for c in cards)
    assert [c.id for c in cards] == [f"card-{i}" for i in range(1, 11)]


def test_order_sequential_newest_first(make_card):
    cards = [make_card() for _ in range(3)]
    assert order_cards(cards, "sequential") == cards[::-1]


def test_order_due_unscheduled_last(make_card, now):
    late = make_card(next_review_date=now + timedelta(days=5))
    unscheduled = make_card()
    early = make_card(next_review_date=now - timedelta(days=2))

    assert order_cards([late, unscheduled, early], "due") == [early, late, unscheduled]


def test_order_mixes_aware_and_naive_timestamps(make_card):
    # Imported JSON with a "Z" suffix yields aware datetimes next to naive local ones.
    aware = make_card(
        created_at=datetime(2024, 6, 1, tzinfo=timezone.utc),
        next_review_date=datetime(2024, 6, 10, tzinfo=timezone.utc),
    )
    naive = make_card(created_at=datetime(2024, 1, 1), next_review_date=datetime(2024, 2, 1))
    unscheduled = make_card(created_at=None)

    assert order_cards([naive, unscheduled, aware], "sequential") == [aware, naive, unscheduled]
    assert order_cards([unscheduled, aware, naive], "due") == [naive, aware, unscheduled]


def test_order_unknown_raises(make_card):
    with pytest.raises(ValueError):
        order_cards([make_card()], "alphabetical")
