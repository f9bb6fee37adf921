"""Service for creating, editing and filtering cards outside of review."""

import logging
import re
from dataclasses import replace
from datetime import datetime

from ulid import ULID

from cardwise.domain.constants import DEFAULT_CATEGORY, DEFAULT_DIFFICULTY
from cardwise.domain.errors import CardNotFoundError
from cardwise.domain.models import Card, Difficulty

logger = logging.getLogger(__name__)

_PREFIX = re.compile(r"^[QAR]:\s*", re.IGNORECASE)

# (tag, keywords) pairs; a tag applies when any keyword occurs in the card text.
SYSTEM_TAG_RULES: list[tuple[str, tuple[str, ...]]] = [
    # Subjects
    ("JavaScript", ("javascript", "js")),
    ("React", ("react", "jsx")),
    ("Python", ("python",)),
    ("Java", ("java",)),
    ("Database", ("sql", "database")),
    ("Algorithms", ("algorithm", "data structure")),
    ("Web Development", ("html", "css")),
    ("API", ("api", "rest")),
    ("Version Control", ("git", "version control")),
    ("Testing", ("testing", "unit test")),
    ("Design Patterns", ("design pattern",)),
    ("Security", ("security", "authentication")),
    ("Performance", ("performance", "optimization")),
    ("Cloud Computing", ("cloud", "aws", "azure")),
    ("DevOps", ("docker", "kubernetes")),
    ("Machine Learning", ("machine learning", "ai")),
    ("Frontend", ("frontend", "ui")),
    ("Backend", ("backend", "server")),
    ("Mobile Development", ("mobile", "ios", "android")),
    # Level
    ("Fundamentals", ("basic", "fundamental")),
    ("Advanced", ("advanced", "complex")),
    ("Interview Prep", ("interview", "question")),
    # Topics
    ("Data Structures", ("array", "list")),
    ("Functions", ("function", "method")),
    ("OOP", ("class", "object")),
    ("Asynchronous", ("async", "promise")),
    ("Error Handling", ("error", "exception")),
]


def generate_card_id() -> str:
    """Generate a stable card ID using ULID."""
    return str(ULID())


def _dedupe(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def parse_tag_list(raw: str | None) -> list[str]:
    """Split a comma-separated tag string, dropping blanks."""
    if not raw:
        return []
    return _dedupe([t.strip() for t in raw.split(",") if t.strip()])


def generate_system_tags(question: str, answer: str, reasoning: str | None = None) -> list[str]:
    """
    Suggest tags from simple keyword matches on the card content.

    Matching is substring-based and case-insensitive.
    """
    content = f"{question} {answer} {reasoning or ''}".lower()
    return _dedupe(
        [tag for tag, keywords in SYSTEM_TAG_RULES if any(k in content for k in keywords)]
    )


def new_card(
    question: str,
    answer: str,
    reasoning: str | None = None,
    user_tags: list[str] | None = None,
    now: datetime | None = None,
) -> Card:
    """Build a never-reviewed card with system tags attached."""
    user_tags = _dedupe(user_tags or [])
    system_tags = generate_system_tags(question, answer, reasoning)
    return Card(
        id=generate_card_id(),
        question=question,
        answer=answer,
        reasoning=reasoning,
        category=DEFAULT_CATEGORY,
        difficulty=DEFAULT_DIFFICULTY,
        tags=_dedupe(user_tags + system_tags),
        user_tags=user_tags,
        system_tags=system_tags,
        created_at=now or datetime.now(),
    )


def parse_flashcards(
    raw: str,
    user_tags: list[str] | None = None,
    now: datetime | None = None,
) -> list[Card]:
    """
    Parse generator output into cards.

    Each non-blank line containing ``|`` becomes one card. Segments prefixed
    with ``Q:``, ``A:`` and ``R:`` are picked by prefix; otherwise the first
    three segments are taken as question, answer and reasoning.
    """
    cards: list[Card] = []

    for line in raw.splitlines():
        line = line.strip()
        if not line or "|" not in line:
            continue

        parts = [p.strip() for p in line.split("|")]

        def pick(prefix: str, index: int) -> str:
            for p in parts:
                if p.upper().startswith(f"{prefix}:"):
                    return p
            return parts[index] if index < len(parts) else ""

        question = _PREFIX.sub("", pick("Q", 0)).strip()
        answer = _PREFIX.sub("", pick("A", 1)).strip()
        reasoning = _PREFIX.sub("", pick("R", 2)).strip() or None

        if not question or not answer:
            logger.debug(f"Skipping incomplete flashcard line: {line!r}")
            continue

        cards.append(new_card(question, answer, reasoning, user_tags, now))

    logger.info(f"Parsed {len(cards)} flashcards")
    return cards


# ---------------------------------------------------------------------------
# Edit path
# ---------------------------------------------------------------------------


def edit_card(
    card: Card,
    question: str | None = None,
    answer: str | None = None,
    reasoning: str | None = None,
    category: str | None = None,
    difficulty: Difficulty | None = None,
) -> Card:
    """Return a copy with the given content fields changed. Review state is kept."""
    changes = {
        "question": question,
        "answer": answer,
        "reasoning": reasoning,
        "category": category,
        "difficulty": difficulty,
    }
    return replace(card, **{k: v for k, v in changes.items() if v is not None})


def add_user_tags(card: Card, tags: list[str]) -> Card:
    user_tags = _dedupe(card.user_tags + tags)
    return replace(card, user_tags=user_tags, tags=_dedupe(user_tags + card.system_tags))


def remove_user_tag(card: Card, tag: str) -> Card:
    """
    Remove a user tag. System tags are never removed; asking for one is a no-op.
    """
    if tag not in card.user_tags:
        return card
    user_tags = [t for t in card.user_tags if t != tag]
    return replace(card, user_tags=user_tags, tags=_dedupe(user_tags + card.system_tags))


def find_card(cards: list[Card], card_id: str) -> Card:
    for card in cards:
        if card.id == card_id:
            return card
    raise CardNotFoundError(card_id)


def replace_card(cards: list[Card], updated: Card) -> list[Card]:
    find_card(cards, updated.id)
    return [updated if c.id == updated.id else c for c in cards]


def delete_card(cards: list[Card], card_id: str) -> list[Card]:
    find_card(cards, card_id)
    return [c for c in cards if c.id != card_id]


# ---------------------------------------------------------------------------
# Browsing
# ---------------------------------------------------------------------------


def filter_cards(
    cards: list[Card],
    search: str | None = None,
    category: str | None = None,
    difficulty: str | None = None,
    tags: list[str] | None = None,
) -> list[Card]:
    """
    Filter cards for browsing.

    - search: case-insensitive match in question, answer or any tag
    - category / difficulty: exact match
    - tags: card carries at least one of them
    """
    result = list(cards)

    if search:
        needle = search.lower()
        result = [
            c
            for c in result
            if needle in c.question.lower()
            or needle in c.answer.lower()
            or any(needle in t.lower() for t in c.tags)
        ]

    if category:
        result = [c for c in result if c.category == category]

    if difficulty:
        result = [c for c in result if c.difficulty == difficulty]

    if tags:
        result = [c for c in result if any(t in c.tags for t in tags)]

    return result


def list_categories(cards: list[Card]) -> list[str]:
    return _dedupe([c.category for c in cards if c.category])


def list_tags(cards: list[Card]) -> list[str]:
    return sorted({t for c in cards for t in c.tags})
