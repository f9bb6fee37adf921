"""
JSON file repositories: infrastructure adapters for local storage.

Implements CardRepository and SessionLogRepository with one directory per
user under the configured data directory::

    <data_dir>/<user_id>/cards.json
    <data_dir>/<user_id>/sessions.json
"""

import logging
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from cardwise.domain.errors import InvalidUserIdError, StorageError
from cardwise.domain.models import Card, SessionRecord
from cardwise.domain.ports import CardRepository, SessionLogRepository

logger = logging.getLogger(__name__)

CARDS_FILE = "cards.json"
SESSIONS_FILE = "sessions.json"

_cards_adapter = TypeAdapter(list[Card])
_sessions_adapter = TypeAdapter(list[SessionRecord])


def user_dir(data_dir: Path, user_id: str) -> Path:
    """
    Directory holding one user's files.

    Raises:
        InvalidUserIdError: If the id is not a single plain path segment, or
            would resolve outside the data directory.
    """
    if not user_id or user_id in (".", "..") or any(sep in user_id for sep in ("/", "\\", "\0")):
        raise InvalidUserIdError(user_id)
    root = data_dir.resolve()
    path = (root / user_id).resolve()
    if path.parent != root:
        raise InvalidUserIdError(user_id)
    return data_dir / user_id


def _read(path: Path, adapter: TypeAdapter) -> list:
    if not path.exists():
        return []
    try:
        return adapter.validate_json(path.read_bytes())
    except ValidationError as e:
        logger.error(f"Corrupt data file {path}: {e}")
        raise StorageError(f"Could not read {path}: {e.error_count()} invalid entries") from e


def _write(path: Path, adapter: TypeAdapter, items: list) -> bool:
    """Write atomically via a sibling temp file. Returns False on OS errors."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_bytes(adapter.dump_json(items, indent=2))
        tmp.replace(path)
        return True
    except OSError as e:
        logger.error(f"Failed to write {path}: {e}")
        return False


class JsonCardRepository(CardRepository):
    """Stores each user's card collection as a JSON array."""

    def __init__(self, data_dir: Path):
        self.data_dir = data_dir

    def path_for(self, user_id: str) -> Path:
        return user_dir(self.data_dir, user_id) / CARDS_FILE

    async def load(self, user_id: str) -> list[Card]:
        cards = _read(self.path_for(user_id), _cards_adapter)
        logger.debug(f"Loaded {len(cards)} cards for {user_id}")
        return cards

    async def save(self, user_id: str, cards: list[Card]) -> bool:
        ok = _write(self.path_for(user_id), _cards_adapter, cards)
        if ok:
            logger.debug(f"Saved {len(cards)} cards for {user_id}")
        return ok


class JsonSessionLogRepository(SessionLogRepository):
    """Append-only session log, rewritten in full on each append."""

    def __init__(self, data_dir: Path):
        self.data_dir = data_dir

    def path_for(self, user_id: str) -> Path:
        return user_dir(self.data_dir, user_id) / SESSIONS_FILE

    async def load(self, user_id: str) -> list[SessionRecord]:
        return _read(self.path_for(user_id), _sessions_adapter)

    async def append(self, user_id: str, record: SessionRecord) -> bool:
        try:
            records = await self.load(user_id)
        except StorageError as e:
            logger.error(f"Not appending to unreadable session log for {user_id}: {e}")
            return False
        records.append(record)
        return _write(self.path_for(user_id), _sessions_adapter, records)


# ---------------------------------------------------------------------------
# Export / import
# ---------------------------------------------------------------------------


def export_cards(cards: list[Card], path: Path) -> None:
    """Write cards to a standalone JSON file. Raises OSError on failure."""
    path.write_bytes(_cards_adapter.dump_json(cards, indent=2))
    logger.info(f"Exported {len(cards)} cards to {path}")


def import_cards(path: Path) -> list[Card]:
    """
    Read cards from a JSON export.

    Raises:
        StorageError: If the file is not a valid card export.
    """
    try:
        cards = _cards_adapter.validate_json(path.read_bytes())
    except ValidationError as e:
        raise StorageError(f"{path} is not a valid card export: {e.error_count()} errors") from e
    logger.info(f"Imported {len(cards)} cards from {path}")
    return cards
