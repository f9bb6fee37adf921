"""
Ports (interfaces) for card and session persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import Card, SessionRecord


class CardRepository(ABC):
    """
    Port for loading and saving a user's card collection.

    Implementations:
        - JsonCardRepository: One JSON document per user on disk.
    """

    @abstractmethod
    async def load(self, user_id: str) -> list[Card]:
        """
        Load the full card collection for a user.

        Returns:
            Cards in insertion order. Empty list when the user has none.
        """
        pass

    @abstractmethod
    async def save(self, user_id: str, cards: list[Card]) -> bool:
        """
        Replace the user's stored collection.

        Returns:
            True on success, False if the write failed.
        """
        pass


class SessionLogRepository(ABC):
    """Port for the append-only log of finished study sessions."""

    @abstractmethod
    async def load(self, user_id: str) -> list[SessionRecord]:
        pass

    @abstractmethod
    async def append(self, user_id: str, record: SessionRecord) -> bool:
        pass
