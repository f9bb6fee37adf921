# Domain Package
from .errors import (
    CardNotFoundError,
    CardwiseError,
    InvalidQualityError,
    InvalidUserIdError,
    NoCardsAvailableError,
    SessionFinishedError,
    StorageError,
    UnknownStudyModeError,
)
from .models import Card, SessionRecord, SessionStats, StudyBatch, StudyMode
from .ports import CardRepository, SessionLogRepository

__all__ = [
    "Card",
    "SessionRecord",
    "SessionStats",
    "StudyBatch",
    "StudyMode",
    "CardRepository",
    "SessionLogRepository",
    "CardwiseError",
    "InvalidQualityError",
    "InvalidUserIdError",
    "UnknownStudyModeError",
    "NoCardsAvailableError",
    "CardNotFoundError",
    "SessionFinishedError",
    "StorageError",
]
