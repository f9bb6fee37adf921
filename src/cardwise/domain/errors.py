"""Domain exceptions.

Every error raised by the scheduler or the session controller derives from
CardwiseError so the CLI and the server can humanize them in one place.
"""


class CardwiseError(Exception):
    """Base class for all cardwise errors."""


class InvalidQualityError(CardwiseError, ValueError):
    """A recall quality outside 0..5 was supplied to a review."""

    def __init__(self, quality: object):
        self.quality = quality
        super().__init__(f"Quality must be an integer between 0 and 5, got {quality!r}")


class UnknownStudyModeError(CardwiseError, ValueError):
    """A study mode name did not match any known selection policy."""

    def __init__(self, mode: object):
        self.mode = mode
        super().__init__(
            f"Unknown study mode {mode!r}. "
            "Expected one of: new, review, mastered, difficult, mixed."
        )


class NoCardsAvailableError(CardwiseError):
    """The selected study mode produced an empty batch."""

    def __init__(self, mode: str):
        self.mode = mode
        super().__init__(f"No cards available for study in '{mode}' mode.")


class CardNotFoundError(CardwiseError, KeyError):
    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(card_id)

    def __str__(self) -> str:
        return f"Card not found: {self.card_id}"


class SessionFinishedError(CardwiseError):
    """A response was recorded after the study session ended."""


class StorageError(CardwiseError):
    """Persisted data could not be read back."""


class InvalidUserIdError(CardwiseError, ValueError):
    """A user id that cannot name a directory under the data directory."""

    def __init__(self, user_id: object):
        self.user_id = user_id
        super().__init__(f"Invalid user id {user_id!r}: must be a single path segment")
