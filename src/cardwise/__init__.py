"""cardwise: spaced-repetition flashcards."""

from cardwise.consts import VERSION

__version__ = VERSION
