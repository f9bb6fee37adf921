"""Centralized constants for the cardwise scheduler.

All tuning numbers and session caps live here so every layer
imports from a single source of truth.
"""

# ---------- Ease factor ----------
INITIAL_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
EASE_FACTOR_DECREASE = 0.1
EASE_FACTOR_INCREASE = 0.15

# ---------- Interval ladder (days) ----------
INTERVALS = (1, 6, 15, 30, 90, 180, 365)

# ---------- Quality ----------
MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3  # below this a review counts as a failure
EASY_QUALITY = 4  # at or above this the ease factor grows

# ---------- Mastery ----------
MIN_MASTERY = 0
MAX_MASTERY = 100
MASTERY_GAIN = 15
MASTERY_LOSS = 10
MASTERY_THRESHOLD = 85  # card counts as "learned"
DIFFICULT_MASTERY_CEILING = 30
DIFFICULT_INCORRECT_STREAK = 2

# ---------- Batch caps ----------
NEW_BATCH_SIZE = 20
REVIEW_BATCH_SIZE = 30
MASTERED_BATCH_SIZE = 20
DIFFICULT_BATCH_SIZE = 15
MIXED_NEW_BATCH_SIZE = 10
MIXED_DUE_BATCH_SIZE = 20

# ---------- Stats ----------
MAX_STREAK_DAYS = 365

# ---------- Cards ----------
DEFAULT_CATEGORY = "General"
DEFAULT_DIFFICULTY = "medium"
