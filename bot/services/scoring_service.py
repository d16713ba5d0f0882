"""Scoring rules for champion guessing rounds."""

import re

from bot.services.catalog import DIFFICULTIES
from config import Config

# Characters dropped before comparing a guess with the answer
_STRIP_PATTERN = re.compile(r"['\s.\-]")

# Wrong guesses with at most this many words count against a streak.
# Longer messages are treated as ordinary chat.
MAX_QUALIFYING_TOKENS = 3


def normalize_answer(text: str) -> str:
    """Normalize a guess or answer for exact comparison.

    Lowercases, strips apostrophes, whitespace, periods and hyphens, and
    spells out ampersands, so "Kai'Sa", "kaisa" and "Kai Sa" all match and
    "Nunu & Willump" matches "nunuandwillump".
    """
    return _STRIP_PATTERN.sub("", text.lower()).replace("&", "and")


def get_streak_multiplier(streak: int) -> float:
    """Return the reward multiplier for a streak that includes the current win."""
    if streak < 3:
        return 1.0
    elif streak < 5:
        return 1.5
    elif streak < 10:
        return 2.0
    else:
        return 2.5


def calculate_round_points(difficulty: str, pixelate: bool) -> int:
    """Base reward for a round: difficulty points plus the pixelate bonus."""
    tier = DIFFICULTIES[difficulty]
    return tier.base_points + (tier.pixelate_bonus if pixelate else 0)


def calculate_points_earned(base_points: int, multiplier: float) -> int:
    """Apply a streak multiplier, rounding down."""
    return int(base_points * multiplier)


def count_threshold_crossings(old_total: int, new_total: int, threshold: int) -> int:
    """Count how many multiples of ``threshold`` lie in (old_total, new_total]."""
    return new_total // threshold - old_total // threshold


def blue_essence_for(old_total: int, new_total: int) -> int:
    """Blue Essence granted for moving total points from old_total to new_total."""
    return count_threshold_crossings(old_total, new_total, Config.BE_THRESHOLD) * Config.BE_PER_THRESHOLD


def chests_for(old_total: int, new_total: int) -> int:
    """Chests granted for moving total points from old_total to new_total."""
    return count_threshold_crossings(old_total, new_total, Config.CHEST_THRESHOLD)


def is_qualifying_wrong_guess(raw_text: str, normalized_guess: str, champion_names: set[str]) -> bool:
    """Decide whether a wrong message should count as a guess.

    A message qualifies if it names any champion, or if it is short enough
    to plausibly be a guess rather than conversation.
    """
    if normalized_guess in champion_names:
        return True
    return len(raw_text.split()) <= MAX_QUALIFYING_TOKENS


def max_chances_for(difficulty: str, pixelate: bool) -> int:
    """Wrong guesses allowed per user in an elimination round."""
    if DIFFICULTIES[difficulty].answer_type == "name":
        return 3
    if pixelate:
        return 2
    return 1
