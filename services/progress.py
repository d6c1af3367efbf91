"""
Progression ledger: experience -> level state machine.

The XP needed to leave a level follows three tiers:
- levels 0..5 grow linearly (100 per level, level 0 costs the same as level 1)
- levels 6..15 grow logarithmically
- levels above 15 grow exponentially

The jump between the linear and the logarithmic tier (500 -> 1945) is kept
as is; tests pin the current values.
"""
from __future__ import annotations

import logging
import math
from typing import NamedTuple

from models.user import MAX_INT64
from services.errors import InvalidAmount

logger = logging.getLogger(__name__)

LINEAR_MAX_LEVEL = 5
LOGARITHMIC_MAX_LEVEL = 15

# largest gain accepted in one update
MAX_XP_GAIN = 1_000_000_000


class Progress(NamedTuple):
    level: int
    experience: int
    required_xp: int


def required_xp_linear(level: int) -> int:
    return max(level, 1) * 100


def required_xp_logarithmic(level: int) -> int:
    return math.floor(100 * math.log(level + 1) * 10)


def required_xp_exponential(level: int) -> int:
    return math.floor(100 * math.pow(1.5, level))


def required_xp(level: int) -> int:
    """XP needed to go from `level` to `level + 1`. Always >= 1."""
    if level < 0:
        raise ValueError("level must be non-negative")
    if level <= LINEAR_MAX_LEVEL:
        return required_xp_linear(level)
    if level <= LOGARITHMIC_MAX_LEVEL:
        return required_xp_logarithmic(level)
    return required_xp_exponential(level)


def calculate_new_level_and_experience(level: int, experience: int, xp_gained: int) -> Progress:
    """
    Add `xp_gained` and consume level thresholds while the experience allows it.

    Returns the new level, the experience left toward the next level and the
    threshold of that next level-up.
    """
    if isinstance(xp_gained, bool) or not isinstance(xp_gained, int) or not 0 <= xp_gained <= MAX_XP_GAIN:
        raise InvalidAmount(f"xpGained must be an integer between 0 and {MAX_XP_GAIN}")
    if experience + xp_gained > MAX_INT64:
        raise InvalidAmount("Experience would exceed the maximum")
    if level < 0 or experience < 0:
        raise ValueError("level and experience must be non-negative")

    experience += xp_gained
    threshold = required_xp(level)
    while experience >= threshold:
        experience -= threshold
        level += 1
        threshold = required_xp(level)
    return Progress(level, experience, threshold)


def apply_progress(user, xp_gained: int) -> Progress:
    """Mutate the user's level/experience in memory; the caller persists it."""
    previous_level = user.level
    progress = calculate_new_level_and_experience(user.level, user.experience, xp_gained)
    user.level = progress.level
    user.experience = progress.experience
    if progress.level > previous_level:
        logger.info("user %s leveled up %d -> %d", user.id, previous_level, progress.level)
    return progress
