"""Weekly achievement roll."""

import logging
import random
from typing import Any, Iterable, Optional

logger = logging.getLogger(__name__)


def roll_active_achievements(
    achievements: Iterable[Any],
    count: int,
    rng: Optional[random.Random] = None,
) -> list[Any]:
    """
    Pick the achievements active for a week.

    Every always-on achievement is included, plus a sample without
    replacement of ``min(count, available)`` from the rest.

    Args:
        achievements: The achievement catalog
        count: Random achievements wanted this week
        rng: Random source for the sample

    Returns:
        Always-on achievements followed by the sampled ones
    """
    catalog = list(achievements)
    always_on = [achievement for achievement in catalog if achievement.always_on]
    candidates = [achievement for achievement in catalog if not achievement.always_on]

    size = max(0, min(count, len(candidates)))
    sampled = (rng or random.Random()).sample(candidates, size) if size else []

    logger.debug(
        "Rolled %d always-on + %d random achievements (%d requested)",
        len(always_on), len(sampled), count,
    )
    return always_on + sampled
