"""
Pod generation.

Seats the players present this week into pods of four for one round:

- Round 1: a uniform random shuffle of the present players
- Later rounds: descending by weekly total points (placement +
  achievement), so players on similar scores meet. Python's sort is
  stable, so ties keep the roster order.

The ordered list is cut into consecutive groups of POD_SIZE. A trailing
pod may be short; that is a data-entry concern, not an error.
"""

import logging
import random
from typing import Any, Iterable, Mapping, Optional, Sequence

from leaguetracker.constants import POD_SIZE, PLACEMENT_RANGE
from leaguetracker.engine.snapshots import WeeklyPlayerPoints

logger = logging.getLogger(__name__)


def chunk(items: Sequence[Any], size: int = POD_SIZE) -> list[list[Any]]:
    """Split a sequence into consecutive groups of ``size``."""
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def generate_pods_for_round(
    players: Iterable[Any],
    present_player_ids: Iterable[str],
    round_number: int,
    weekly_points: Mapping[str, WeeklyPlayerPoints],
    rng: Optional[random.Random] = None,
) -> list[list[Any]]:
    """
    Seat present players into pods for a round.

    Args:
        players: Full roster (objects with an ``id``)
        present_player_ids: Ids present this week
        round_number: 1-based round within the week
        weekly_points: player_id -> points so far this week; missing
            players count as 0
        rng: Random source for the round 1 shuffle

    Returns:
        Ordered list of pods, each an ordered list of players.
        No present players gives an empty list.
    """
    present = set(present_player_ids)
    seated = [player for player in players if player.id in present]
    if not seated:
        return []

    if round_number <= 1:
        (rng or random.Random()).shuffle(seated)
    else:
        def weekly_total(player: Any) -> int:
            points = weekly_points.get(player.id)
            return points.total if points is not None else 0

        seated.sort(key=weekly_total, reverse=True)

    pods = chunk(seated)
    logger.debug("Generated %d pods for round %d from %d players", len(pods), round_number, len(seated))
    return pods


def default_placements(pods: Iterable[Sequence[str]]) -> dict[str, int]:
    """
    Seed placements from seat order: first seat 1st, second 2nd, and so on.

    Seats beyond the fourth are capped at the last placement.
    """
    last = PLACEMENT_RANGE[1]
    placements: dict[str, int] = {}
    for pod in pods:
        for index, player_id in enumerate(pod):
            placements[player_id] = min(index + 1, last)
    return placements
