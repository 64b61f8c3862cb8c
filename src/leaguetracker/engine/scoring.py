"""
Scoring rules for a single round.

Placement points come from the fixed table in constants.py; achievement
points are the sum of the catalog values of the achievements a player
was credited with. Neither function ever raises: out-of-range
placements and unknown achievement ids simply score 0.

``score_round`` turns the staging area of a round (placements plus
achievement checks) into the per-player deltas that finalize and edit
both apply, so the two paths can never disagree on the arithmetic.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from leaguetracker.constants import PLACEMENT_POINTS, is_valid_placement
from leaguetracker.engine.snapshots import AchievementCheck, PlayerDelta, WeeklyPlayerPoints


def placement_points(placement: Any) -> int:
    """
    Points for a finishing position.

    Example:
        placement_points(1)   # 4
        placement_points(4)   # 1
        placement_points(7)   # 0
    """
    if not is_valid_placement(placement):
        return 0
    return PLACEMENT_POINTS[placement]


def catalog_points(catalog: Iterable[Any]) -> dict[str, int]:
    """Map achievement id -> points for anything with ``id`` and ``points``."""
    return {achievement.id: achievement.points for achievement in catalog}


def achievement_points(achievement_ids: Iterable[str], catalog: Iterable[Any] | Mapping[str, int]) -> int:
    """
    Sum the points of the given achievements.

    Args:
        achievement_ids: Ids credited to one player
        catalog: Achievement objects, or an id -> points mapping

    Returns:
        Total points; ids missing from the catalog contribute 0
    """
    points_by_id = catalog if isinstance(catalog, Mapping) else catalog_points(catalog)
    return sum(points_by_id.get(achievement_id, 0) for achievement_id in achievement_ids)


@dataclass
class RoundScore:
    """
    Scored result of one round's staging area.

    Attributes:
        player_ids: Players with a valid placement, in staging order
        placements: player_id -> placement for those players
        checks: Staged checks for those players against known
            achievements, with the catalog points at scoring time
        earned: player_id -> achievement ids that actually scored
            (always empty when achievements are off for the week)
        deltas: player_id -> what the round adds to cumulative stats
    """
    player_ids: list[str] = field(default_factory=list)
    placements: dict[str, int] = field(default_factory=dict)
    checks: list[AchievementCheck] = field(default_factory=list)
    earned: dict[str, list[str]] = field(default_factory=dict)
    deltas: dict[str, PlayerDelta] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.player_ids

    @property
    def weekly_deltas(self) -> dict[str, WeeklyPlayerPoints]:
        return {player_id: delta.weekly for player_id, delta in self.deltas.items()}

    @property
    def total_placement_points(self) -> int:
        return sum(delta.placement_points for delta in self.deltas.values())


def score_round(
    placements: Mapping[str, int],
    checks: Iterable[tuple[str, str]],
    catalog: Iterable[Any],
    achievements_on: bool,
) -> RoundScore:
    """
    Score a round from its staged placements and achievement checks.

    Args:
        placements: player_id -> placement (1-4). Invalid entries are skipped.
        checks: (player_id, achievement_id) pairs; duplicates count once
        catalog: The achievement catalog
        achievements_on: Whether achievements count this week

    Returns:
        RoundScore with one delta per validly placed player

    Example:
        score = score_round({"a": 1, "b": 2}, [("a", "ach")], achievements, True)
        score.deltas["a"].wins   # 1
    """
    points_by_id = catalog_points(catalog)
    score = RoundScore()

    for player_id, placement in placements.items():
        if is_valid_placement(placement):
            score.player_ids.append(player_id)
            score.placements[player_id] = placement

    seen: set[tuple[str, str]] = set()
    for player_id, achievement_id in checks:
        key = (player_id, achievement_id)
        if key in seen or player_id not in score.placements or achievement_id not in points_by_id:
            continue
        seen.add(key)
        score.checks.append(
            AchievementCheck(
                player_id=player_id,
                achievement_id=achievement_id,
                points=points_by_id[achievement_id],
            )
        )

    for player_id in score.player_ids:
        placement = score.placements[player_id]
        earned = []
        if achievements_on:
            earned = [check.achievement_id for check in score.checks if check.player_id == player_id]
        score.earned[player_id] = earned
        score.deltas[player_id] = PlayerDelta(
            placement_points=placement_points(placement),
            achievement_points=achievement_points(earned, points_by_id),
            wins=1 if placement == 1 else 0,
            games_played=1,
        )

    return score
