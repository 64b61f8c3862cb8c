"""
Typed nested structures stored on a tournament.

These are the pieces of live progression state that do not fit a flat
row: weekly points per player, staged achievement checks, and the
per-round undo snapshots. They are immutable pydantic models so that
every change produces a new value, which is what the ORM needs to see
to persist it (see ``leaguetracker.db.types.PydanticJSON``).

A snapshot is an inverse delta. Finalizing a round records exactly what
was added to each player's cumulative stats and weekly points; undo
subtracts the same numbers. When the round closed a week, the snapshot
also carries a ``WeekBoundary`` with the prior week's full transient
state, so undo restores it verbatim instead of reconstructing it.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class WeeklyPlayerPoints(_Frozen):
    """A player's points for the current week."""

    placement_points: int = 0
    achievement_points: int = 0

    @property
    def total(self) -> int:
        return self.placement_points + self.achievement_points

    def plus(self, other: "WeeklyPlayerPoints") -> "WeeklyPlayerPoints":
        return WeeklyPlayerPoints(
            placement_points=self.placement_points + other.placement_points,
            achievement_points=self.achievement_points + other.achievement_points,
        )

    def minus(self, other: "WeeklyPlayerPoints") -> "WeeklyPlayerPoints":
        return WeeklyPlayerPoints(
            placement_points=self.placement_points - other.placement_points,
            achievement_points=self.achievement_points - other.achievement_points,
        )


class AchievementCheck(_Frozen):
    """
    One achievement credited to one player.

    ``points`` is the catalog value at the time the round was recorded,
    so later edits to the achievement do not change history.
    """

    player_id: str
    achievement_id: str
    points: int = 0

    @property
    def key(self) -> tuple[str, str]:
        return (self.player_id, self.achievement_id)


class PlayerDelta(_Frozen):
    """What one finalized round added to a player's cumulative stats."""

    placement_points: int = 0
    achievement_points: int = 0
    wins: int = 0
    games_played: int = 0

    @property
    def weekly(self) -> WeeklyPlayerPoints:
        return WeeklyPlayerPoints(
            placement_points=self.placement_points,
            achievement_points=self.achievement_points,
        )


class WeekBoundary(_Frozen):
    """Transient state of the week that a snapshot's round closed out."""

    previous_week: int
    previous_present_player_ids: list[str] = Field(default_factory=list)
    previous_weekly_points_by_player: dict[str, WeeklyPlayerPoints] = Field(default_factory=dict)
    previous_active_achievement_ids: list[str] = Field(default_factory=list)
    previous_achievements_on_this_week: bool = True
    previous_pod_history_snapshots: list["PodSnapshot"] = Field(default_factory=list)


class PodSnapshot(_Frozen):
    """
    Everything needed to reverse one finalized round.

    Attributes:
        pod_id: Shared by every GameResult written for the round
        player_ids: Players that received a result, in staging order
        placements: player_id -> placement (1-4)
        achievement_checks: Checks staged for those players
        player_deltas: Added to cumulative player stats
        weekly_deltas: Added to the tournament's weekly points
        week, round: Where in the tournament the round was played
        completed_tournament: The round finished the tournament
        week_boundary: Present when the round closed out a week
    """

    pod_id: str
    player_ids: list[str] = Field(default_factory=list)
    placements: dict[str, int] = Field(default_factory=dict)
    achievement_checks: list[AchievementCheck] = Field(default_factory=list)
    player_deltas: dict[str, PlayerDelta] = Field(default_factory=dict)
    weekly_deltas: dict[str, WeeklyPlayerPoints] = Field(default_factory=dict)
    week: int = 1
    round: int = 1
    completed_tournament: bool = False
    week_boundary: Optional[WeekBoundary] = None


WeekBoundary.model_rebuild()
