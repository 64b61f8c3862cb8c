"""
Achievement analytics.

Answers "who earns what, and how often" from the achievement ids
recorded on game results. Those ids are the ones that actually scored,
so weeks with achievements switched off contribute nothing here.

Like stats.players, these are pure functions: pass in the collections,
get plain values back. Players that have been removed from the roster
show up as "Unknown" where a name is needed.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Iterable, Optional

UNKNOWN_PLAYER_NAME = "Unknown"

# Players listed per achievement in achievement_stats
TOP_PLAYERS_CAP = 5


class TimeGrouping(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def from_raw(cls, raw: Any) -> "TimeGrouping":
        """Decode a grouping name; anything unrecognised groups weekly."""
        try:
            return cls(raw)
        except ValueError:
            return cls.WEEKLY


@dataclass
class EarnerCount:
    player_id: str
    player_name: str
    count: int


@dataclass
class AchievementStats:
    """Total times an achievement was earned, plus its top earners."""
    total_times_earned: int = 0
    top_players: list[EarnerCount] = field(default_factory=list)


@dataclass
class LeaderboardRow:
    achievement: Any
    times_earned: int


def _earned(result: Any, achievement_id: str) -> bool:
    return achievement_id in result.achievement_ids


# =============================================================================
# Totals
# =============================================================================

def total_times_earned(achievement_id: str, results: Iterable[Any]) -> int:
    """Number of game results crediting the achievement."""
    return sum(1 for result in results if _earned(result, achievement_id))


def total_achievements_earned(results: Iterable[Any]) -> int:
    return sum(len(result.achievement_ids) for result in results)


def earned_by_player(achievement_id: str, results: Iterable[Any]) -> dict[str, int]:
    """player_id -> times that player earned the achievement."""
    counts: dict[str, int] = defaultdict(int)
    for result in results:
        if _earned(result, achievement_id):
            counts[result.player_id] += 1
    return dict(counts)


def top_earners(
    achievement_id: str,
    results: Iterable[Any],
    players: Iterable[Any],
    limit: int = 3,
) -> list[EarnerCount]:
    """
    The players who earned an achievement most often.

    Args:
        achievement_id: Achievement to rank for
        results: Game results to count over
        players: Roster, for names
        limit: Maximum rows returned

    Returns:
        EarnerCount rows, most earned first
    """
    names = {player.id: player.name for player in players}
    rows = [
        EarnerCount(player_id=p_id, player_name=names.get(p_id, UNKNOWN_PLAYER_NAME), count=count)
        for p_id, count in earned_by_player(achievement_id, results).items()
    ]
    rows.sort(key=lambda row: row.count, reverse=True)
    return rows[:limit]


# =============================================================================
# Leaderboards
# =============================================================================

def achievement_leaderboard(achievements: Iterable[Any], results: Iterable[Any]) -> list[LeaderboardRow]:
    """Every achievement with its earn count, most earned first (zeros kept)."""
    results = list(results)
    rows = [
        LeaderboardRow(achievement=achievement, times_earned=total_times_earned(achievement.id, results))
        for achievement in achievements
    ]
    rows.sort(key=lambda row: row.times_earned, reverse=True)
    return rows


def most_popular_achievement(achievements: Iterable[Any], results: Iterable[Any]) -> Optional[LeaderboardRow]:
    """The most earned achievement, or None if nothing has been earned."""
    leaderboard = achievement_leaderboard(achievements, results)
    if not leaderboard or leaderboard[0].times_earned == 0:
        return None
    return leaderboard[0]


def rarest_achievement(achievements: Iterable[Any], results: Iterable[Any]) -> Optional[LeaderboardRow]:
    """The least earned achievement among those earned at least once."""
    earned = [row for row in achievement_leaderboard(achievements, results) if row.times_earned > 0]
    if not earned:
        return None
    return earned[-1]


def top_achievement_earners(players: Iterable[Any], limit: int = TOP_PLAYERS_CAP) -> list[Any]:
    """Players with any achievement points, by achievement points descending."""
    earners = [player for player in players if player.achievement_points > 0]
    earners.sort(key=lambda player: player.achievement_points, reverse=True)
    return earners[:limit]


# =============================================================================
# History and Trends
# =============================================================================

def player_achievement_history(
    player_id: str,
    achievements: Iterable[Any],
    results: Iterable[Any],
) -> list[tuple[Any, int]]:
    """(achievement, times earned by the player) for every achievement, most earned first."""
    counts: dict[str, int] = defaultdict(int)
    for result in results:
        if result.player_id == player_id:
            for achievement_id in result.achievement_ids:
                counts[achievement_id] += 1

    history = [(achievement, counts.get(achievement.id, 0)) for achievement in achievements]
    history.sort(key=lambda row: row[1], reverse=True)
    return history


def _group_start(timestamp: datetime, group_by: TimeGrouping) -> datetime:
    day = timestamp.replace(hour=0, minute=0, second=0, microsecond=0)
    if group_by is TimeGrouping.DAILY:
        return day
    if group_by is TimeGrouping.WEEKLY:
        # ISO weeks start on Monday
        return day - timedelta(days=day.weekday())
    return day.replace(day=1)


def achievement_trend(
    achievement_id: str,
    results: Iterable[Any],
    group_by: TimeGrouping | str = TimeGrouping.WEEKLY,
) -> list[tuple[datetime, int]]:
    """
    Times an achievement was earned per day, week, or month.

    Returns:
        (period start, count) pairs, oldest first. Periods with no
        earnings are omitted.
    """
    grouping = TimeGrouping.from_raw(group_by)
    counts: dict[datetime, int] = defaultdict(int)
    for result in results:
        if _earned(result, achievement_id):
            counts[_group_start(result.timestamp, grouping)] += 1
    return sorted(counts.items())


def achievement_trend_by_week(achievement_id: str, results: Iterable[Any]) -> list[tuple[int, int]]:
    """(tournament week, count) pairs for an achievement, by week ascending."""
    counts: dict[int, int] = defaultdict(int)
    for result in results:
        if _earned(result, achievement_id):
            counts[result.week] += 1
    return sorted(counts.items())


# =============================================================================
# Per-Achievement Summary
# =============================================================================

def achievement_stats(achievement_id: str, results: Iterable[Any], players: Iterable[Any]) -> AchievementStats:
    results = list(results)
    return AchievementStats(
        total_times_earned=total_times_earned(achievement_id, results),
        top_players=top_earners(achievement_id, results, players, limit=TOP_PLAYERS_CAP),
    )


def all_achievement_stats(
    achievements: Iterable[Any],
    results: Iterable[Any],
    players: Iterable[Any],
) -> dict[str, AchievementStats]:
    """achievement_id -> AchievementStats for the whole catalog."""
    results = list(results)
    players = list(players)
    return {achievement.id: achievement_stats(achievement.id, results, players) for achievement in achievements}
