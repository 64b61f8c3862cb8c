"""
Player statistics.

Pure, read-only functions over players and game results. Nothing here
touches the database session: callers load the collections they need
(usually via LeagueOrchestrator selectors) and pass them in.

Every function tolerates dangling references. A game result whose
player has been removed from the roster is still counted where only the
player id matters, and silently skipped wherever a Player object is
needed (standings, names).

All-time stats read the cumulative counters on Player; per-tournament
stats are recomputed from GameResult rows, since the counters are not
split by tournament.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from leaguetracker.constants import PLACEMENT_RANGE
from leaguetracker.engine.snapshots import WeeklyPlayerPoints

_PLACES = range(PLACEMENT_RANGE[0], PLACEMENT_RANGE[1] + 1)


@dataclass
class TournamentPlayerStats:
    """One player's record within a single tournament."""
    games_played: int = 0
    wins: int = 0
    total_points: int = 0
    placement_points: int = 0
    achievement_points: int = 0
    placement_distribution: dict[int, int] = field(default_factory=lambda: {p: 0 for p in _PLACES})
    average_placement: float = 0.0
    win_rate: float = 0.0


@dataclass
class HeadToHeadRecord:
    """
    Record between two players over the pods they shared.

    A "win" means finishing with the better (lower) placement in the
    same pod; equal placements are ties.
    """
    player1_wins: int = 0
    player2_wins: int = 0
    ties: int = 0

    @property
    def total_games(self) -> int:
        return self.player1_wins + self.player2_wins + self.ties

    def __repr__(self) -> str:
        return f"<HeadToHeadRecord({self.player1_wins}-{self.player2_wins}-{self.ties})>"


@dataclass
class TournamentSummary:
    """
    Overview of one tournament built from its game results.

    Attributes:
        participant_count: Distinct player ids with at least one result
        total_games: Distinct pods played
        winner_name: Name of the top scorer, None if no results or the
            top scorer is no longer on the roster
        winner_points: Top scorer's total points
        standings: (Player, points) descending; removed players are
            left out
    """
    participant_count: int = 0
    total_games: int = 0
    winner_name: Optional[str] = None
    winner_points: int = 0
    standings: list[tuple[Any, int]] = field(default_factory=list)


@dataclass
class PlayerTournamentRecord:
    """A player's totals in one tournament, for their history page."""
    tournament: Any
    games_played: int
    wins: int
    total_points: int
    placement_points: int
    achievement_points: int


@dataclass
class AchievementBreakdown:
    """How often a player earned one achievement, and what it was worth."""
    achievement: Any
    count: int
    total_points: int


@dataclass
class PerformanceTrendPoint:
    """Cumulative points at the end of a week."""
    week: int
    cumulative_points: int


# =============================================================================
# All-Time Stats
# =============================================================================

def total_points(player: Any) -> int:
    return player.placement_points + player.achievement_points


def win_rate(player: Any) -> float:
    """Wins / games played, 0.0 with no games."""
    if not player.games_played:
        return 0.0
    return player.wins / player.games_played


def points_per_game(player: Any) -> float:
    """Total points / games played, 0.0 with no games."""
    if not player.games_played:
        return 0.0
    return total_points(player) / player.games_played


def average_placement(player_id: str, results: Iterable[Any]) -> float:
    """Mean placement over a player's results, 0.0 with none."""
    placements = [result.placement for result in results if result.player_id == player_id]
    if not placements:
        return 0.0
    return sum(placements) / len(placements)


def placement_distribution(player_id: str, results: Iterable[Any]) -> dict[int, int]:
    """
    Count of a player's results at each placement.

    Always has keys 1-4; out-of-range placements are ignored.
    """
    distribution = {place: 0 for place in _PLACES}
    for result in results:
        if result.player_id == player_id and result.placement in distribution:
            distribution[result.placement] += 1
    return distribution


# =============================================================================
# Per-Tournament Stats
# =============================================================================

def tournament_stats(player_id: str, tournament_id: str, results: Iterable[Any]) -> TournamentPlayerStats:
    """
    A player's stats narrowed to one tournament.

    Args:
        player_id: Player to report on
        tournament_id: Tournament to narrow to
        results: Game results (any scope; filtered here)

    Returns:
        TournamentPlayerStats, all zeros if the player has no results there
    """
    own = [
        result for result in results
        if result.player_id == player_id and result.tournament_id == tournament_id
    ]
    games_played = len(own)
    wins = sum(1 for result in own if result.placement == 1)
    placement_pts = sum(result.placement_points for result in own)
    achievement_pts = sum(result.achievement_points for result in own)

    return TournamentPlayerStats(
        games_played=games_played,
        wins=wins,
        total_points=placement_pts + achievement_pts,
        placement_points=placement_pts,
        achievement_points=achievement_pts,
        placement_distribution=placement_distribution(player_id, own),
        average_placement=average_placement(player_id, own),
        win_rate=wins / games_played if games_played else 0.0,
    )


def head_to_head_record(player1_id: str, player2_id: str, results: Iterable[Any]) -> HeadToHeadRecord:
    """
    Compare two players over every pod they both played in.

    Results are grouped by pod_id; pods missing either player are
    ignored.

    Example:
        record = head_to_head_record("a", "b", results)
        print(f"{record.player1_wins}-{record.player2_wins} ({record.ties} ties)")
    """
    by_pod: dict[str, list[Any]] = defaultdict(list)
    for result in results:
        by_pod[result.pod_id].append(result)

    record = HeadToHeadRecord()
    for pod_results in by_pod.values():
        first = next((r for r in pod_results if r.player_id == player1_id), None)
        second = next((r for r in pod_results if r.player_id == player2_id), None)
        if first is None or second is None:
            continue

        if first.placement < second.placement:
            record.player1_wins += 1
        elif second.placement < first.placement:
            record.player2_wins += 1
        else:
            record.ties += 1

    return record


def tournament_summary(tournament_id: str, results: Iterable[Any], players: Iterable[Any]) -> TournamentSummary:
    """Participants, games, winner and standings for one tournament."""
    own = [result for result in results if result.tournament_id == tournament_id]
    if not own:
        return TournamentSummary()

    points_by_player: dict[str, int] = {}
    for result in own:
        points_by_player[result.player_id] = points_by_player.get(result.player_id, 0) + result.total_points

    roster = {player.id: player for player in players}
    ranked = sorted(points_by_player.items(), key=lambda item: item[1], reverse=True)
    winner_id, winner_points = ranked[0]
    winner = roster.get(winner_id)

    return TournamentSummary(
        participant_count=len(points_by_player),
        total_games=len({result.pod_id for result in own}),
        winner_name=winner.name if winner is not None else None,
        winner_points=winner_points,
        standings=[(roster[p_id], points) for p_id, points in ranked if p_id in roster],
    )


# =============================================================================
# Leaderboards
# =============================================================================

def sort_players_by_total_points(players: Iterable[Any]) -> list[Any]:
    """All-time leaderboard, highest total first; ties keep input order."""
    return sorted(players, key=total_points, reverse=True)


def sort_by_weekly_points(
    player_ids: Iterable[str],
    weekly_points: Mapping[str, WeeklyPlayerPoints],
) -> list[str]:
    """Order player ids by this week's total points, highest first."""
    def weekly_total(player_id: str) -> int:
        points = weekly_points.get(player_id)
        return points.total if points is not None else 0

    return sorted(player_ids, key=weekly_total, reverse=True)


# =============================================================================
# Player History
# =============================================================================

def player_tournament_history(
    player_id: str,
    tournaments: Iterable[Any],
    results: Iterable[Any],
) -> list[PlayerTournamentRecord]:
    """Per-tournament totals for a player, most recent tournament first."""
    own = [result for result in results if result.player_id == player_id]
    by_tournament = {tournament.id: tournament for tournament in tournaments}

    records = []
    for tournament_id in dict.fromkeys(result.tournament_id for result in own):
        tournament = by_tournament.get(tournament_id)
        if tournament is None:
            continue
        stats = tournament_stats(player_id, tournament_id, own)
        records.append(
            PlayerTournamentRecord(
                tournament=tournament,
                games_played=stats.games_played,
                wins=stats.wins,
                total_points=stats.total_points,
                placement_points=stats.placement_points,
                achievement_points=stats.achievement_points,
            )
        )

    records.sort(key=lambda record: record.tournament.start_date, reverse=True)
    return records


def player_achievement_breakdown(
    player_id: str,
    results: Iterable[Any],
    achievements: Iterable[Any],
) -> list[AchievementBreakdown]:
    """
    What a player has earned, by achievement, highest value first.

    Points use the achievement's current catalog value. Achievements no
    longer in the catalog are skipped.
    """
    counts: dict[str, int] = defaultdict(int)
    for result in results:
        if result.player_id == player_id:
            for achievement_id in result.achievement_ids:
                counts[achievement_id] += 1

    breakdown = [
        AchievementBreakdown(
            achievement=achievement,
            count=counts[achievement.id],
            total_points=achievement.points * counts[achievement.id],
        )
        for achievement in achievements
        if counts.get(achievement.id)
    ]
    breakdown.sort(key=lambda row: row.total_points, reverse=True)
    return breakdown


def performance_trend(player_id: Optional[str], results: Iterable[Any]) -> list[PerformanceTrendPoint]:
    """Running total of a player's points at the end of each week played."""
    if not player_id:
        return []

    own = sorted(
        (result for result in results if result.player_id == player_id),
        key=lambda result: (result.week, result.round),
    )
    cumulative = 0
    by_week: dict[int, int] = {}
    for result in own:
        cumulative += result.total_points
        by_week[result.week] = cumulative

    return [PerformanceTrendPoint(week=week, cumulative_points=points) for week, points in sorted(by_week.items())]
