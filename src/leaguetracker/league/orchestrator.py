"""
League orchestrator: the single writer for league state.

Every command a UI can issue (create a tournament, take attendance,
stage placements, finalize/undo/edit a round, manage the roster and the
achievement catalog, navigate) goes through LeagueOrchestrator. Each
command runs as one unit of work on the SQLAlchemy session: it commits
when it completes and rolls back and re-raises if anything fails, so a
caller never observes a half-applied round.

Bad input is never an error here. Out-of-range numbers are clamped,
unknown ids and unmet preconditions (nothing staged, no history) turn
the command into a logged no-op.

Round lifecycle:

    confirm_attendance -> generate_pods -> update_placement /
    update_achievement_check -> finalize_round -> (next round | next week
    | tournament complete)

finalize_round records a PodSnapshot holding the exact deltas it
applied. undo_last_pod subtracts them again; apply_edited_round swaps
them for corrected ones in place. When a round closed out a week the
snapshot also carries a WeekBoundary, and undo restores that week from
it verbatim.
"""

import logging
import random
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Generator, Iterable, Mapping, Optional

from sqlalchemy.orm import Session

from leaguetracker.config import settings
from leaguetracker.constants import (
    ACHIEVEMENT_POINTS_RANGE,
    DEFAULT_TOURNAMENT_NAME,
    RANDOM_ACHIEVEMENTS_PER_WEEK_RANGE,
    ROUNDS_PER_WEEK,
    WEEKS_RANGE,
    clamp,
    is_valid_placement,
)
from leaguetracker.db.models import (
    Achievement,
    GameResult,
    LeagueState,
    Player,
    Tournament,
    TournamentStatus,
    new_id,
)
from leaguetracker.engine.achievements import roll_active_achievements
from leaguetracker.engine.pods import default_placements, generate_pods_for_round
from leaguetracker.engine.scoring import RoundScore, score_round
from leaguetracker.engine.snapshots import PlayerDelta, PodSnapshot, WeekBoundary, WeeklyPlayerPoints
from leaguetracker.screens import PRE_TOURNAMENT_SCREENS, Screen
from leaguetracker.stats.players import sort_by_weekly_points

logger = logging.getLogger(__name__)


def _shift_weekly(
    weekly: Mapping[str, WeeklyPlayerPoints],
    deltas: Mapping[str, WeeklyPlayerPoints],
    sign: int,
) -> dict[str, WeeklyPlayerPoints]:
    """
    Add (sign=1) or subtract (sign=-1) weekly deltas.

    Adding creates missing entries; subtracting skips them.
    """
    shifted = dict(weekly)
    for player_id, delta in deltas.items():
        current = shifted.get(player_id)
        if sign > 0:
            shifted[player_id] = (current or WeeklyPlayerPoints()).plus(delta)
        elif current is not None:
            shifted[player_id] = current.minus(delta)
    return shifted


def _check_key(check: Any) -> tuple[str, str]:
    if hasattr(check, "key"):
        return check.key
    player_id, achievement_id = check
    return (player_id, achievement_id)


class LeagueOrchestrator:
    """
    Coordinates every league operation against the database session.

    Usage:
        with get_session() as session:
            league = LeagueOrchestrator(session)
            league.validate_and_sanitize_state()

            tournament = league.create_tournament("Spring League", 4, 2, player_ids)
            league.confirm_attendance(player_ids, achievements_on_this_week=True)
            league.generate_pods()
            league.update_placement(player_ids[0], 1)
            league.finalize_round()
    """

    def __init__(self, db: Session, rng: Optional[random.Random] = None):
        """
        Initialize the orchestrator.

        Args:
            db: SQLAlchemy session holding the league collections
            rng: Random source for pod shuffles and achievement rolls.
                 Defaults to one seeded from settings.random_seed.
        """
        self.db = db
        self.rng = rng or random.Random(settings.random_seed)

    @contextmanager
    def _unit_of_work(self) -> Generator[None, None, None]:
        """Commit on success, roll back and re-raise on any exception."""
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # =========================================================================
    # Selectors
    # =========================================================================

    @property
    def league_state(self) -> Optional[LeagueState]:
        return self.db.query(LeagueState).order_by(LeagueState.id).first()

    def active_tournament(self) -> Optional[Tournament]:
        state = self.league_state
        if state is None or not state.has_active_tournament:
            return None
        return self.db.get(Tournament, state.active_tournament_id)

    def tournaments(self) -> list[Tournament]:
        """All tournaments, most recently started first."""
        return self.db.query(Tournament).order_by(Tournament.start_date.desc()).all()

    def ongoing_tournaments(self) -> list[Tournament]:
        return [t for t in self.tournaments() if t.is_ongoing]

    def completed_tournaments(self) -> list[Tournament]:
        return [t for t in self.tournaments() if t.is_completed]

    def get_player(self, player_id: Optional[str]) -> Optional[Player]:
        if not player_id:
            return None
        return self.db.get(Player, player_id)

    def get_achievement(self, achievement_id: Optional[str]) -> Optional[Achievement]:
        if not achievement_id:
            return None
        return self.db.get(Achievement, achievement_id)

    def players(self) -> list[Player]:
        return self.db.query(Player).order_by(Player.created_at, Player.name).all()

    def achievements(self) -> list[Achievement]:
        return self.db.query(Achievement).order_by(Achievement.name).all()

    def game_results(self, tournament_id: Optional[str] = None) -> list[GameResult]:
        query = self.db.query(GameResult)
        if tournament_id is not None:
            query = query.filter(GameResult.tournament_id == tournament_id)
        return query.order_by(GameResult.week, GameResult.round, GameResult.timestamp).all()

    def active_achievements(self) -> list[Achievement]:
        """This week's active achievements for the active tournament, in roll order."""
        tournament = self.active_tournament()
        if tournament is None:
            return []
        catalog = {a.id: a for a in self.achievements()}
        return [catalog[a_id] for a_id in tournament.active_achievement_ids if a_id in catalog]

    def weekly_standings(self) -> list[tuple[Player, WeeklyPlayerPoints]]:
        """(player, weekly points) for the active week, highest total first."""
        tournament = self.active_tournament()
        if tournament is None:
            return []
        weekly = tournament.weekly_points_by_player
        standings = []
        for player_id in sort_by_weekly_points(weekly.keys(), weekly):
            player = self.get_player(player_id)
            if player is not None:
                standings.append((player, weekly[player_id]))
        return standings

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _ensure_league_state(self) -> LeagueState:
        """Return the singleton, creating it if missing and dropping extras."""
        states = self.db.query(LeagueState).order_by(LeagueState.id).all()
        if not states:
            state = LeagueState()
            self.db.add(state)
            self.db.flush()
            logger.info("Created league state")
            return state

        for extra in states[1:]:
            logger.warning("Removing duplicate league state id=%s", extra.id)
            self.db.delete(extra)
        return states[0]

    def _ongoing_active(self) -> Optional[Tournament]:
        tournament = self.active_tournament()
        if tournament is None:
            logger.debug("No active tournament")
            return None
        if not tournament.is_ongoing:
            logger.debug("Active tournament %s is already completed", tournament.id)
            return None
        return tournament

    def _apply_player_delta(self, player_id: str, delta: PlayerDelta, sign: int) -> None:
        player = self.get_player(player_id)
        if player is None:
            # Removed from the roster since the round was recorded
            return
        player.placement_points += sign * delta.placement_points
        player.achievement_points += sign * delta.achievement_points
        player.wins += sign * delta.wins
        player.games_played += sign * delta.games_played

    def _roll_achievement_ids(self, count: int) -> list[str]:
        return [a.id for a in roll_active_achievements(self.achievements(), count, self.rng)]

    def _score(self, placements: Mapping[str, int], checks: Iterable[Any], achievements_on: bool) -> RoundScore:
        return score_round(placements, [_check_key(c) for c in checks], self.achievements(), achievements_on)

    # =========================================================================
    # Tournament Lifecycle
    # =========================================================================

    def create_tournament(
        self,
        name: Optional[str],
        total_weeks: Optional[int] = None,
        random_achievements_per_week: Optional[int] = None,
        player_ids: Iterable[str] = (),
    ) -> Tournament:
        """
        Start a new tournament and make it active.

        Args:
            name: Display name; blank becomes "New Tournament"
            total_weeks: Clamped to 1-99 (settings default when None)
            random_achievements_per_week: Clamped to 0-99 (settings default when None)
            player_ids: Roster for the tournament; unknown ids are dropped

        Returns:
            The new tournament, positioned at week 1 round 1
        """
        with self._unit_of_work():
            weeks = clamp(
                settings.default_total_weeks if total_weeks is None else total_weeks,
                WEEKS_RANGE,
            )
            per_week = clamp(
                settings.default_random_achievements_per_week
                if random_achievements_per_week is None else random_achievements_per_week,
                RANDOM_ACHIEVEMENTS_PER_WEEK_RANGE,
            )

            selected = []
            for player_id in dict.fromkeys(player_ids):
                player = self.get_player(player_id)
                if player is None:
                    logger.debug("Skipping unknown player %s", player_id)
                    continue
                player.tournaments_played += 1
                selected.append(player_id)

            tournament = Tournament(
                name=(name or "").strip() or DEFAULT_TOURNAMENT_NAME,
                total_weeks=weeks,
                random_achievements_per_week=per_week,
                selected_player_ids=selected,
                active_achievement_ids=self._roll_achievement_ids(per_week),
            )
            self.db.add(tournament)

            state = self._ensure_league_state()
            state.active_tournament_id = tournament.id
            state.screen = Screen.ATTENDANCE

        logger.info(
            "Created tournament '%s' (%d weeks, %d random achievements/week, %d players)",
            tournament.name, weeks, per_week, len(selected),
        )
        return tournament

    def confirm_attendance(self, present_player_ids: Iterable[str], achievements_on_this_week: bool = True) -> None:
        """
        Record who is playing this week and move on to pods.

        A fresh week starts every present player at zero. If the week
        already has staged placements, saved pods, or history (re-confirming
        after a restart), all of it is kept and only newly present players
        get a zeroed entry.
        """
        tournament = self._ongoing_active()
        if tournament is None:
            return

        present = list(dict.fromkeys(present_player_ids))

        with self._unit_of_work():
            if tournament.has_round_data:
                weekly = dict(tournament.weekly_points_by_player)
                for player_id in present:
                    weekly.setdefault(player_id, WeeklyPlayerPoints())
            else:
                weekly = {player_id: WeeklyPlayerPoints() for player_id in present}
                tournament.current_round = 1
                tournament.pod_history_snapshots = []
                tournament.clear_round_staging()

            tournament.present_player_ids = present
            tournament.weekly_points_by_player = weekly
            tournament.achievements_on_this_week = achievements_on_this_week
            self._ensure_league_state().screen = Screen.PODS

        logger.info(
            "Week %d attendance: %d players, achievements %s",
            tournament.current_week, len(present), "on" if achievements_on_this_week else "off",
        )

    def select_tournament(self, tournament_id: str) -> Optional[Tournament]:
        """Make an existing tournament active and open it at the right step."""
        tournament = self.db.get(Tournament, tournament_id)
        if tournament is None:
            logger.debug("Cannot select unknown tournament %s", tournament_id)
            return None

        with self._unit_of_work():
            state = self._ensure_league_state()
            state.active_tournament_id = tournament.id
            state.screen = Screen.TOURNAMENT_STANDINGS if tournament.is_completed else Screen.ATTENDANCE
        return tournament

    def close_tournament_standings(self) -> None:
        """Leave the final standings of a completed tournament."""
        tournament = self.active_tournament()
        if tournament is not None and tournament.is_ongoing:
            logger.debug("Tournament %s is still ongoing; standings stay open", tournament.id)
            return

        with self._unit_of_work():
            state = self._ensure_league_state()
            state.active_tournament_id = None
            state.screen = Screen.TOURNAMENTS

    def archive_tournament(self) -> None:
        """Force-complete the active tournament and return to the list."""
        tournament = self.active_tournament()
        if tournament is None:
            logger.debug("No active tournament to archive")
            return

        with self._unit_of_work():
            if tournament.is_ongoing:
                tournament.status = TournamentStatus.COMPLETED
                tournament.end_date = datetime.utcnow()
            state = self._ensure_league_state()
            state.active_tournament_id = None
            state.screen = Screen.TOURNAMENTS

        logger.info("Archived tournament '%s'", tournament.name)

    def delete_tournament(self, tournament_id: str) -> bool:
        """Delete a tournament and its game results. Player totals are not touched."""
        tournament = self.db.get(Tournament, tournament_id)
        if tournament is None:
            return False

        name = tournament.name
        with self._unit_of_work():
            state = self._ensure_league_state()
            if state.active_tournament_id == tournament_id:
                state.active_tournament_id = None
                state.screen = Screen.TOURNAMENTS
            self.db.delete(tournament)

        logger.info("Deleted tournament '%s'", name)
        return True

    # =========================================================================
    # Round Staging
    # =========================================================================

    def generate_pods(self) -> list[list[Player]]:
        """
        Seat this week's present players for the current round.

        Saves the layout as current_pods, clears any staging, and seeds
        each player's placement from their seat.
        """
        tournament = self._ongoing_active()
        if tournament is None:
            return []

        pods = generate_pods_for_round(
            self.players(),
            tournament.present_player_ids,
            tournament.current_round,
            tournament.weekly_points_by_player,
            self.rng,
        )
        pod_ids = [[player.id for player in pod] for pod in pods]

        with self._unit_of_work():
            tournament.clear_round_staging()
            tournament.current_pods = pod_ids
            tournament.round_placements = default_placements(pod_ids)

        logger.info(
            "Week %d round %d: %d pods",
            tournament.current_week, tournament.current_round, len(pods),
        )
        return pods

    def set_current_pods(self, pods: Iterable[Iterable[str]]) -> None:
        """Save a manually arranged pod layout."""
        tournament = self._ongoing_active()
        if tournament is None:
            return
        with self._unit_of_work():
            tournament.current_pods = [list(pod) for pod in pods]

    def update_placement(self, player_id: str, placement: Optional[int]) -> None:
        """Stage a player's placement for this round; None clears it."""
        tournament = self._ongoing_active()
        if tournament is None:
            return

        placements = dict(tournament.round_placements)
        if placement is None:
            if placements.pop(player_id, None) is None:
                return
        elif not is_valid_placement(placement):
            logger.debug("Ignoring out-of-range placement %r for %s", placement, player_id)
            return
        elif self.get_player(player_id) is None:
            logger.debug("Ignoring placement for unknown player %s", player_id)
            return
        else:
            placements[player_id] = placement

        with self._unit_of_work():
            tournament.round_placements = placements

    def update_achievement_check(self, player_id: str, achievement_id: str, checked: bool) -> None:
        """Stage or unstage one achievement credit for this round."""
        tournament = self._ongoing_active()
        if tournament is None:
            return
        if self.get_player(player_id) is None or self.get_achievement(achievement_id) is None:
            logger.debug("Ignoring check for unknown player/achievement %s/%s", player_id, achievement_id)
            return

        key = (player_id, achievement_id)
        checks = [tuple(check) for check in tournament.round_achievement_checks]
        if checked and key not in checks:
            checks.append(key)
        elif not checked and key in checks:
            checks.remove(key)
        else:
            return

        with self._unit_of_work():
            tournament.round_achievement_checks = checks

    def clear_round_data(self) -> None:
        """Drop staged placements, checks and pods without scoring anything."""
        tournament = self._ongoing_active()
        if tournament is None:
            return
        with self._unit_of_work():
            tournament.clear_round_staging()

    # =========================================================================
    # Finalize / Undo / Edit
    # =========================================================================

    def finalize_round(self) -> Optional[PodSnapshot]:
        """
        Score the staged round and advance the tournament.

        Writes one GameResult per staged player under a shared pod_id,
        adds the round's deltas to player totals and weekly points, and
        records a PodSnapshot for undo. Then:

        - mid-week: round += 1
        - last round of a week: on to the next week (attendance), with
          the ending week captured in a WeekBoundary
        - last round of the final week: tournament completed (standings)

        Returns:
            The recorded snapshot, or None when nothing was staged
        """
        tournament = self._ongoing_active()
        if tournament is None:
            return None

        score = self._score(
            tournament.round_placements,
            tournament.round_achievement_checks,
            tournament.achievements_on_this_week,
        )
        if score.is_empty:
            logger.debug("Nothing staged for week %d round %d", tournament.current_week, tournament.current_round)
            return None

        week, round_number = tournament.current_week, tournament.current_round
        is_last_round = tournament.is_last_round_of_week
        is_final_week = tournament.is_final_week

        with self._unit_of_work():
            pod_id = new_id()
            now = datetime.utcnow()
            for player_id in score.player_ids:
                delta = score.deltas[player_id]
                self.db.add(
                    GameResult(
                        tournament_id=tournament.id,
                        week=week,
                        round=round_number,
                        player_id=player_id,
                        placement=score.placements[player_id],
                        placement_points=delta.placement_points,
                        achievement_points=delta.achievement_points,
                        achievement_ids=score.earned[player_id],
                        pod_id=pod_id,
                        timestamp=now,
                    )
                )
                self._apply_player_delta(player_id, delta, 1)

            snapshot = PodSnapshot(
                pod_id=pod_id,
                player_ids=score.player_ids,
                placements=score.placements,
                achievement_checks=score.checks,
                player_deltas=score.deltas,
                weekly_deltas=score.weekly_deltas,
                week=week,
                round=round_number,
            )
            weekly_before = tournament.weekly_points_by_player
            state = self._ensure_league_state()

            if is_last_round and is_final_week:
                snapshot = snapshot.model_copy(update={"completed_tournament": True})
                tournament.weekly_points_by_player = _shift_weekly(weekly_before, score.weekly_deltas, 1)
                tournament.pod_history_snapshots = [*tournament.pod_history_snapshots, snapshot]
                tournament.status = TournamentStatus.COMPLETED
                tournament.end_date = now
                state.screen = Screen.TOURNAMENT_STANDINGS
            elif is_last_round:
                boundary = WeekBoundary(
                    previous_week=week,
                    previous_present_player_ids=tournament.present_player_ids,
                    previous_weekly_points_by_player=weekly_before,
                    previous_active_achievement_ids=tournament.active_achievement_ids,
                    previous_achievements_on_this_week=tournament.achievements_on_this_week,
                    previous_pod_history_snapshots=tournament.pod_history_snapshots,
                )
                snapshot = snapshot.model_copy(update={"week_boundary": boundary})
                tournament.current_week = week + 1
                tournament.current_round = 1
                tournament.present_player_ids = []
                tournament.weekly_points_by_player = {}
                tournament.active_achievement_ids = self._roll_achievement_ids(
                    tournament.random_achievements_per_week
                )
                tournament.pod_history_snapshots = [snapshot]
                state.screen = Screen.ATTENDANCE
            else:
                tournament.weekly_points_by_player = _shift_weekly(weekly_before, score.weekly_deltas, 1)
                tournament.pod_history_snapshots = [*tournament.pod_history_snapshots, snapshot]
                tournament.current_round = round_number + 1

            tournament.clear_round_staging()

        if snapshot.completed_tournament:
            logger.info("Tournament '%s' completed after week %d", tournament.name, week)
        elif snapshot.week_boundary is not None:
            logger.info("Week %d finished; tournament '%s' advanced to week %d", week, tournament.name, week + 1)
        else:
            logger.info("Finalized week %d round %d (%d players)", week, round_number, len(score.player_ids))
        return snapshot

    def undo_last_pod(self) -> Optional[PodSnapshot]:
        """
        Reverse the most recently finalized round.

        Player totals lose exactly the snapshot's deltas and its game
        results are deleted. A snapshot that crossed a week boundary
        restores the previous week verbatim at its last round; one that
        completed the tournament reopens it at the same week and round.

        Returns:
            The reversed snapshot, or None when there is no history
        """
        tournament = self.active_tournament()
        snapshot = tournament.last_snapshot if tournament is not None else None
        if snapshot is None:
            logger.debug("Nothing to undo")
            return None

        history = tournament.pod_history_snapshots

        with self._unit_of_work():
            for player_id, delta in snapshot.player_deltas.items():
                self._apply_player_delta(player_id, delta, -1)
            for result in self.db.query(GameResult).filter(GameResult.pod_id == snapshot.pod_id).all():
                self.db.delete(result)

            state = self._ensure_league_state()
            boundary = snapshot.week_boundary
            if boundary is not None:
                tournament.current_week = boundary.previous_week
                tournament.current_round = ROUNDS_PER_WEEK
                tournament.present_player_ids = boundary.previous_present_player_ids
                tournament.weekly_points_by_player = boundary.previous_weekly_points_by_player
                tournament.active_achievement_ids = boundary.previous_active_achievement_ids
                tournament.achievements_on_this_week = boundary.previous_achievements_on_this_week
                tournament.pod_history_snapshots = boundary.previous_pod_history_snapshots
                state.screen = Screen.PODS
            else:
                tournament.weekly_points_by_player = _shift_weekly(
                    tournament.weekly_points_by_player, snapshot.weekly_deltas, -1
                )
                tournament.pod_history_snapshots = history[:-1]
                if snapshot.completed_tournament:
                    tournament.status = TournamentStatus.ONGOING
                    tournament.end_date = None
                    state.screen = Screen.PODS
                else:
                    tournament.current_round = max(1, tournament.current_round - 1)

            tournament.clear_round_staging()

        logger.info("Undid week %d round %d (pod %s)", snapshot.week, snapshot.round, snapshot.pod_id)
        return snapshot

    def apply_edited_round(
        self,
        new_placements: Mapping[str, int],
        new_achievement_checks: Iterable[Any] = (),
    ) -> Optional[PodSnapshot]:
        """
        Correct the most recently finalized round in place.

        Equivalent to undoing the round and finalizing it again with the
        corrected inputs, except that week, round and history depth are
        left alone and the existing GameResult rows are updated rather
        than replaced.

        Args:
            new_placements: player_id -> corrected placement. Only players
                who played the edited round are considered; one missing here
                or given an out-of-range value keeps their old placement.
            new_achievement_checks: (player_id, achievement_id) pairs or
                AchievementCheck objects

        Returns:
            The replacement snapshot, or None when there is no history
        """
        tournament = self.active_tournament()
        old = tournament.last_snapshot if tournament is not None else None
        if old is None:
            logger.debug("Nothing to edit")
            return None

        history = tournament.pod_history_snapshots
        boundary = old.week_boundary
        achievements_on = (
            boundary.previous_achievements_on_this_week if boundary is not None
            else tournament.achievements_on_this_week
        )

        placements = {}
        for player_id in old.player_ids:
            placement = new_placements.get(player_id)
            placements[player_id] = placement if is_valid_placement(placement) else old.placements[player_id]
        score = self._score(placements, new_achievement_checks, achievements_on)

        with self._unit_of_work():
            for player_id, delta in old.player_deltas.items():
                self._apply_player_delta(player_id, delta, -1)
            for player_id, delta in score.deltas.items():
                self._apply_player_delta(player_id, delta, 1)

            # A boundary snapshot's round belongs to the previous week
            if boundary is None:
                weekly = _shift_weekly(tournament.weekly_points_by_player, old.weekly_deltas, -1)
                tournament.weekly_points_by_player = _shift_weekly(weekly, score.weekly_deltas, 1)

            for result in self.db.query(GameResult).filter(GameResult.pod_id == old.pod_id).all():
                delta = score.deltas.get(result.player_id)
                if delta is None:
                    continue
                result.placement = score.placements[result.player_id]
                result.placement_points = delta.placement_points
                result.achievement_points = delta.achievement_points
                result.achievement_ids = score.earned[result.player_id]

            edited = old.model_copy(
                update={
                    "placements": score.placements,
                    "achievement_checks": score.checks,
                    "player_deltas": score.deltas,
                    "weekly_deltas": score.weekly_deltas,
                }
            )
            tournament.pod_history_snapshots = [*history[:-1], edited]

        logger.info("Edited week %d round %d (pod %s)", old.week, old.round, old.pod_id)
        return edited

    # =========================================================================
    # Roster
    # =========================================================================

    def add_player(self, name: Optional[str]) -> Optional[Player]:
        name = (name or "").strip()
        if not name:
            logger.debug("Ignoring blank player name")
            return None
        with self._unit_of_work():
            player = Player(name=name)
            self.db.add(player)
        logger.info("Added player '%s'", name)
        return player

    def add_weekly_player(self, name: Optional[str]) -> Optional[Player]:
        """
        Add a walk-in player during attendance.

        The player joins the active tournament as present with zeroed
        weekly points. Without an ongoing active tournament they are only
        added to the roster.
        """
        name = (name or "").strip()
        if not name:
            logger.debug("Ignoring blank player name")
            return None

        tournament = self._ongoing_active()
        with self._unit_of_work():
            player = Player(name=name)
            self.db.add(player)
            if tournament is not None:
                player.tournaments_played += 1
                tournament.selected_player_ids = [*tournament.selected_player_ids, player.id]
                tournament.present_player_ids = [*tournament.present_player_ids, player.id]
                tournament.weekly_points_by_player = {
                    **tournament.weekly_points_by_player,
                    player.id: WeeklyPlayerPoints(),
                }

        logger.info("Added weekly player '%s'", name)
        return player

    def remove_player(self, player_id: str) -> bool:
        """Remove a player from the roster. Their game results are kept."""
        player = self.get_player(player_id)
        if player is None:
            return False
        name = player.name
        with self._unit_of_work():
            self.db.delete(player)
        logger.info("Removed player '%s'", name)
        return True

    # =========================================================================
    # Achievement Catalog
    # =========================================================================

    def add_achievement(self, name: Optional[str], points: int = 0, always_on: bool = False) -> Optional[Achievement]:
        name = (name or "").strip()
        if not name:
            logger.debug("Ignoring blank achievement name")
            return None
        with self._unit_of_work():
            achievement = Achievement(
                name=name,
                points=clamp(points, ACHIEVEMENT_POINTS_RANGE),
                always_on=always_on,
            )
            self.db.add(achievement)
        logger.info("Added achievement '%s' (%d points)", name, achievement.points)
        return achievement

    def remove_achievement(self, achievement_id: str) -> bool:
        achievement = self.get_achievement(achievement_id)
        if achievement is None:
            return False
        name = achievement.name
        with self._unit_of_work():
            self.db.delete(achievement)
        logger.info("Removed achievement '%s'", name)
        return True

    def set_achievement_always_on(self, achievement_id: str, always_on: bool) -> None:
        achievement = self.get_achievement(achievement_id)
        if achievement is None:
            logger.debug("Unknown achievement %s", achievement_id)
            return
        with self._unit_of_work():
            achievement.always_on = always_on

    def set_achievement_points(self, achievement_id: str, points: int) -> None:
        """Change an achievement's value. Already recorded results keep theirs."""
        achievement = self.get_achievement(achievement_id)
        if achievement is None:
            logger.debug("Unknown achievement %s", achievement_id)
            return
        with self._unit_of_work():
            achievement.points = clamp(points, ACHIEVEMENT_POINTS_RANGE)

    # =========================================================================
    # Navigation and Recovery
    # =========================================================================

    def set_screen(self, screen: Screen | str) -> Screen:
        with self._unit_of_work():
            state = self._ensure_league_state()
            state.screen = screen
        return state.screen

    def validate_and_sanitize_state(self) -> LeagueState:
        """
        Startup/recovery hook. Safe to call any number of times.

        - exactly one LeagueState row exists afterwards
        - an empty achievement catalog gets the configured default entry
        - a binding to a tournament that no longer exists is cleared
        - the stored screen is rewritten to its decoded value, and reset
          to the tournament list if it needs a tournament and none is active
        """
        with self._unit_of_work():
            state = self._ensure_league_state()

            if self.db.query(Achievement).count() == 0:
                self.db.add(
                    Achievement(
                        name=settings.default_achievement_name,
                        points=clamp(settings.default_achievement_points, ACHIEVEMENT_POINTS_RANGE),
                        always_on=settings.default_achievement_always_on,
                    )
                )
                logger.info("Seeded default achievement '%s'", settings.default_achievement_name)

            if state.has_active_tournament and self.db.get(Tournament, state.active_tournament_id) is None:
                logger.warning("Clearing binding to missing tournament %s", state.active_tournament_id)
                state.active_tournament_id = None

            screen = state.screen
            if not state.has_active_tournament and screen not in PRE_TOURNAMENT_SCREENS:
                screen = Screen.TOURNAMENTS
            if state.current_screen != screen.value:
                state.current_screen = screen.value

        return state
