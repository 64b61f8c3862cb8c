"""
Unit tests for the league orchestrator.

Covers the tournament state machine end to end against an in-memory
database:
- Finalizing a round is additive and awards 4+3+2+1 per full pod
- Undo exactly reverses a finalize, including across a week boundary
  and out of a completed tournament
- Editing a round matches undo-then-refinalize without moving the
  week/round counters or the history depth
- Attendance re-confirmation preserves in-progress data
- Bad input never raises, and failures roll back completely
"""

import pytest

from leaguetracker.db.models import Achievement, GameResult, LeagueState, Tournament, TournamentStatus
from leaguetracker.engine.snapshots import WeeklyPlayerPoints
from leaguetracker.screens import Screen


def stats_of(league, player_ids):
    """(placement, achievement, wins, games) per player."""
    players = [league.get_player(player_id) for player_id in player_ids]
    return [(p.placement_points, p.achievement_points, p.wins, p.games_played) for p in players]


def results_of(league, tournament_id):
    """Comparable view of a tournament's game results."""
    return sorted(
        (r.player_id, r.week, r.round, r.placement, r.placement_points, r.achievement_points, tuple(r.achievement_ids))
        for r in league.game_results(tournament_id)
    )


def play_round(league, placements, checks=()):
    for player_id, placement in placements.items():
        league.update_placement(player_id, placement)
    for player_id, achievement_id in checks:
        league.update_achievement_check(player_id, achievement_id, True)
    return league.finalize_round()


@pytest.fixture
def ids(four_players):
    return [player.id for player in four_players]


@pytest.fixture
def big_swing(league):
    return league.add_achievement("Big Swing", 3)


@pytest.fixture
def in_order(ids):
    """Alice 1st, Bob 2nd, Cara 3rd, Dan 4th."""
    return {player_id: place for place, player_id in enumerate(ids, start=1)}


@pytest.fixture
def reversed_order(ids):
    return {player_id: place for place, player_id in enumerate(reversed(ids), start=1)}


@pytest.fixture
def tournament(league, ids):
    """A two-week tournament with attendance taken for week 1."""
    created = league.create_tournament("Spring League", 2, 0, ids)
    league.confirm_attendance(ids, achievements_on_this_week=True)
    return created


class TestCreateTournament:
    """Tests for create_tournament()."""

    def test_initial_state(self, league, ids):
        tournament = league.create_tournament("Spring League", 4, 0, ids)

        assert tournament.status is TournamentStatus.ONGOING
        assert (tournament.current_week, tournament.current_round) == (1, 1)
        assert tournament.pod_history_snapshots == []
        assert tournament.round_placements == {}
        assert tournament.selected_player_ids == ids
        assert league.active_tournament().id == tournament.id
        assert league.league_state.screen is Screen.ATTENDANCE

    def test_tournaments_played_incremented(self, league, ids):
        league.create_tournament("One", 1, 0, ids[:2])
        league.create_tournament("Two", 1, 0, ids[:1])

        assert [league.get_player(i).tournaments_played for i in ids] == [2, 1, 0, 0]

    def test_settings_are_clamped(self, league, ids):
        low = league.create_tournament("Low", 0, -5, ids)
        high = league.create_tournament("High", 500, 150, ids)

        assert (low.total_weeks, low.random_achievements_per_week) == (1, 0)
        assert (high.total_weeks, high.random_achievements_per_week) == (99, 99)

    def test_blank_name_gets_default(self, league, ids):
        assert league.create_tournament("   ", 1, 0, ids).name == "New Tournament"

    def test_unknown_players_dropped(self, league, ids):
        tournament = league.create_tournament("Spring", 1, 0, [ids[0], "ghost", ids[0]])
        assert tournament.selected_player_ids == [ids[0]]

    def test_always_on_achievements_active(self, league, ids):
        always = league.add_achievement("Always", 2, always_on=True)
        tournament = league.create_tournament("Spring", 1, 0, ids)

        assert always.id in tournament.active_achievement_ids
        assert [a.id for a in league.active_achievements()] == [always.id]


class TestConfirmAttendance:
    """Tests for confirm_attendance()."""

    def test_fresh_week_zeroes_present_players(self, league, tournament, ids):
        active = league.active_tournament()

        assert active.present_player_ids == ids
        assert active.weekly_points_by_player == {i: WeeklyPlayerPoints() for i in ids}
        assert league.league_state.screen is Screen.PODS

    def test_reconfirm_preserves_staging(self, league, tournament, ids):
        league.update_placement(ids[0], 1)
        newcomer = league.add_player("Eve")

        league.confirm_attendance([*ids, newcomer.id], achievements_on_this_week=False)

        active = league.active_tournament()
        assert active.round_placements == {ids[0]: 1}
        assert active.weekly_points_by_player[newcomer.id] == WeeklyPlayerPoints()
        assert active.achievements_on_this_week is False

    def test_reconfirm_preserves_finished_rounds(self, league, tournament, ids, in_order):
        play_round(league, in_order)

        league.confirm_attendance(ids)

        active = league.active_tournament()
        assert active.current_round == 2
        assert len(active.pod_history_snapshots) == 1
        assert active.weekly_points_by_player[ids[0]].placement_points == 4


class TestStaging:
    """Tests for update_placement() and update_achievement_check()."""

    def test_none_removes_placement(self, league, tournament, ids):
        league.update_placement(ids[0], 2)
        league.update_placement(ids[0], None)
        assert league.active_tournament().round_placements == {}

    @pytest.mark.parametrize("placement", [0, 5, -1])
    def test_out_of_range_ignored(self, league, tournament, ids, placement):
        league.update_placement(ids[0], placement)
        assert league.active_tournament().round_placements == {}

    def test_unknown_player_ignored(self, league, tournament):
        league.update_placement("ghost", 1)
        assert league.active_tournament().round_placements == {}

    def test_toggle_achievement_check(self, league, tournament, ids, big_swing):
        league.update_achievement_check(ids[0], big_swing.id, True)
        league.update_achievement_check(ids[0], big_swing.id, True)
        assert league.active_tournament().round_achievement_checks == [(ids[0], big_swing.id)]

        league.update_achievement_check(ids[0], big_swing.id, False)
        assert league.active_tournament().round_achievement_checks == []

    def test_unknown_achievement_ignored(self, league, tournament, ids):
        league.update_achievement_check(ids[0], "missing", True)
        assert league.active_tournament().round_achievement_checks == []

    def test_generate_pods_saves_layout_and_seeds_placements(self, league, tournament, ids):
        extra = league.add_player("Eve")
        league.confirm_attendance([*ids, extra.id])

        pods = league.generate_pods()

        active = league.active_tournament()
        assert [len(pod) for pod in pods] == [4, 1]
        assert active.current_pods == [[p.id for p in pod] for pod in pods]
        assert sorted(active.round_placements.values()) == [1, 1, 2, 3, 4]

    def test_clear_round_data(self, league, tournament, ids):
        league.generate_pods()
        league.clear_round_data()

        active = league.active_tournament()
        assert active.round_placements == {}
        assert active.current_pods == []


class TestFinalizeRound:
    """Tests for finalize_round()."""

    def test_additive_and_sums_to_ten(self, league, tournament, ids, in_order):
        snapshot = play_round(league, in_order)

        assert stats_of(league, ids) == [(4, 0, 1, 1), (3, 0, 0, 1), (2, 0, 0, 1), (1, 0, 0, 1)]
        assert sum(league.get_player(i).placement_points for i in ids) == 10

        results = league.game_results(tournament.id)
        assert len(results) == 4
        assert {r.pod_id for r in results} == {snapshot.pod_id}
        assert {(r.week, r.round) for r in results} == {(1, 1)}

        active = league.active_tournament()
        assert active.current_round == 2
        assert active.round_placements == {}
        assert active.current_pods == []
        assert active.weekly_points_by_player[ids[1]].placement_points == 3

    def test_second_round_adds_on_top(self, league, tournament, ids, in_order, reversed_order):
        play_round(league, in_order)
        play_round(league, reversed_order)

        assert [s[0] for s in stats_of(league, ids)] == [5, 5, 5, 5]
        assert len(league.active_tournament().pod_history_snapshots) == 2

    def test_nothing_staged_is_noop(self, league, tournament, ids):
        assert league.finalize_round() is None

        active = league.active_tournament()
        assert active.current_round == 1
        assert league.game_results() == []

    def test_achievement_points_counted(self, league, tournament, ids, in_order, big_swing):
        play_round(league, in_order, checks=[(ids[3], big_swing.id)])

        dan = league.get_player(ids[3])
        assert (dan.placement_points, dan.achievement_points) == (1, 3)
        result = next(r for r in league.game_results() if r.player_id == ids[3])
        assert result.achievement_ids == [big_swing.id]

    def test_achievements_off_scores_zero(self, league, ids, in_order, big_swing):
        league.create_tournament("Quiet Week", 1, 0, ids)
        league.confirm_attendance(ids, achievements_on_this_week=False)

        snapshot = play_round(league, in_order, checks=[(i, big_swing.id) for i in ids])

        assert all(s[1] == 0 for s in stats_of(league, ids))
        assert all(r.achievement_ids == [] for r in league.game_results())
        assert all(d.achievement_points == 0 for d in snapshot.player_deltas.values())

    def test_failure_rolls_back_everything(self, league, tournament, ids, in_order, monkeypatch):
        for player_id, placement in in_order.items():
            league.update_placement(player_id, placement)
        before = stats_of(league, ids)

        def boom(*args, **kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(league, "_apply_player_delta", boom)
        with pytest.raises(RuntimeError):
            league.finalize_round()

        assert league.game_results() == []
        assert stats_of(league, ids) == before
        active = league.active_tournament()
        assert active.round_placements == in_order
        assert active.pod_history_snapshots == []


class TestWeekRollover:
    """Finalizing the last round of a week."""

    def test_advances_to_next_week(self, league, tournament, ids, in_order):
        for _ in range(3):
            play_round(league, in_order)

        active = league.active_tournament()
        assert (active.current_week, active.current_round) == (2, 1)
        assert active.present_player_ids == []
        assert active.weekly_points_by_player == {}
        assert active.status is TournamentStatus.ONGOING
        assert len(active.pod_history_snapshots) == 1
        assert active.pod_history_snapshots[0].week_boundary.previous_week == 1
        assert league.league_state.screen is Screen.ATTENDANCE

    def test_undo_restores_previous_week(self, league, tournament, ids, in_order, reversed_order):
        play_round(league, in_order)
        play_round(league, reversed_order)
        before = league.active_tournament()
        weekly_before = dict(before.weekly_points_by_player)
        stats_before = stats_of(league, ids)
        results_before = results_of(league, tournament.id)

        play_round(league, in_order)
        league.undo_last_pod()

        active = league.active_tournament()
        assert (active.current_week, active.current_round) == (1, 3)
        assert active.present_player_ids == ids
        assert active.weekly_points_by_player == weekly_before
        assert len(active.pod_history_snapshots) == 2
        assert stats_of(league, ids) == stats_before
        assert results_of(league, tournament.id) == results_before
        assert league.league_state.screen is Screen.PODS

    def test_undo_restores_previous_week_achievements(self, league, ids, in_order, big_swing):
        league.add_achievement("Untouched", 5)
        created = league.create_tournament("Achievement League", 2, 1, ids)
        week_one_ids = list(created.active_achievement_ids)
        league.confirm_attendance(ids, achievements_on_this_week=False)
        for _ in range(3):
            play_round(league, in_order)

        league.confirm_attendance(ids, achievements_on_this_week=True)
        assert league.active_tournament().achievements_on_this_week is True

        league.undo_last_pod()

        active = league.active_tournament()
        assert active.current_week == 1
        assert active.achievements_on_this_week is False
        assert active.active_achievement_ids == week_one_ids
        assert len(week_one_ids) == 1

    def test_second_week_scores_fresh(self, league, tournament, ids, in_order):
        for _ in range(3):
            play_round(league, in_order)
        league.confirm_attendance(ids)
        play_round(league, in_order)

        active = league.active_tournament()
        assert active.weekly_points_by_player[ids[0]].placement_points == 4
        assert league.get_player(ids[0]).placement_points == 16


class TestTournamentCompletion:
    """Finalizing the last round of the final week."""

    def test_four_players_one_week_scenario(self, league, ids):
        league.create_tournament("Sprint", 1, 0, ids)
        league.confirm_attendance(ids)

        for _ in range(3):
            play_round(league, {ids[0]: 1, ids[1]: 2, ids[2]: 3, ids[3]: 4})

        alice = league.get_player(ids[0])
        assert (alice.placement_points, alice.wins, alice.games_played) == (12, 3, 3)
        active = league.active_tournament()
        assert active.status is TournamentStatus.COMPLETED
        assert active.end_date is not None
        assert league.league_state.screen is Screen.TOURNAMENT_STANDINGS

    def test_finalize_after_completion_is_noop(self, league, ids, in_order):
        league.create_tournament("Sprint", 1, 0, ids)
        league.confirm_attendance(ids)
        for _ in range(3):
            play_round(league, in_order)

        league.update_placement(ids[0], 1)
        assert league.finalize_round() is None
        assert len(league.game_results()) == 12

    def test_undo_reopens_tournament(self, league, ids, in_order):
        league.create_tournament("Sprint", 1, 0, ids)
        league.confirm_attendance(ids)
        play_round(league, in_order)
        play_round(league, in_order)
        stats_before = stats_of(league, ids)

        play_round(league, in_order)
        league.undo_last_pod()

        active = league.active_tournament()
        assert active.status is TournamentStatus.ONGOING
        assert active.end_date is None
        assert (active.current_week, active.current_round) == (1, 3)
        assert len(active.pod_history_snapshots) == 2
        assert stats_of(league, ids) == stats_before
        assert league.league_state.screen is Screen.PODS

    def test_close_standings(self, league, ids, in_order):
        league.create_tournament("Sprint", 1, 0, ids)
        league.confirm_attendance(ids)
        for _ in range(3):
            play_round(league, in_order)

        league.close_tournament_standings()

        assert league.active_tournament() is None
        assert league.league_state.screen is Screen.TOURNAMENTS

    def test_close_standings_noop_while_ongoing(self, league, tournament):
        league.close_tournament_standings()
        assert league.active_tournament().id == tournament.id


class TestUndo:
    """Tests for undo_last_pod() within a week."""

    def test_exactly_reverses_finalize(self, league, tournament, ids, in_order, big_swing):
        before = stats_of(league, ids)

        play_round(league, in_order, checks=[(ids[1], big_swing.id)])
        league.undo_last_pod()

        assert stats_of(league, ids) == before
        assert league.game_results() == []
        active = league.active_tournament()
        assert active.current_round == 1
        assert active.pod_history_snapshots == []
        assert active.weekly_points_by_player == {i: WeeklyPlayerPoints() for i in ids}

    def test_only_last_round_reversed(self, league, tournament, ids, in_order, reversed_order):
        play_round(league, in_order)
        after_first = stats_of(league, ids)
        play_round(league, reversed_order)

        league.undo_last_pod()

        assert stats_of(league, ids) == after_first
        assert league.active_tournament().current_round == 2
        assert len(league.game_results()) == 4

    def test_empty_history_is_noop(self, league, tournament):
        assert league.undo_last_pod() is None
        assert league.active_tournament().current_round == 1


class TestApplyEditedRound:
    """Tests for apply_edited_round()."""

    def test_equivalent_to_undo_then_refinalize(self, league, tournament, ids, in_order, reversed_order, big_swing):
        play_round(league, in_order)
        result_ids = sorted(r.id for r in league.game_results())

        league.apply_edited_round(reversed_order, [(ids[0], big_swing.id)])

        edited_stats = stats_of(league, ids)
        edited_results = results_of(league, tournament.id)
        edited_weekly = dict(league.active_tournament().weekly_points_by_player)
        assert sorted(r.id for r in league.game_results()) == result_ids

        league.undo_last_pod()
        play_round(league, reversed_order, checks=[(ids[0], big_swing.id)])

        assert stats_of(league, ids) == edited_stats
        assert results_of(league, tournament.id) == edited_results
        assert league.active_tournament().weekly_points_by_player == edited_weekly

    def test_counters_and_history_unchanged(self, league, tournament, ids, in_order, reversed_order):
        play_round(league, in_order)
        play_round(league, in_order)

        snapshot = league.apply_edited_round(reversed_order)

        active = league.active_tournament()
        assert (active.current_week, active.current_round) == (1, 3)
        assert len(active.pod_history_snapshots) == 2
        assert active.pod_history_snapshots[-1] == snapshot
        assert snapshot.placements == reversed_order

    def test_player_set_is_fixed(self, league, tournament, ids, in_order):
        play_round(league, in_order)
        newcomer = league.add_player("Eve")

        league.apply_edited_round({ids[0]: 2, ids[1]: 1, newcomer.id: 3})

        results = {r.player_id: r.placement for r in league.game_results()}
        assert results == {ids[0]: 2, ids[1]: 1, ids[2]: 3, ids[3]: 4}
        assert league.get_player(newcomer.id).games_played == 0

    def test_edit_across_week_boundary(self, league, tournament, ids, in_order, reversed_order):
        play_round(league, in_order)
        play_round(league, in_order)
        weekly_before_last = dict(league.active_tournament().weekly_points_by_player)
        play_round(league, in_order)

        league.apply_edited_round(reversed_order)

        active = league.active_tournament()
        assert active.current_week == 2
        assert active.weekly_points_by_player == {}
        assert [s[0] for s in stats_of(league, ids)] == [9, 8, 7, 6]

        league.undo_last_pod()
        assert league.active_tournament().weekly_points_by_player == weekly_before_last
        assert [s[0] for s in stats_of(league, ids)] == [8, 6, 4, 2]

    def test_empty_history_is_noop(self, league, tournament, in_order):
        assert league.apply_edited_round(in_order) is None
        assert league.game_results() == []


class TestRosterAndCatalog:
    """Player and achievement management."""

    def test_blank_player_name(self, league):
        assert league.add_player("   ") is None

    def test_remove_player_keeps_results(self, league, tournament, ids, in_order):
        play_round(league, in_order)

        assert league.remove_player(ids[0]) is True
        assert league.get_player(ids[0]) is None
        assert len(league.game_results()) == 4
        assert league.remove_player(ids[0]) is False

    def test_undo_after_player_removed(self, league, tournament, ids, in_order):
        play_round(league, in_order)
        league.remove_player(ids[0])

        league.undo_last_pod()

        assert league.game_results() == []
        assert stats_of(league, ids[1:]) == [(0, 0, 0, 0)] * 3

    def test_add_weekly_player(self, league, tournament):
        player = league.add_weekly_player(" Eve ")

        active = league.active_tournament()
        assert player.name == "Eve"
        assert player.id in active.present_player_ids
        assert active.weekly_points_by_player[player.id] == WeeklyPlayerPoints()
        assert player.tournaments_played == 1

    def test_add_weekly_player_without_tournament(self, league):
        player = league.add_weekly_player("Eve")
        assert player.tournaments_played == 0

    def test_achievement_points_clamped(self, league):
        assert league.add_achievement("Huge", 150).points == 99
        assert league.add_achievement("", 5) is None

    def test_changing_points_keeps_recorded_results(self, league, tournament, ids, in_order, big_swing):
        play_round(league, in_order, checks=[(ids[0], big_swing.id)])

        league.set_achievement_points(big_swing.id, 10)
        league.set_achievement_always_on(big_swing.id, True)

        assert league.get_achievement(big_swing.id).points == 10
        assert league.get_achievement(big_swing.id).always_on is True
        result = next(r for r in league.game_results() if r.player_id == ids[0])
        assert result.achievement_points == 3
        assert league.get_player(ids[0]).achievement_points == 3

    def test_remove_achievement(self, league, big_swing):
        assert league.remove_achievement(big_swing.id) is True
        assert league.get_achievement(big_swing.id) is None
        assert league.remove_achievement(big_swing.id) is False


class TestTournamentManagement:
    """Selecting, archiving and deleting tournaments."""

    def test_select_ongoing_and_completed(self, league, ids, in_order):
        done = league.create_tournament("Done", 1, 0, ids)
        league.confirm_attendance(ids)
        for _ in range(3):
            play_round(league, in_order)
        ongoing = league.create_tournament("Ongoing", 2, 0, ids)

        league.select_tournament(done.id)
        assert league.league_state.screen is Screen.TOURNAMENT_STANDINGS

        league.select_tournament(ongoing.id)
        assert league.league_state.screen is Screen.ATTENDANCE
        assert league.select_tournament("missing") is None

        assert [t.id for t in league.completed_tournaments()] == [done.id]
        assert [t.id for t in league.ongoing_tournaments()] == [ongoing.id]

    def test_archive(self, league, tournament):
        league.archive_tournament()

        archived = league.db.get(Tournament, tournament.id)
        assert archived.status is TournamentStatus.COMPLETED
        assert archived.end_date is not None
        assert league.active_tournament() is None

    def test_delete_removes_results(self, league, tournament, in_order):
        play_round(league, in_order)

        assert league.delete_tournament(tournament.id) is True

        assert league.db.query(GameResult).count() == 0
        assert league.active_tournament() is None
        assert league.league_state.screen is Screen.TOURNAMENTS

    def test_weekly_standings(self, league, tournament, ids, reversed_order):
        play_round(league, reversed_order)

        standings = league.weekly_standings()
        assert [player.id for player, _ in standings] == list(reversed(ids))

    def test_set_screen_accepts_raw_values(self, league):
        assert league.set_screen("stats") is Screen.STATS
        assert league.set_screen("nonsense") is Screen.TOURNAMENTS
        assert league.set_screen(Screen.PLAYERS) is Screen.PLAYERS


class TestValidateAndSanitizeState:
    """Tests for validate_and_sanitize_state()."""

    def test_idempotent(self, league, db_session):
        league.validate_and_sanitize_state()
        league.validate_and_sanitize_state()

        assert db_session.query(LeagueState).count() == 1
        assert db_session.query(Achievement).count() == 1

    def test_does_not_reseed_nonempty_catalog(self, league, big_swing):
        seeded = next(a for a in league.achievements() if a.id != big_swing.id)
        league.remove_achievement(seeded.id)

        league.validate_and_sanitize_state()

        assert [a.name for a in league.achievements()] == ["Big Swing"]

    def test_removes_duplicate_states(self, league, db_session):
        db_session.add(LeagueState())
        db_session.commit()

        league.validate_and_sanitize_state()

        assert db_session.query(LeagueState).count() == 1

    def test_clears_dangling_tournament(self, league, db_session):
        state = league.league_state
        state.active_tournament_id = "gone"
        state.current_screen = Screen.PODS.value
        db_session.commit()

        league.validate_and_sanitize_state()

        assert league.league_state.active_tournament_id is None
        assert league.league_state.current_screen == "tournaments"

    def test_rewrites_legacy_screen(self, league, db_session):
        league.league_state.current_screen = "confirmNewTournament"
        db_session.commit()

        league.validate_and_sanitize_state()

        assert league.league_state.current_screen == "newTournament"

    def test_leaves_active_tournament_alone(self, league, tournament):
        league.validate_and_sanitize_state()

        assert league.active_tournament().id == tournament.id
        assert league.league_state.screen is Screen.PODS
