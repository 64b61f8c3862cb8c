"""
SQLAlchemy ORM models for the league tracker.

This module defines the entity collections the league engine reads and
mutates. Persistence is deliberately thin: the engine treats these as
in-memory objects, and the session is only the place they are loaded
from and committed back to.

Key design decisions:
- Ids are UUID strings, generated on construction so that they can be
  used as keys in nested state before the first flush
- Live tournament progression (weekly points, staging, undo history)
  lives on the tournament row as typed JSON columns
- Game results reference their tournament by foreign key but their
  player only by id, so removing a player from the roster never
  touches recorded history
- Enumerated values (tournament status, screen) are stored as raw
  strings and decoded with a fallback, so unknown values never fail a
  load

Tables:
- players: Roster with all-time cumulative stats
- achievements: Catalog of achievements and their point values
- tournaments: One per league season, plus its live progression state
- game_results: One row per player per finalized round
- league_state: Singleton navigation/session record
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from leaguetracker.constants import (
    DEFAULT_ACHIEVEMENTS_ON_THIS_WEEK,
    DEFAULT_CURRENT_ROUND,
    DEFAULT_CURRENT_WEEK,
    INITIAL_PLAYER_STATS,
    ROUNDS_PER_WEEK,
)
from leaguetracker.db.types import PydanticJSON
from leaguetracker.engine.snapshots import PodSnapshot, WeeklyPlayerPoints
from leaguetracker.screens import Screen


def new_id() -> str:
    """Generate a fresh entity id."""
    return str(uuid.uuid4())


def _with_defaults(kwargs: dict[str, Any], defaults: dict[str, Callable[[], Any]]) -> dict[str, Any]:
    for key, factory in defaults.items():
        if kwargs.get(key) is None:
            kwargs[key] = factory()
    return kwargs


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class TournamentStatus(str, Enum):
    ONGOING = "ongoing"
    COMPLETED = "completed"

    @classmethod
    def from_raw(cls, raw: Optional[str]) -> "TournamentStatus":
        try:
            return cls(raw)
        except ValueError:
            return cls.ONGOING


# =============================================================================
# Roster Models
# =============================================================================

class Player(Base):
    """
    A player in the league.

    Players persist across tournaments and carry all-time cumulative
    stats. These are only ever changed by the league orchestrator when a
    round is finalized, undone, or edited. Total points are derived and
    never stored.
    """
    __tablename__ = "players"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # All-time cumulative stats
    placement_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    achievement_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    wins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    games_played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tournaments_played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def __init__(self, **kwargs: Any):
        defaults = {key: (lambda v=value: v) for key, value in INITIAL_PLAYER_STATS.items()}
        defaults["id"] = new_id
        super().__init__(**_with_defaults(kwargs, defaults))

    @property
    def total_points(self) -> int:
        """Placement plus achievement points, all-time."""
        return self.placement_points + self.achievement_points

    def __repr__(self) -> str:
        return f"<Player(id='{self.id}', name='{self.name}', points={self.total_points})>"


class Achievement(Base):
    """
    An achievement players can earn during a game.

    Always-on achievements are active every week. The others are
    candidates for the weekly random roll. Changing points here never
    rewrites points already recorded on game results.
    """
    __tablename__ = "achievements"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    always_on: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("points >= 0 AND points <= 99", name="ck_achievement_points_range"),
    )

    def __init__(self, **kwargs: Any):
        super().__init__(**_with_defaults(kwargs, {
            "id": new_id,
            "points": lambda: 0,
            "always_on": lambda: False,
        }))

    def __repr__(self) -> str:
        return f"<Achievement(name='{self.name}', points={self.points}, always_on={self.always_on})>"


# =============================================================================
# Tournament Models
# =============================================================================

class Tournament(Base):
    """
    A league season made of weeks of three rounds each.

    Metadata (name, length, random achievements per week, dates, status)
    is fixed at creation apart from completion. The live progression
    state below is only meaningful while the tournament is ongoing:

    - current_week / current_round: 1-based position in the season
    - present_player_ids: attendance for the current week
    - weekly_points_by_player: resets every week
    - active_achievement_ids: re-rolled every week
    - round_placements / round_achievement_checks: staging for the round
      in progress, cleared whenever a round is finalized or undone
    - current_pods: the pod layout generated for the round in progress
    - pod_history_snapshots: undo log of finalized rounds
    """
    __tablename__ = "tournaments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    total_weeks: Mapped[int] = mapped_column(Integer, nullable=False)
    random_achievements_per_week: Mapped[int] = mapped_column(Integer, nullable=False)

    start_date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Stored raw; read through the `status` property
    status_raw: Mapped[str] = mapped_column("status", String(20), nullable=False, default="ongoing")

    # Progression
    current_week: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_CURRENT_WEEK)
    current_round: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_CURRENT_ROUND)
    achievements_on_this_week: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=DEFAULT_ACHIEVEMENTS_ON_THIS_WEEK
    )

    # Rosters
    selected_player_ids: Mapped[list[str]] = mapped_column(PydanticJSON(list[str]), nullable=False)
    present_player_ids: Mapped[list[str]] = mapped_column(PydanticJSON(list[str]), nullable=False)

    # Weekly state
    weekly_points_by_player: Mapped[dict[str, WeeklyPlayerPoints]] = mapped_column(
        PydanticJSON(dict[str, WeeklyPlayerPoints]), nullable=False
    )
    active_achievement_ids: Mapped[list[str]] = mapped_column(PydanticJSON(list[str]), nullable=False)

    # Round in progress
    round_placements: Mapped[dict[str, int]] = mapped_column(PydanticJSON(dict[str, int]), nullable=False)
    round_achievement_checks: Mapped[list[tuple[str, str]]] = mapped_column(
        PydanticJSON(list[tuple[str, str]]), nullable=False
    )
    current_pods: Mapped[list[list[str]]] = mapped_column(PydanticJSON(list[list[str]]), nullable=False)

    # Undo log
    pod_history_snapshots: Mapped[list[PodSnapshot]] = mapped_column(
        PydanticJSON(list[PodSnapshot]), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    game_results: Mapped[list["GameResult"]] = relationship(
        back_populates="tournament", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("total_weeks >= 1 AND total_weeks <= 99", name="ck_total_weeks_range"),
        CheckConstraint(
            "random_achievements_per_week >= 0 AND random_achievements_per_week <= 99",
            name="ck_random_per_week_range",
        ),
    )

    def __init__(self, **kwargs: Any):
        status = kwargs.pop("status", None)
        super().__init__(**_with_defaults(kwargs, {
            "id": new_id,
            "start_date": datetime.utcnow,
            "status_raw": lambda: TournamentStatus.ONGOING.value,
            "current_week": lambda: DEFAULT_CURRENT_WEEK,
            "current_round": lambda: DEFAULT_CURRENT_ROUND,
            "achievements_on_this_week": lambda: DEFAULT_ACHIEVEMENTS_ON_THIS_WEEK,
            "selected_player_ids": list,
            "present_player_ids": list,
            "weekly_points_by_player": dict,
            "active_achievement_ids": list,
            "round_placements": dict,
            "round_achievement_checks": list,
            "current_pods": list,
            "pod_history_snapshots": list,
        }))
        if status is not None:
            self.status = status

    @property
    def status(self) -> TournamentStatus:
        return TournamentStatus.from_raw(self.status_raw)

    @status.setter
    def status(self, value: TournamentStatus | str) -> None:
        self.status_raw = TournamentStatus.from_raw(getattr(value, "value", value)).value

    @property
    def is_ongoing(self) -> bool:
        return self.status is TournamentStatus.ONGOING

    @property
    def is_completed(self) -> bool:
        return self.status is TournamentStatus.COMPLETED

    @property
    def is_final_week(self) -> bool:
        return self.current_week >= self.total_weeks

    @property
    def is_last_round_of_week(self) -> bool:
        return self.current_round >= ROUNDS_PER_WEEK

    @property
    def has_round_data(self) -> bool:
        """Whether any round of the current week has been staged, seated, or finalized."""
        return bool(self.round_placements or self.current_pods or self.pod_history_snapshots)

    @property
    def last_snapshot(self) -> Optional[PodSnapshot]:
        if not self.pod_history_snapshots:
            return None
        return self.pod_history_snapshots[-1]

    def clear_round_staging(self) -> None:
        self.round_placements = {}
        self.round_achievement_checks = []
        self.current_pods = []

    def __repr__(self) -> str:
        return (
            f"<Tournament(name='{self.name}', status='{self.status_raw}', "
            f"week={self.current_week}/{self.total_weeks}, round={self.current_round})>"
        )


class GameResult(Base):
    """
    One player's result in one finalized round.

    Every player seated in the same pod for the same round shares a
    pod_id, which is what head-to-head stats group on. Rows are written
    in batches when a round is finalized, corrected in place by the edit
    operation, and deleted by pod_id on undo.
    """
    __tablename__ = "game_results"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    tournament_id: Mapped[str] = mapped_column(
        ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False
    )

    week: Mapped[int] = mapped_column(Integer, nullable=False)
    round: Mapped[int] = mapped_column(Integer, nullable=False)

    # Plain id, not a foreign key: roster deletion must not cascade here
    player_id: Mapped[str] = mapped_column(String(36), nullable=False)

    placement: Mapped[int] = mapped_column(Integer, nullable=False)
    placement_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    achievement_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    achievement_ids: Mapped[list[str]] = mapped_column(PydanticJSON(list[str]), nullable=False)

    pod_id: Mapped[str] = mapped_column(String(36), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    tournament: Mapped["Tournament"] = relationship(back_populates="game_results")

    __table_args__ = (
        CheckConstraint("placement >= 1 AND placement <= 4", name="ck_placement_range"),
        Index("idx_game_results_pod", "pod_id"),
        Index("idx_game_results_player", "player_id"),
        Index("idx_game_results_tournament_week_round", "tournament_id", "week", "round"),
    )

    def __init__(self, **kwargs: Any):
        super().__init__(**_with_defaults(kwargs, {
            "id": new_id,
            "timestamp": datetime.utcnow,
            "achievement_ids": list,
            "placement_points": lambda: 0,
            "achievement_points": lambda: 0,
        }))

    @property
    def total_points(self) -> int:
        return self.placement_points + self.achievement_points

    @property
    def is_win(self) -> bool:
        return self.placement == 1

    def __repr__(self) -> str:
        return (
            f"<GameResult(player_id='{self.player_id}', week={self.week}, "
            f"round={self.round}, placement={self.placement})>"
        )


# =============================================================================
# Session State
# =============================================================================

class LeagueState(Base):
    """
    Singleton navigation record.

    Exactly one row should exist. The sanitize hook creates it when
    missing and removes any extras; nothing else creates one.
    """
    __tablename__ = "league_state"

    id: Mapped[int] = mapped_column(primary_key=True)

    # No foreign key: a stale reference is repaired by the sanitize hook
    active_tournament_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    current_screen: Mapped[str] = mapped_column(
        String(50), nullable=False, default=Screen.TOURNAMENTS.value
    )

    def __init__(self, **kwargs: Any):
        super().__init__(**_with_defaults(kwargs, {
            "current_screen": lambda: Screen.TOURNAMENTS.value,
        }))

    @property
    def screen(self) -> Screen:
        return Screen.from_raw(self.current_screen)

    @screen.setter
    def screen(self, value: Screen | str) -> None:
        self.current_screen = Screen.from_raw(getattr(value, "value", value)).value

    @property
    def has_active_tournament(self) -> bool:
        return self.active_tournament_id is not None

    def __repr__(self) -> str:
        return (
            f"<LeagueState(active_tournament_id={self.active_tournament_id!r}, "
            f"screen='{self.current_screen}')>"
        )
