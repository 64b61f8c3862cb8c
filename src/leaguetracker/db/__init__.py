"""
Database module for the league tracker.

Provides SQLAlchemy ORM models and session management.

Usage:
    from leaguetracker.db import get_session, Player

    with get_session() as session:
        players = session.query(Player).all()
"""

from leaguetracker.db.models import (
    Base,
    Player,
    Achievement,
    Tournament,
    TournamentStatus,
    GameResult,
    LeagueState,
)
from leaguetracker.db.session import get_session, get_engine, init_db, SessionLocal

__all__ = [
    # Base
    "Base",
    # Models
    "Player",
    "Achievement",
    "Tournament",
    "TournamentStatus",
    "GameResult",
    "LeagueState",
    # Session
    "get_session",
    "get_engine",
    "init_db",
    "SessionLocal",
]
