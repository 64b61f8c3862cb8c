"""Navigation screens and the decode rule for persisted screen values.

The league state stores the current screen as a raw string so that a
newer or older build can always load it. Decoding is forgiving:

- Known values map to their member.
- Legacy values from earlier layouts map to their replacement.
- Anything else falls back to ``Screen.TOURNAMENTS``.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class Screen(str, Enum):
    TOURNAMENTS = "tournaments"
    NEW_TOURNAMENT = "newTournament"
    ADD_PLAYERS = "addPlayers"
    ATTENDANCE = "attendance"
    PODS = "pods"
    TOURNAMENT_STANDINGS = "tournamentStandings"
    TOURNAMENT_DETAIL = "tournamentDetail"
    PLAYERS = "players"
    PLAYER_DETAIL = "playerDetail"
    STATS = "stats"
    ACHIEVEMENTS = "achievements"

    @classmethod
    def from_raw(cls, raw: Optional[str]) -> "Screen":
        """Decode a persisted screen value, never failing."""
        if raw is None:
            return cls.TOURNAMENTS
        if raw in LEGACY_SCREENS:
            return LEGACY_SCREENS[raw]
        try:
            return cls(raw)
        except ValueError:
            return cls.TOURNAMENTS


# Screen names from earlier layouts
LEGACY_SCREENS: dict[str, Screen] = {
    "dashboard": Screen.TOURNAMENTS,
    "confirmNewTournament": Screen.NEW_TOURNAMENT,
}

# Screens that make sense without an active tournament
PRE_TOURNAMENT_SCREENS: frozenset[Screen] = frozenset(
    {
        Screen.TOURNAMENTS,
        Screen.NEW_TOURNAMENT,
        Screen.ADD_PLAYERS,
        Screen.PLAYERS,
        Screen.PLAYER_DETAIL,
        Screen.STATS,
        Screen.ACHIEVEMENTS,
    }
)
