"""
League and scoring constants.

A week is three rounds; each round seats players in pods of four and
ranks them 1-4. Placement points reward a better finish with strictly
more points:

  1st -> 4, 2nd -> 3, 3rd -> 2, 4th -> 1

Anything outside 1-4 scores 0 rather than raising, since staged data
comes straight from a UI and is never trusted to be in range.
"""

# Valid ranges for tournament settings (inclusive)
WEEKS_RANGE = (1, 99)
RANDOM_ACHIEVEMENTS_PER_WEEK_RANGE = (0, 99)
ACHIEVEMENT_POINTS_RANGE = (0, 99)

# Round/pod structure
ROUNDS_PER_WEEK = 3
POD_SIZE = 4
PLACEMENT_RANGE = (1, 4)

# Starting position of a new tournament
DEFAULT_CURRENT_WEEK = 1
DEFAULT_CURRENT_ROUND = 1
DEFAULT_ACHIEVEMENTS_ON_THIS_WEEK = True

DEFAULT_TOURNAMENT_NAME = "New Tournament"

# Placement -> points
PLACEMENT_POINTS: dict[int, int] = {
    1: 4,
    2: 3,
    3: 2,
    4: 1,
}

# Initial cumulative stats for a new player
INITIAL_PLAYER_STATS = {
    "placement_points": 0,
    "achievement_points": 0,
    "wins": 0,
    "games_played": 0,
    "tournaments_played": 0,
}


def clamp(value: int, bounds: tuple[int, int]) -> int:
    """
    Clamp an integer into an inclusive (low, high) range.

    Example:
        clamp(150, WEEKS_RANGE)   # 99
        clamp(-3, WEEKS_RANGE)    # 1
    """
    low, high = bounds
    return max(low, min(high, int(value)))


def is_valid_placement(placement: int) -> bool:
    """Whether a placement is a real finishing position (1-4)."""
    low, high = PLACEMENT_RANGE
    return isinstance(placement, int) and not isinstance(placement, bool) and low <= placement <= high
