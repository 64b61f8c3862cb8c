"""
Tournament rules engine.

Pure functions and value types with no database access:
- Placement and achievement scoring
- Pod generation (random round 1, standings-based afterwards)
- Weekly achievement roll
- Round snapshots used for undo and edit
"""

from leaguetracker.engine.achievements import roll_active_achievements
from leaguetracker.engine.pods import default_placements, generate_pods_for_round
from leaguetracker.engine.scoring import RoundScore, achievement_points, placement_points, score_round
from leaguetracker.engine.snapshots import (
    AchievementCheck,
    PlayerDelta,
    PodSnapshot,
    WeekBoundary,
    WeeklyPlayerPoints,
)

__all__ = [
    "roll_active_achievements",
    "default_placements",
    "generate_pods_for_round",
    "RoundScore",
    "achievement_points",
    "placement_points",
    "score_round",
    "AchievementCheck",
    "PlayerDelta",
    "PodSnapshot",
    "WeekBoundary",
    "WeeklyPlayerPoints",
]
