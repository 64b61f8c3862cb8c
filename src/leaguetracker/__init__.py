"""
League Tracker - tournament league engine for four-player pod games

Tracks a recurring local league: the player roster, an achievement
catalog, and tournaments made of weeks of three rounds each.

Main components:
- engine: Scoring rules, pod generation, achievement rolls, undo snapshots
- league: LeagueOrchestrator, the single writer for league state
- stats: Read-only player and achievement statistics
- db: SQLAlchemy models and session management
"""

__version__ = "1.0.0"
