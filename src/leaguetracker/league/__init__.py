"""League orchestration: every state-changing operation on the league."""

from leaguetracker.league.orchestrator import LeagueOrchestrator

__all__ = ["LeagueOrchestrator"]
