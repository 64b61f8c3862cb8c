"""
Statistics module.

Read-only aggregations over players and game results:
- players: win rate, placements, head-to-head, tournament summaries
- achievements: earn counts, leaderboards, trends
"""
