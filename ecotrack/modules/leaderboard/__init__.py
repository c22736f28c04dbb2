"""
Leaderboard Module
==================

Domain: Leaderboard rankings and community summary

Pure functions:
- ranker: build_leaderboard, find_position, paginate, community_summary

Services:
- LeaderboardService: Leaderboard, user ranking and community queries
"""

from .ranker import build_leaderboard, community_summary, find_position, paginate
from .service import LeaderboardService

__all__ = [
    "LeaderboardService",
    "build_leaderboard",
    "find_position",
    "paginate",
    "community_summary",
]
