"""
EcoTrack: carbon-footprint tracking with points, tiers and leaderboards.

The pure accounting pipeline lives under ``ecotrack.modules``:

- ``emissions``: activity -> signed carbon amount
- ``stats``: records -> totals, breakdowns, score
- ``leaderboard``: scores -> dense leaderboard positions
"""

__version__ = "1.0.0"
