"""
EcoTrack domain modules.

- emissions: activity -> signed carbon amount
- stats: totals, breakdowns and score derivation
- leaderboard: ranking, position lookup and community summary
- activity: the activity log service
- shared: exceptions, constants, validators and base classes
"""
