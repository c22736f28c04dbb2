"""
EcoTrack core infrastructure: configuration, logging and database access.
"""
