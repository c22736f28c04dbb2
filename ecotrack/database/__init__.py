"""EcoTrack persistence schema (SQLAlchemy ORM models)."""
