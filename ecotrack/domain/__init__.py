"""EcoTrack domain layer: immutable value objects."""
