"""Candidate sourcing: enrich GitHub / LinkedIn seeds into searchable records."""

__version__ = "0.1.0"
