"""Podium - leaderboard reward pool distribution engine."""

__version__ = "1.0.0"
