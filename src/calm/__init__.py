"""Calm - personal planner with daily rituals and focus sessions."""

__version__ = "0.1.0"
