"""Dice Games: a catalog of dice games with per-game play records."""

__version__ = "0.1.0"
