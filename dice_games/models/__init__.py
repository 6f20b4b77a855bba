"""Data models for the Dice Games application."""

from .config import AppConfig
from .metadata import Category, Difficulty, GameMetadata
from .record import GameRecord, GameStats

__all__ = [
    "AppConfig",
    "Category",
    "Difficulty",
    "GameMetadata",
    "GameRecord",
    "GameStats",
]
