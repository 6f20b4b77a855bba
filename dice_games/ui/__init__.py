"""User interface components using the Textual framework."""

from .app import AppState, DiceGamesApp
from .screens import (
    BaseScreen,
    CatalogScreen,
    ZoromeGameScreen,
    get_game_screen,
    get_registered_screens,
    get_screen_by_name,
    register_screen,
)

__all__ = [
    "AppState",
    "BaseScreen",
    "CatalogScreen",
    "DiceGamesApp",
    "ZoromeGameScreen",
    "get_game_screen",
    "get_registered_screens",
    "get_screen_by_name",
    "register_screen",
]
