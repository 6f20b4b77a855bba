"""Screen components for the TUI application."""

from dice_games.models import GameMetadata

from .base import BaseScreen
from .catalog import CatalogScreen
from .zorome import ZoromeGameScreen, ZoromeSession

# Screen registry for navigation
_SCREEN_REGISTRY: dict[str, type[BaseScreen]] = {
    "catalog": CatalogScreen,
}

# Game screens, keyed by the component name used in game content
_COMPONENT_REGISTRY: dict[str, type[ZoromeGameScreen]] = {
    ZoromeGameScreen.COMPONENT_NAME: ZoromeGameScreen,
}


def get_screen_by_name(name: str) -> BaseScreen | None:
    """Get a new screen instance by its registered name, or None if unknown."""
    screen_class = _SCREEN_REGISTRY.get(name)
    if screen_class:
        return screen_class()
    return None


def register_screen(name: str, screen_class: type[BaseScreen]) -> None:
    _SCREEN_REGISTRY[name] = screen_class


def get_registered_screens() -> list[str]:
    return list(_SCREEN_REGISTRY.keys())


def get_game_screen(game: GameMetadata) -> BaseScreen | None:
    """Build the screen that renders a game's component, or None if unsupported."""
    screen_class = _COMPONENT_REGISTRY.get(game.component_name)
    if screen_class:
        return screen_class(game)
    return None


def get_registered_components() -> list[str]:
    return list(_COMPONENT_REGISTRY.keys())


__all__ = [
    "BaseScreen",
    "CatalogScreen",
    "ZoromeGameScreen",
    "ZoromeSession",
    "get_game_screen",
    "get_registered_components",
    "get_registered_screens",
    "get_screen_by_name",
    "register_screen",
]
