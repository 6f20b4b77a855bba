"""Main Textual application with screen management and catalog state."""

from dataclasses import dataclass, field
from typing import ClassVar

from typing_extensions import override

from textual.app import App, ComposeResult
from textual.binding import Binding, BindingType
from textual.widgets import Footer, Header

import structlog

from dice_games.models import AppConfig, GameMetadata
from dice_games.services.content import ContentService
from dice_games.services.errors import ContentValidationError
from dice_games.services.record_store import RecordStore


log = structlog.stdlib.get_logger()


@dataclass
class AppState:
    """Application state container."""

    catalog: list[GameMetadata] = field(default_factory=list)
    current_config: AppConfig | None = None


class DiceGamesApp(App[None]):
    """Root Textual application for the dice games catalog."""

    CSS: ClassVar[str] = """
    Screen {
        background: $surface;
    }

    .title {
        text-align: center;
        text-style: bold;
        color: $primary;
        margin-bottom: 1;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("q", "quit", "Quit", show=True, priority=True),
        Binding("escape", "go_back", "Back", show=True),
    ]

    def __init__(
        self,
        record_store: RecordStore,
        content_service: ContentService | None = None,
        catalog: list[GameMetadata] | None = None,
        config: AppConfig | None = None,
    ) -> None:
        """Initialize the application with injected services.

        Args:
            record_store: Store for play records
            content_service: Service used to load the catalog when none is given
            catalog: Preloaded catalog (skips loading on mount)
            config: Current application configuration
        """
        super().__init__()
        self.title = "Dice Games"  # type: ignore[assignment]
        self.sub_title = "サイコロゲーム広場"  # type: ignore[assignment]
        self._record_store = record_store
        self._content_service = content_service
        self._navigation_stack: list[str] = []
        self.app_state = AppState(catalog=list(catalog or []), current_config=config)
        self._catalog_loaded = catalog is not None

        log.info("DiceGamesApp initialized")

    @property
    def record_store(self) -> RecordStore:
        return self._record_store

    @property
    def navigation_stack(self) -> list[str]:
        """Get a copy of the current navigation stack."""
        return self._navigation_stack.copy()

    @override
    def compose(self) -> ComposeResult:
        yield Header()
        yield Footer()

    async def on_mount(self) -> None:
        if not self._catalog_loaded and self._content_service is not None:
            try:
                self.app_state.catalog = self._content_service.load_catalog()
                self._catalog_loaded = True
            except (ContentValidationError, FileNotFoundError) as e:
                log.error("Failed to load game catalog", error=str(e))
                self.exit(return_code=1, message=str(e))
                return

        await self.push_screen_with_tracking("catalog")

    async def push_screen_with_tracking(self, screen_name: str) -> None:
        """Push a registered screen and track it in the navigation stack."""
        from dice_games.ui.screens import get_screen_by_name

        screen = get_screen_by_name(screen_name)
        if screen:
            self._navigation_stack.append(screen_name)
            await self.push_screen(screen)
            log.info("Screen pushed", screen=screen_name, stack_depth=len(self._navigation_stack))
        else:
            log.warning("Unknown screen requested", screen=screen_name)

    async def push_game_screen(self, game: GameMetadata) -> bool:
        """Push the screen for a game's component.

        Returns:
            False if no screen renders the game's component
        """
        from dice_games.ui.screens import get_game_screen

        screen = get_game_screen(game)
        if screen is None:
            log.warning("No screen for game component", slug=game.slug, component=game.component)
            return False

        self._navigation_stack.append(game.slug)
        await self.push_screen(screen)
        log.info("Game screen pushed", slug=game.slug, component=game.component_name)
        return True

    async def action_go_back(self) -> None:
        """Navigate back to the previous screen."""
        if len(self._navigation_stack) > 1:
            current = self._navigation_stack.pop()
            log.info("Navigating back", from_screen=current, stack_depth=len(self._navigation_stack))
            _ = self.pop_screen()
        else:
            log.debug("Already at root screen, cannot go back")
