"""Catalog screen listing every game in the content collection."""

from typing import ClassVar

from typing_extensions import override

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, DataTable, Select, Static

import structlog

from dice_games.models import Category, GameMetadata
from dice_games.services.content import filter_by_category
from dice_games.services.dice import (
    calculate_zorome_probability,
    expected_attempts,
    format_probability,
    format_probability_as_fraction,
)
from dice_games.ui.widgets import StatsWidget

from .base import BaseScreen

log = structlog.stdlib.get_logger()

ALL_CATEGORIES = "All"


def get_game_display_info(game: GameMetadata) -> dict[str, str]:
    """Collect the text shown in the details panel for a game."""
    probability = calculate_zorome_probability(game.dice_count)
    return {
        "title": ("★ " if game.featured else "") + game.title,
        "description": game.description,
        "players": game.players,
        "duration": game.duration,
        "difficulty": game.difficulty.value,
        "dice_count": f"{game.dice_count}個",
        "categories": " / ".join(c.value for c in game.category),
        "tags": ", ".join(game.tags) if game.tags else "-",
        "probability": f"{format_probability(probability)} ({format_probability_as_fraction(game.dice_count)})",
        "expected_attempts": f"{expected_attempts(game.dice_count):,.0f}回",
        "published_at": game.published_at.isoformat(),
        "updated_at": game.updated_at.isoformat() if game.updated_at else "-",
    }


class CatalogScreen(BaseScreen):
    """Screen for browsing the catalog and starting a game.

    This screen provides:
    - A table of games, featured first
    - Filtering by category
    - A details panel with probabilities and stored stats
    """

    SCREEN_TITLE: ClassVar[str] = "サイコロゲーム広場"
    SCREEN_NAME: ClassVar[str] = "catalog"

    CSS: ClassVar[str] = """
    CatalogScreen {
        align: center middle;
    }

    #catalog-container {
        width: 95%;
        height: 95%;
        padding: 1 2;
        border: solid $primary;
        background: $surface;
    }

    #filter-row {
        height: 3;
        margin-bottom: 1;
    }

    #category-select {
        width: 40;
    }

    #stat-showing {
        color: $text-muted;
        margin-left: 2;
    }

    #games-table {
        height: 1fr;
    }

    #details-section {
        height: auto;
        padding: 1;
        border: solid $secondary;
        margin-top: 1;
        display: none;
    }

    #details-section.has-selection {
        display: block;
    }

    #no-results {
        text-align: center;
        color: $text-muted;
        padding: 2;
    }
    """

    BINDINGS: ClassVar[list[Binding]] = [
        Binding("escape", "go_back", "Quit", show=True),
        Binding("p", "play_selected", "Play", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._filtered_games: list[GameMetadata] = []
        self._selected_game: GameMetadata | None = None

    @override
    def compose(self) -> ComposeResult:
        options = [(ALL_CATEGORIES, ALL_CATEGORIES)] + [(c.value, c.value) for c in Category]
        with Container(id="catalog-container"):
            yield self.create_title_widget()
            with Horizontal(id="filter-row"):
                yield Select(options, value=ALL_CATEGORIES, id="category-select", allow_blank=False)
                yield Static("", id="stat-showing")
            yield DataTable(id="games-table")
            yield Static("ゲームが見つかりません", id="no-results")
            with Vertical(id="details-section"):
                yield Static("", id="details-text")
                yield StatsWidget(id="details-stats")
                yield Button("遊ぶ", id="btn-play", variant="primary")

    @override
    async def on_mount(self) -> None:
        await super().on_mount()
        table = self.query_one("#games-table", DataTable)
        table.add_columns("タイトル", "難易度", "サイコロ", "カテゴリ")
        table.cursor_type = "row"
        self._apply_filter(None)

    def _apply_filter(self, category: Category | None) -> None:
        self._filtered_games = filter_by_category(self.game_app.app_state.catalog, category)

        table = self.query_one("#games-table", DataTable)
        table.clear()
        for game in self._filtered_games:
            table.add_row(
                ("★ " if game.featured else "") + game.title,
                game.difficulty.value,
                str(game.dice_count),
                " / ".join(c.value for c in game.category),
                key=game.slug,
            )

        self.query_one("#stat-showing", Static).update(f"{len(self._filtered_games)}件")
        self.query_one("#no-results", Static).display = not self._filtered_games
        log.debug("Catalog filtered", category=category.value if category else None, shown=len(self._filtered_games))

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id == "category-select":
            value = str(event.value)
            self._apply_filter(None if value == ALL_CATEGORIES else Category(value))

    def _find_game(self, slug: str | None) -> GameMetadata | None:
        for game in self._filtered_games:
            if game.slug == slug:
                return game
        return None

    async def on_screen_resume(self) -> None:
        # Records may have changed while a game screen was on top
        if self._selected_game is not None:
            await self._show_details(self._selected_game)

    async def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        game = self._find_game(event.row_key.value)
        if game is not None:
            await self._show_details(game)

    async def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        game = self._find_game(event.row_key.value)
        if game is None:
            log.warning("Selected game not found", slug=event.row_key.value)
            return
        await self._show_details(game)
        await self.action_play_selected()

    async def _show_details(self, game: GameMetadata) -> None:
        self._selected_game = game
        info = get_game_display_info(game)
        self.query_one("#details-text", Static).update(
            "\n".join([
                info["title"],
                info["description"],
                f"人数: {info['players']}  時間: {info['duration']}  難易度: {info['difficulty']}",
                f"サイコロ: {info['dice_count']}  カテゴリ: {info['categories']}  タグ: {info['tags']}",
                f"ぞろ目の確率: {info['probability']}  平均 {info['expected_attempts']}",
            ])
        )
        stats = await self.game_app.record_store.get_stats(game.slug)
        self.query_one("#details-stats", StatsWidget).update_stats(stats)
        _ = self.query_one("#details-section", Vertical).add_class("has-selection")

    async def action_play_selected(self) -> None:
        if self._selected_game is None:
            self.notify_warning("ゲームを選択してください")
            return
        if not await self.game_app.push_game_screen(self._selected_game):
            self.notify_error(f"このゲームはまだ遊べません: {self._selected_game.component}")

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-play":
            await self.action_play_selected()

    @override
    async def action_go_back(self) -> None:
        log.info("Quit requested from catalog")
        self.game_app.exit()
