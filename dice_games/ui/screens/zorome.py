"""Zorome game screen: roll until every die shows the same face."""

import random
from dataclasses import dataclass, field
from typing import ClassVar

from typing_extensions import override

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.widgets import Button, Static

import structlog

from dice_games.models import GameMetadata, GameRecord
from dice_games.services.content import MAX_DICE_COUNT, MIN_DICE_COUNT
from dice_games.services.dice import (
    calculate_zorome_probability,
    format_probability,
    format_probability_as_fraction,
    is_zorome,
    roll_multiple_dice,
)
from dice_games.services.errors import StorageWriteError
from dice_games.ui.widgets import StatsWidget

from .base import BaseScreen

log = structlog.stdlib.get_logger()

DIE_FACE_GLYPHS = {1: "⚀", 2: "⚁", 3: "⚂", 4: "⚃", 5: "⚄", 6: "⚅"}


def dice_bounds(game: GameMetadata) -> tuple[int, int]:
    """Allowed die counts for a game, from its `minDice`/`maxDice` config."""
    config = game.config or {}
    low = config.get("minDice", MIN_DICE_COUNT)
    high = config.get("maxDice", MAX_DICE_COUNT)
    if not isinstance(low, int) or not isinstance(high, int):
        return MIN_DICE_COUNT, MAX_DICE_COUNT
    low = max(MIN_DICE_COUNT, low)
    high = min(MAX_DICE_COUNT, high)
    if low > high:
        return MIN_DICE_COUNT, MAX_DICE_COUNT
    return low, high


def render_dice(values: list[int]) -> str:
    return " ".join(DIE_FACE_GLYPHS[v] for v in values)


@dataclass
class ZoromeSession:
    """One round of the zorome game."""
    game_slug: str
    dice_count: int
    attempts: int = 0
    last_roll: list[int] = field(default_factory=list)
    won: bool = False

    def roll(self, rng: random.Random | None = None) -> list[int]:
        """Roll every die once. A won round is reset before rolling again."""
        if self.won:
            self.reset()
        self.last_roll = roll_multiple_dice(self.dice_count, rng)
        self.attempts += 1
        self.won = is_zorome(self.last_roll)
        return self.last_roll

    def set_dice_count(self, dice_count: int) -> None:
        """Change the die count and start a new round.

        Raises:
            ValueError: If dice_count is outside 1..10
        """
        if not MIN_DICE_COUNT <= dice_count <= MAX_DICE_COUNT:
            raise ValueError(f"dice_count must be between {MIN_DICE_COUNT} and {MAX_DICE_COUNT}")
        self.dice_count = dice_count
        self.reset()

    def reset(self) -> None:
        self.attempts = 0
        self.last_roll = []
        self.won = False

    def to_record(self, now: float | None = None) -> GameRecord:
        """Build the record for a won round.

        Raises:
            ValueError: If the round has not been won yet
        """
        if not self.won:
            raise ValueError("Cannot record a round that has not been won")
        return GameRecord.create(self.game_slug, self.dice_count, self.attempts, now=now)


class ZoromeGameScreen(BaseScreen):
    """Screen for the zorome game component."""

    SCREEN_TITLE: ClassVar[str] = "ぞろ目チャレンジ"
    SCREEN_NAME: ClassVar[str] = "zorome"
    COMPONENT_NAME: ClassVar[str] = "ZoromeGame"

    CSS: ClassVar[str] = """
    ZoromeGameScreen {
        align: center middle;
    }

    #game-container {
        width: 80;
        height: auto;
        padding: 1 2;
        border: solid $primary;
        background: $surface;
    }

    #dice-display {
        text-align: center;
        text-style: bold;
        padding: 1;
    }

    #game-status, #probability {
        text-align: center;
        color: $text-muted;
    }

    #controls {
        height: auto;
        align: center middle;
        margin: 1 0;
    }

    #controls Button {
        margin: 0 1;
    }
    """

    BINDINGS: ClassVar[list[Binding]] = [
        Binding("escape", "go_back", "Back", show=True),
        Binding("space", "roll", "Roll", show=True),
        Binding("+", "more_dice", "More dice", show=True),
        Binding("-", "fewer_dice", "Fewer dice", show=True),
    ]

    def __init__(self, game: GameMetadata, rng: random.Random | None = None) -> None:
        super().__init__()
        self._game = game
        self._rng = rng
        self._bounds = dice_bounds(game)
        start = min(max(game.dice_count, self._bounds[0]), self._bounds[1])
        self._session = ZoromeSession(game_slug=game.slug, dice_count=start)

    @property
    def session(self) -> ZoromeSession:
        return self._session

    @override
    def compose(self) -> ComposeResult:
        with Container(id="game-container"):
            yield self.create_title_widget(self._game.title)
            yield Static(self._game.description, id="game-description")
            yield Static("", id="dice-display")
            yield Static("", id="game-status")
            yield Static("", id="probability")
            with Horizontal(id="controls"):
                yield Button("-", id="btn-fewer")
                yield Button("振る", id="btn-roll", variant="primary")
                yield Button("+", id="btn-more")
                yield Button("記録を削除", id="btn-clear", variant="error")
            yield StatsWidget(id="stats")

    @override
    async def on_mount(self) -> None:
        await super().on_mount()
        self._refresh_display()
        await self._refresh_stats()

    def _refresh_display(self) -> None:
        session = self._session
        dice = render_dice(session.last_roll) if session.last_roll else "🎲 " * session.dice_count
        self.query_one("#dice-display", Static).update(dice.strip())

        if session.won:
            status = f"ぞろ目! {session.attempts}回で成功しました"
        elif session.attempts:
            status = f"{session.attempts}回目"
        else:
            status = f"サイコロ{session.dice_count}個で挑戦"
        self.query_one("#game-status", Static).update(status)

        probability = calculate_zorome_probability(session.dice_count)
        self.query_one("#probability", Static).update(
            f"確率: {format_probability(probability)} ({format_probability_as_fraction(session.dice_count)})"
        )

    async def _refresh_stats(self) -> None:
        stats = await self.game_app.record_store.get_stats(self._game.slug, self._session.dice_count)
        self.query_one("#stats", StatsWidget).update_stats(stats)

    async def action_roll(self) -> None:
        values = self._session.roll(self._rng)
        log.debug("Dice rolled", game_slug=self._game.slug, values=values, attempts=self._session.attempts)
        self._refresh_display()

        if self._session.won:
            await self._save_win()

    async def _save_win(self) -> None:
        record = self._session.to_record()
        try:
            await self.game_app.record_store.save_record(record)
        except StorageWriteError as e:
            _ = self.handle_exception(e, "save_record", {"game_slug": self._game.slug})
            return
        await self._refresh_stats()

    async def _change_dice_count(self, delta: int) -> None:
        target = self._session.dice_count + delta
        low, high = self._bounds
        if not low <= target <= high:
            return
        self._session.set_dice_count(target)
        self._refresh_display()
        await self._refresh_stats()

    async def action_more_dice(self) -> None:
        await self._change_dice_count(1)

    async def action_fewer_dice(self) -> None:
        await self._change_dice_count(-1)

    async def action_clear_records(self) -> None:
        try:
            await self.game_app.record_store.clear_records(self._game.slug)
        except StorageWriteError as e:
            _ = self.handle_exception(e, "clear_records", {"game_slug": self._game.slug})
            return
        self.notify_success("記録を削除しました")
        await self._refresh_stats()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "btn-roll":
            await self.action_roll()
        elif button_id == "btn-more":
            await self.action_more_dice()
        elif button_id == "btn-fewer":
            await self.action_fewer_dice()
        elif button_id == "btn-clear":
            await self.action_clear_records()
