"""Widget for displaying stored play statistics."""

from typing import ClassVar

from typing_extensions import override

from textual.app import ComposeResult
from textual.widget import Widget
from textual.widgets import Static

import structlog

from dice_games.models import GameStats

log = structlog.stdlib.get_logger()


def format_stats_lines(stats: GameStats) -> list[str]:
    """Render stats as display lines, newest records last in the list."""
    best = f"{stats.best_score}回" if stats.best_score is not None else "-"
    average = f"{stats.average_score:.1f}回" if stats.average_score is not None else "-"

    lines = [
        f"プレイ回数: {stats.total_games}",
        f"ベスト: {best}",
        f"平均: {average}",
    ]

    if stats.recent_records:
        lines.append("最近の記録:")
        for record in stats.recent_records:
            lines.append(f"  {record.date_string}  {record.dice_count}個  {record.attempts}回")
    else:
        lines.append("まだ記録がありません")

    return lines


class StatsWidget(Widget):
    """Widget showing total plays, best and average attempts, and recent records."""

    DEFAULT_CSS: ClassVar[str] = """
    StatsWidget {
        height: auto;
        padding: 1;
        border: solid $secondary;
        background: $surface;
    }

    StatsWidget .stats-title {
        text-style: bold;
        color: $secondary;
        margin-bottom: 1;
    }

    StatsWidget .stats-body {
        color: $text;
    }
    """

    def __init__(
        self,
        title: str = "記録",
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(name=name, id=id, classes=classes)
        self._title: str = title
        self._stats: GameStats = GameStats.from_records([])

    @property
    def stats(self) -> GameStats:
        return self._stats

    @override
    def compose(self) -> ComposeResult:
        yield Static(f"📊 {self._title}", classes="stats-title")
        yield Static("\n".join(format_stats_lines(self._stats)), id="stats-body", classes="stats-body")

    def update_stats(self, stats: GameStats) -> None:
        self._stats = stats
        if self.is_mounted:
            self.query_one("#stats-body", Static).update("\n".join(format_stats_lines(stats)))
        log.debug("Stats widget updated", total_games=stats.total_games)
