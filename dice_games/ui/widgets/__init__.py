"""Custom widgets for the TUI application."""

from .stats import StatsWidget, format_stats_lines

__all__ = [
    "StatsWidget",
    "format_stats_lines",
]
