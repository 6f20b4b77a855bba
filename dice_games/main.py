"""Main entry point for the Dice Games application.

This module provides the application entry point with:
- Command-line argument parsing
- Application initialization and dependency injection
- The content check run before publishing the catalog
"""

import argparse
import asyncio
import sys
from pathlib import Path

import structlog

from dice_games import __version__
from dice_games.models import AppConfig
from dice_games.services.config import ConfigurationService
from dice_games.services.content import ContentService
from dice_games.services.errors import ContentValidationError
from dice_games.services.kv_store import JsonFileKeyValueStore, KeyValueStore
from dice_games.services.logging import setup_logging
from dice_games.services.record_store import KeyValueRecordStore


log = structlog.stdlib.get_logger()


class ApplicationContext:
    """Container for application services.

    Services are created lazily from the loaded configuration; command-line
    overrides take precedence over the configuration file.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        content_dir: Path | None = None,
        store_path: Path | None = None,
    ) -> None:
        self._config_path: Path | None = config_path
        self._content_dir: Path | None = content_dir
        self._store_path: Path | None = store_path

        self._config_service: ConfigurationService | None = None
        self._config: AppConfig | None = None
        self._kv_store: KeyValueStore | None = None
        self._record_store: KeyValueRecordStore | None = None
        self._content_service: ContentService | None = None

    @property
    def config_service(self) -> ConfigurationService:
        if self._config_service is None:
            self._config_service = ConfigurationService(config_path=self._config_path)
        return self._config_service

    @property
    def config(self) -> AppConfig:
        if self._config is None:
            self._config = self.config_service.load_config()
        return self._config

    @property
    def kv_store(self) -> KeyValueStore:
        if self._kv_store is None:
            self._kv_store = JsonFileKeyValueStore(
                path=self._store_path or self.config.store_path,
                quota_bytes=self.config.storage_quota_bytes,
            )
        return self._kv_store

    @property
    def record_store(self) -> KeyValueRecordStore:
        if self._record_store is None:
            self._record_store = KeyValueRecordStore(self.kv_store, locale=self.config.locale)
        return self._record_store

    @property
    def content_service(self) -> ContentService:
        if self._content_service is None:
            self._content_service = ContentService(self._content_dir or self.config.content_directory)
        return self._content_service


class ParsedArgs:
    """Type-safe container for parsed command-line arguments."""

    def __init__(
        self,
        config: Path | None,
        log_level: str,
        log_dir: Path | None,
        content_dir: Path | None,
        store_path: Path | None,
        check_content: bool,
        no_tui: bool,
    ) -> None:
        self.config: Path | None = config
        self.log_level: str = log_level
        self.log_dir: Path | None = log_dir
        self.content_dir: Path | None = content_dir
        self.store_path: Path | None = store_path
        self.check_content: bool = check_content
        self.no_tui: bool = no_tui


def parse_arguments(argv: list[str] | None = None) -> ParsedArgs:
    """Parse command-line arguments.

    Args:
        argv: Arguments to parse (defaults to sys.argv)
    """
    parser = argparse.ArgumentParser(
        prog="dice-games",
        description="A catalog of dice games with per-game play records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  dice-games                          Start the TUI catalog
  dice-games --check-content          Validate every game document and exit
  dice-games --store-path ./rec.json  Keep play records in a custom file
        """
    )

    _ = parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    _ = parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: ~/.config/dice-games/config.json)"
    )
    _ = parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set the logging level (default: from configuration)"
    )
    _ = parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for log files (default: ./logs when running the TUI)"
    )
    _ = parser.add_argument(
        "--content-dir",
        type=Path,
        default=None,
        help="Directory of game content documents (default: bundled games)"
    )
    _ = parser.add_argument(
        "--store-path",
        type=Path,
        default=None,
        help="JSON file holding play records (default: from configuration)"
    )
    _ = parser.add_argument(
        "--check-content",
        action="store_true",
        help="Validate the game content and exit; fails on the first invalid document"
    )
    _ = parser.add_argument(
        "--no-tui",
        action="store_true",
        help="Print the catalog instead of starting the TUI"
    )

    ns = parser.parse_args(argv)

    return ParsedArgs(
        config=ns.config,
        log_level=ns.log_level or "",
        log_dir=ns.log_dir,
        content_dir=ns.content_dir,
        store_path=ns.store_path,
        check_content=bool(ns.check_content),
        no_tui=bool(ns.no_tui),
    )


def check_content(context: ApplicationContext) -> int:
    """Validate the whole catalog. Returns a process exit code."""
    try:
        games = context.content_service.load_catalog()
    except ContentValidationError as e:
        log.error("Content validation failed", source=e.source, errors=e.errors)
        print(f"Content validation failed: {e.message}", file=sys.stderr)
        return 1
    except FileNotFoundError as e:
        log.error("Content directory missing", error=str(e))
        print(str(e), file=sys.stderr)
        return 1

    print(f"{len(games)} game(s) valid")
    return 0


async def print_catalog(context: ApplicationContext) -> int:
    """Print each game with its stored stats."""
    games = context.content_service.load_catalog()
    for game in games:
        stats = await context.record_store.get_stats(game.slug)
        best = stats.best_score if stats.best_score is not None else "-"
        print(f"{game.slug}\t{game.title}\t{game.difficulty.value}\tplays={stats.total_games}\tbest={best}")
    return 0


async def run_tui(context: ApplicationContext) -> int:
    """Run the TUI application. Returns a process exit code."""
    from dice_games.ui.app import DiceGamesApp

    log.info("Starting TUI application")

    try:
        app = DiceGamesApp(
            record_store=context.record_store,
            content_service=context.content_service,
            config=context.config,
        )
        await app.run_async()
    except Exception as e:
        log.error("TUI application error", error=str(e), exc_info=True)
        return 1

    exit_code = app.return_code or 0
    log.info("TUI application exited", exit_code=exit_code)
    return exit_code


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the application."""
    args = parse_arguments(argv)

    context = ApplicationContext(
        config_path=args.config,
        content_dir=args.content_dir,
        store_path=args.store_path,
    )

    interactive = not (args.no_tui or args.check_content)
    log_dir = args.log_dir
    if log_dir is None and interactive:
        log_dir = Path("logs")

    _ = setup_logging(
        log_level=args.log_level or context.config.log_level,
        log_dir=log_dir,
        tui_mode=interactive,
    )

    log.info("Starting Dice Games", version=__version__, config_path=str(context.config_service.config_path))

    try:
        if args.check_content:
            exit_code = check_content(context)
        elif args.no_tui:
            exit_code = asyncio.run(print_catalog(context))
        else:
            exit_code = asyncio.run(run_tui(context))

    except KeyboardInterrupt:
        log.info("Application interrupted by user")
        exit_code = 130

    except Exception as e:
        log.error("Unhandled exception", error=str(e), exc_info=True)
        print(f"Fatal error: {e}", file=sys.stderr)
        exit_code = 1

    log.info("Application exiting", exit_code=exit_code)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
