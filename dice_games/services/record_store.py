"""Record store for per-game play statistics."""

import json
from dataclasses import dataclass, field
from typing import Protocol

import structlog

from ..models import GameRecord, GameStats
from .errors import DEFAULT_LOCALE, StorageWriteError
from .kv_store import KeyValueStore

log = structlog.stdlib.get_logger()

STORAGE_KEY_PREFIX = "dice-games:"
MAX_RECORDS_PER_GAME = 100


class RecordStore(Protocol):
    """Persistence contract for play records."""

    async def save_record(self, record: GameRecord) -> None: ...

    async def get_records(self, game_slug: str, dice_count: int | None = None) -> list[GameRecord]: ...

    async def get_stats(self, game_slug: str, dice_count: int | None = None) -> GameStats: ...

    async def clear_records(self, game_slug: str) -> None: ...


@dataclass(frozen=True)
class ReadFailure:
    """Why a stored record set could not be read."""
    key: str
    reason: str


@dataclass(frozen=True)
class RecordsRead:
    """Outcome of reading one game's stored records."""
    records: list[GameRecord] = field(default_factory=list)
    failure: ReadFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def storage_key(game_slug: str) -> str:
    return f"{STORAGE_KEY_PREFIX}{game_slug}"


class KeyValueRecordStore:
    """Record store persisted one JSON array per game in a key-value store."""

    def __init__(self, store: KeyValueStore, locale: str = DEFAULT_LOCALE) -> None:
        """Initialize the record store.

        Args:
            store: Key-value backend the records are persisted to
            locale: Language of user-facing error messages
        """
        self._store = store
        self._locale = locale

    async def save_record(self, record: GameRecord) -> None:
        """Append a record and keep only the newest MAX_RECORDS_PER_GAME.

        Raises:
            StorageWriteError: If the record set cannot be serialized or written
        """
        key = storage_key(record.game_slug)
        existing = self.read_records(record.game_slug)
        if not existing.ok:
            log.warning("Discarding unreadable records", game_slug=record.game_slug, reason=existing.failure.reason)
        trimmed = [*existing.records, record][-MAX_RECORDS_PER_GAME:]

        try:
            payload = json.dumps([r.to_dict() for r in trimmed], ensure_ascii=False)
            self._store.set_item(key, payload)
        except (OSError, TypeError, ValueError) as e:
            log.error("Failed to save record", game_slug=record.game_slug, key=key, error=str(e))
            raise StorageWriteError("save", record.game_slug, e, self._locale) from e

        log.info(
            "Record saved",
            game_slug=record.game_slug,
            dice_count=record.dice_count,
            attempts=record.attempts,
            stored=len(trimmed),
        )

    async def get_records(self, game_slug: str, dice_count: int | None = None) -> list[GameRecord]:
        """Return stored records for a game, oldest first.

        Unreadable data is logged and reported as no records.
        """
        result = self.read_records(game_slug)
        if not result.ok:
            log.warning(
                "Failed to get records",
                game_slug=game_slug,
                key=result.failure.key,
                reason=result.failure.reason,
            )
            return []

        if dice_count is not None:
            return [r for r in result.records if r.dice_count == dice_count]
        return result.records

    async def get_stats(self, game_slug: str, dice_count: int | None = None) -> GameStats:
        records = await self.get_records(game_slug, dice_count)
        return GameStats.from_records(records)

    async def clear_records(self, game_slug: str) -> None:
        """Delete every record of a game. Succeeds when nothing is stored.

        Raises:
            StorageWriteError: If the backend rejects the deletion
        """
        key = storage_key(game_slug)
        try:
            self._store.remove_item(key)
        except OSError as e:
            log.error("Failed to clear records", game_slug=game_slug, key=key, error=str(e))
            raise StorageWriteError("clear", game_slug, e, self._locale) from e

        log.info("Records cleared", game_slug=game_slug)

    def read_records(self, game_slug: str) -> RecordsRead:
        """Read a game's full record set without collapsing failures."""
        key = storage_key(game_slug)

        try:
            data = self._store.get_item(key)
        except (OSError, ValueError) as e:
            return RecordsRead(failure=ReadFailure(key, f"{type(e).__name__}: {e}"))

        if not data:
            return RecordsRead()

        try:
            raw = json.loads(data)
            if not isinstance(raw, list):
                raise TypeError(f"expected a JSON array, got {type(raw).__name__}")
            records = [GameRecord.from_dict(item) for item in raw]
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            return RecordsRead(failure=ReadFailure(key, f"{type(e).__name__}: {e}"))

        return RecordsRead(records=records)
