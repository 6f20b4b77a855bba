"""Key-value storage backends for persisted play records."""

import json
from pathlib import Path
from typing import Any, Protocol

import structlog

from .errors import QuotaExceededError, StoreCorruptedError

log = structlog.stdlib.get_logger()

DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024


class KeyValueStore(Protocol):
    """String-to-string persistent store, shaped like browser local storage."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


def _encoded_size(value: Any) -> int:
    text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
    return len(text.encode("utf-8"))


def _used_bytes(items: dict[str, Any]) -> int:
    return sum(_encoded_size(k) + _encoded_size(v) for k, v in items.items())


def _check_quota(items: dict[str, Any], quota_bytes: int | None) -> None:
    if quota_bytes is None:
        return
    required = _used_bytes(items)
    if required > quota_bytes:
        raise QuotaExceededError(required, quota_bytes)


class InMemoryKeyValueStore:
    """Process-local store, mainly for tests."""

    def __init__(self, quota_bytes: int | None = None) -> None:
        self._items: dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        updated = {**self._items, key: value}
        _check_quota(updated, self.quota_bytes)
        self._items = updated

    def remove_item(self, key: str) -> None:
        _ = self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class JsonFileKeyValueStore:
    """Store that keeps every key in a single JSON object file.

    Each mutation rewrites the whole file through a temporary file followed
    by an atomic replace, so readers never observe a partial write.
    """

    def __init__(self, path: Path, quota_bytes: int | None = DEFAULT_QUOTA_BYTES) -> None:
        """Initialize the store.

        Args:
            path: JSON file holding the stored items
            quota_bytes: Maximum UTF-8 size of all keys and values (None for unlimited)
        """
        self.path = path
        self.quota_bytes = quota_bytes
        log.info("Key-value store initialized", path=str(self.path), quota_bytes=quota_bytes)

    def get_item(self, key: str) -> str | None:
        """Return the value for `key`; an unreadable file reads as empty."""
        value = self._load_for_read().get(key)
        if value is None or isinstance(value, str):
            return value
        log.warning("Ignoring non-string value in key-value store", path=str(self.path), key=key)
        return None

    def set_item(self, key: str, value: str) -> None:
        """Store a value, keeping every other key in the file as it was.

        Raises:
            QuotaExceededError: If the write would exceed the quota
            StoreCorruptedError: If the existing file cannot be parsed
            OSError: If the file cannot be written
        """
        items = self._load_for_write()
        items[key] = value
        _check_quota(items, self.quota_bytes)
        self._write(items)

    def remove_item(self, key: str) -> None:
        """Remove a key. Missing keys are ignored.

        Raises:
            StoreCorruptedError: If the existing file cannot be parsed
            OSError: If the file cannot be written
        """
        items = self._load_for_write()
        if key not in items:
            return
        del items[key]
        self._write(items)

    def keys(self) -> list[str]:
        return list(self._load_for_read())

    def _load_for_read(self) -> dict[str, Any]:
        try:
            return self._load_for_write()
        except OSError as e:
            log.warning("Failed to read key-value store, treating as empty", path=str(self.path), error=str(e))
            return {}

    def _load_for_write(self) -> dict[str, Any]:
        """Read the whole file, values untouched.

        Raises:
            StoreCorruptedError: If the file is not a UTF-8 JSON object
            OSError: If the file cannot be read
        """
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError as e:
            # UnicodeDecodeError and JSONDecodeError
            raise StoreCorruptedError(str(self.path), f"{type(e).__name__}: {e}") from e

        if not isinstance(data, dict):
            raise StoreCorruptedError(str(self.path), f"expected a JSON object, got {type(data).__name__}")

        return data

    def _write(self, items: dict[str, Any]) -> None:
        """Atomically replace the store file with `items`."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")

        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(items, f, ensure_ascii=False, sort_keys=True)
            temp_path.replace(self.path)
        except OSError as e:
            log.error("Failed to write key-value store", path=str(self.path), error=str(e))
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    log.debug("Could not remove temporary store file", temp_path=str(temp_path))
            raise

        log.debug("Key-value store written", path=str(self.path), keys=len(items))
