"""Tests for the record store over key-value backends."""

import asyncio
import json
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
from hypothesis import given, settings, strategies as st

from dice_games.models import GameRecord, GameStats
from dice_games.services.errors import QuotaExceededError, StorageWriteError, StoreCorruptedError
from dice_games.services.kv_store import InMemoryKeyValueStore, JsonFileKeyValueStore
from dice_games.services.record_store import (
    MAX_RECORDS_PER_GAME,
    KeyValueRecordStore,
    storage_key,
)


def make_record(attempts: int, index: int = 0, slug: str = "zorome", dice_count: int = 3) -> GameRecord:
    return GameRecord(
        id=f"record-{index}",
        game_slug=slug,
        dice_count=dice_count,
        attempts=attempts,
        timestamp=1_700_000_000_000 + index,
        date_string="2023/11/14 22:13:20",
    )


class FailingStore(InMemoryKeyValueStore):
    """In-memory store whose writes can be made to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False

    def set_item(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise OSError("disk unavailable")
        super().set_item(key, value)

    def remove_item(self, key: str) -> None:
        if self.fail_writes:
            raise PermissionError("read-only storage")
        super().remove_item(key)


class TestSaveRecord:
    """Tests for appending and truncating records."""

    def test_save_then_get(self) -> None:
        store = KeyValueRecordStore(InMemoryKeyValueStore())
        record = make_record(4)

        asyncio.run(store.save_record(record))

        assert asyncio.run(store.get_records("zorome")) == [record]

    def test_persisted_layout(self) -> None:
        """Records live under the namespaced key as a camelCase JSON array."""
        kv = InMemoryKeyValueStore()
        store = KeyValueRecordStore(kv)
        asyncio.run(store.save_record(make_record(4)))

        raw = kv.get_item("dice-games:zorome")
        assert raw is not None
        assert json.loads(raw) == [{
            "id": "record-0",
            "gameSlug": "zorome",
            "diceCount": 3,
            "attempts": 4,
            "timestamp": 1_700_000_000_000,
            "dateString": "2023/11/14 22:13:20",
        }]
        assert storage_key("zorome") == "dice-games:zorome"

    def test_saving_105_records_keeps_last_100(self) -> None:
        store = KeyValueRecordStore(InMemoryKeyValueStore())
        records = [make_record(i % 7 + 1, index=i) for i in range(105)]

        for record in records:
            asyncio.run(store.save_record(record))

        stored = asyncio.run(store.get_records("zorome"))
        assert len(stored) == 100
        assert stored == records[-100:]

    @given(st.integers(min_value=1, max_value=130))
    @settings(max_examples=20, deadline=None)
    def test_stored_count_never_exceeds_cap(self, count: int) -> None:
        store = KeyValueRecordStore(InMemoryKeyValueStore())
        records = [make_record(1, index=i) for i in range(count)]

        for record in records:
            asyncio.run(store.save_record(record))

        stored = asyncio.run(store.get_records("zorome"))
        assert len(stored) == min(count, MAX_RECORDS_PER_GAME)
        assert stored == records[-MAX_RECORDS_PER_GAME:]

    def test_truncation_applies_to_whole_game_not_dice_filter(self) -> None:
        """The cap counts every die count together; filtering happens afterwards."""
        store = KeyValueRecordStore(InMemoryKeyValueStore())
        two_dice = [make_record(1, index=i, dice_count=2) for i in range(5)]
        three_dice = [make_record(1, index=100 + i, dice_count=3) for i in range(100)]

        for record in two_dice + three_dice:
            asyncio.run(store.save_record(record))

        assert asyncio.run(store.get_records("zorome", dice_count=2)) == []
        assert len(asyncio.run(store.get_records("zorome", dice_count=3))) == 100

    def test_games_are_stored_independently(self) -> None:
        store = KeyValueRecordStore(InMemoryKeyValueStore())
        asyncio.run(store.save_record(make_record(3, slug="zorome")))
        asyncio.run(store.save_record(make_record(9, slug="other")))

        assert [r.attempts for r in asyncio.run(store.get_records("zorome"))] == [3]
        assert [r.attempts for r in asyncio.run(store.get_records("other"))] == [9]

    def test_write_failure_raises_localized_error_and_keeps_data(self) -> None:
        kv = FailingStore()
        store = KeyValueRecordStore(kv)
        first = make_record(3)
        asyncio.run(store.save_record(first))

        kv.fail_writes = True
        with pytest.raises(StorageWriteError) as exc_info:
            asyncio.run(store.save_record(make_record(5, index=1)))

        assert exc_info.value.message == "記録の保存に失敗しました"
        assert exc_info.value.operation == "save"
        assert isinstance(exc_info.value.__cause__, OSError)
        assert asyncio.run(store.get_records("zorome")) == [first]

    def test_quota_exceeded_raises_storage_write_error(self) -> None:
        kv = InMemoryKeyValueStore(quota_bytes=200)
        store = KeyValueRecordStore(kv, locale="en")
        first = make_record(3)
        asyncio.run(store.save_record(first))

        with pytest.raises(StorageWriteError) as exc_info:
            asyncio.run(store.save_record(make_record(4, index=1)))

        assert exc_info.value.message == "Failed to save the record"
        assert isinstance(exc_info.value.original_error, QuotaExceededError)
        assert asyncio.run(store.get_records("zorome")) == [first]

    def test_corrupt_data_is_replaced_on_save(self) -> None:
        kv = InMemoryKeyValueStore()
        kv.set_item("dice-games:zorome", "{not json")
        store = KeyValueRecordStore(kv)
        record = make_record(2)

        asyncio.run(store.save_record(record))

        assert asyncio.run(store.get_records("zorome")) == [record]


class TestGetRecords:
    """Tests for reading and filtering records."""

    def test_missing_game_returns_empty(self) -> None:
        store = KeyValueRecordStore(InMemoryKeyValueStore())
        assert asyncio.run(store.get_records("never-played")) == []

    def test_filter_by_dice_count(self) -> None:
        store = KeyValueRecordStore(InMemoryKeyValueStore())
        records = [
            make_record(3, index=0, dice_count=2),
            make_record(5, index=1, dice_count=3),
            make_record(4, index=2, dice_count=2),
        ]
        for record in records:
            asyncio.run(store.save_record(record))

        assert asyncio.run(store.get_records("zorome", dice_count=2)) == [records[0], records[2]]
        assert asyncio.run(store.get_records("zorome", dice_count=5)) == []
        assert asyncio.run(store.get_records("zorome")) == records

    @pytest.mark.parametrize("payload", [
        "{not json",
        '{"an": "object"}',
        '[{"id": "x"}]',
        '[{"id": "x", "gameSlug": "zorome", "diceCount": "3", "attempts": 1, "timestamp": 0, "dateString": ""}]',
        "[1, 2, 3]",
        '[{"id": "x", "gameSlug": "zorome", "diceCount": 3, "attempts": 0, "timestamp": 0, "dateString": ""}]',
        '[{"id": "x", "gameSlug": "zorome", "diceCount": 3, "attempts": 3.7, "timestamp": 0, "dateString": ""}]',
    ])
    def test_unreadable_data_degrades_to_empty(self, payload: str) -> None:
        kv = InMemoryKeyValueStore()
        kv.set_item("dice-games:zorome", payload)
        store = KeyValueRecordStore(kv)

        with patch("dice_games.services.record_store.log") as mock_logger:
            assert asyncio.run(store.get_records("zorome")) == []
            assert mock_logger.warning.called

    def test_read_records_reports_failure(self) -> None:
        kv = InMemoryKeyValueStore()
        kv.set_item("dice-games:zorome", "{not json")
        store = KeyValueRecordStore(kv)

        result = store.read_records("zorome")

        assert not result.ok
        assert result.failure is not None
        assert result.failure.key == "dice-games:zorome"
        assert "JSONDecodeError" in result.failure.reason

    def test_read_records_missing_key_is_ok(self) -> None:
        result = KeyValueRecordStore(InMemoryKeyValueStore()).read_records("zorome")
        assert result.ok
        assert result.records == []

    @pytest.mark.asyncio
    async def test_backend_read_error_degrades_to_empty(self) -> None:
        kv = InMemoryKeyValueStore()
        store = KeyValueRecordStore(kv)
        with patch.object(kv, "get_item", side_effect=OSError("unreadable")):
            assert await store.get_records("zorome") == []
            stats = await store.get_stats("zorome")
        assert stats.total_games == 0


class TestGetStats:
    """Tests for the computed statistics."""

    def test_empty_stats(self) -> None:
        store = KeyValueRecordStore(InMemoryKeyValueStore())
        stats = asyncio.run(store.get_stats("zorome"))

        assert stats.to_dict() == {
            "totalGames": 0,
            "bestScore": None,
            "averageScore": None,
            "recentRecords": [],
        }

    def test_stats_example(self) -> None:
        store = KeyValueRecordStore(InMemoryKeyValueStore())
        for i, attempts in enumerate([3, 5, 4, 3]):
            asyncio.run(store.save_record(make_record(attempts, index=i)))

        stats = asyncio.run(store.get_stats("zorome"))

        assert stats.total_games == 4
        assert stats.best_score == 3
        assert stats.average_score == 3.8

    def test_recent_records_are_last_ten_newest_first(self) -> None:
        store = KeyValueRecordStore(InMemoryKeyValueStore())
        records = [make_record(i + 1, index=i) for i in range(15)]
        for record in records:
            asyncio.run(store.save_record(record))

        stats = asyncio.run(store.get_stats("zorome"))

        assert stats.recent_records == list(reversed(records[-10:]))

    def test_stats_respect_dice_filter(self) -> None:
        store = KeyValueRecordStore(InMemoryKeyValueStore())
        asyncio.run(store.save_record(make_record(2, index=0, dice_count=2)))
        asyncio.run(store.save_record(make_record(40, index=1, dice_count=3)))

        stats = asyncio.run(store.get_stats("zorome", dice_count=3))

        assert stats.total_games == 1
        assert stats.best_score == 40

    @given(st.lists(st.integers(min_value=1, max_value=1000), min_size=1, max_size=50))
    def test_stats_properties(self, attempts: list[int]) -> None:
        records = [make_record(a, index=i) for i, a in enumerate(attempts)]
        stats = GameStats.from_records(records)

        assert stats.total_games == len(attempts)
        assert stats.best_score == min(attempts)
        assert stats.average_score is not None
        assert abs(stats.average_score - sum(attempts) / len(attempts)) <= 0.05 + 1e-9
        assert len(stats.recent_records) == min(10, len(attempts))


class TestClearRecords:
    """Tests for deleting a game's records."""

    def test_clear_then_get_is_empty(self) -> None:
        store = KeyValueRecordStore(InMemoryKeyValueStore())
        asyncio.run(store.save_record(make_record(3)))

        asyncio.run(store.clear_records("zorome"))

        assert asyncio.run(store.get_records("zorome")) == []

    def test_clear_never_written_game(self) -> None:
        store = KeyValueRecordStore(InMemoryKeyValueStore())
        asyncio.run(store.clear_records("never-played"))
        asyncio.run(store.clear_records("never-played"))

    def test_clear_only_affects_one_game(self) -> None:
        store = KeyValueRecordStore(InMemoryKeyValueStore())
        asyncio.run(store.save_record(make_record(3, slug="zorome")))
        asyncio.run(store.save_record(make_record(4, slug="other")))

        asyncio.run(store.clear_records("zorome"))

        assert len(asyncio.run(store.get_records("other"))) == 1

    def test_clear_failure_raises_storage_write_error(self) -> None:
        kv = FailingStore()
        store = KeyValueRecordStore(kv)
        asyncio.run(store.save_record(make_record(3)))
        kv.fail_writes = True

        with pytest.raises(StorageWriteError) as exc_info:
            asyncio.run(store.clear_records("zorome"))

        assert exc_info.value.message == "記録の削除に失敗しました"
        assert exc_info.value.operation == "clear"
        assert len(asyncio.run(store.get_records("zorome"))) == 1


class TestFileBackedRecordStore:
    """Tests for the record store over a JSON store file."""

    def test_invalid_utf8_file_reads_as_empty(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "records.json"
            path.write_bytes(b'{"dice-games:zorome": "\xff\xfe"}')
            store = KeyValueRecordStore(JsonFileKeyValueStore(path))

            assert asyncio.run(store.get_records("zorome")) == []
            assert asyncio.run(store.get_stats("zorome")).total_games == 0

    def test_save_into_unparseable_file_raises_storage_write_error(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "records.json"
            path.write_bytes(b"\xff")
            store = KeyValueRecordStore(JsonFileKeyValueStore(path))

            with pytest.raises(StorageWriteError) as exc_info:
                asyncio.run(store.save_record(make_record(3)))

            assert exc_info.value.operation == "save"
            assert isinstance(exc_info.value.original_error, StoreCorruptedError)
            assert path.read_bytes() == b"\xff"

            with pytest.raises(StorageWriteError):
                asyncio.run(store.clear_records("zorome"))

    def test_save_and_clear_keep_other_keys(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "records.json"
            path.write_text(
                json.dumps({"dice-games:other": [{"id": "x"}], "app:theme": 1}),
                encoding="utf-8",
            )
            store = KeyValueRecordStore(JsonFileKeyValueStore(path))

            asyncio.run(store.save_record(make_record(4)))
            stored = json.loads(path.read_text(encoding="utf-8"))
            assert sorted(stored) == ["app:theme", "dice-games:other", "dice-games:zorome"]
            assert stored["app:theme"] == 1
            assert stored["dice-games:other"] == [{"id": "x"}]

            asyncio.run(store.clear_records("zorome"))
            assert sorted(json.loads(path.read_text(encoding="utf-8"))) == ["app:theme", "dice-games:other"]
