"""Play record data models."""

import math
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

RECENT_RECORDS_LIMIT = 10
DATE_STRING_FORMAT = "%Y/%m/%d %H:%M:%S"


@dataclass(frozen=True)
class GameRecord:
    """One completed play attempt."""
    id: str
    game_slug: str
    dice_count: int
    attempts: int  # Rolls needed to reach the win condition, lower is better
    timestamp: int  # Epoch milliseconds
    date_string: str

    @classmethod
    def create(
        cls,
        game_slug: str,
        dice_count: int,
        attempts: int,
        now: float | None = None,
    ) -> "GameRecord":
        """Build a new record stamped with the current time.

        Args:
            game_slug: Slug of the game that was played
            dice_count: Number of dice used
            attempts: Attempts taken to win
            now: Epoch seconds to stamp the record with (defaults to now)

        Returns:
            A new GameRecord with a unique id

        Raises:
            ValueError: If dice_count or attempts is not positive
        """
        if dice_count < 1:
            raise ValueError(f"dice_count must be positive, got {dice_count}")
        if attempts < 1:
            raise ValueError(f"attempts must be positive, got {attempts}")

        seconds = time.time() if now is None else now
        return cls(
            id=uuid.uuid4().hex,
            game_slug=game_slug,
            dice_count=dice_count,
            attempts=attempts,
            timestamp=int(seconds * 1000),
            date_string=datetime.fromtimestamp(seconds).strftime(DATE_STRING_FORMAT),
        )

    def to_dict(self) -> dict[str, str | int]:
        """Convert to the persisted JSON representation."""
        return {
            "id": self.id,
            "gameSlug": self.game_slug,
            "diceCount": self.dice_count,
            "attempts": self.attempts,
            "timestamp": self.timestamp,
            "dateString": self.date_string,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameRecord":
        """Build a record from its persisted JSON representation.

        Raises:
            KeyError: If a field is missing
            TypeError: If a field has the wrong type
            ValueError: If diceCount or attempts is not a positive integer
        """
        dice_count = data["diceCount"]
        attempts = data["attempts"]
        timestamp = data["timestamp"]
        for name, value in (("diceCount", dice_count), ("attempts", attempts)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
            if value < 1:
                raise ValueError(f"{name} must be positive, got {value}")
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            raise TypeError(f"timestamp must be a number, got {type(timestamp).__name__}")

        return cls(
            id=str(data["id"]),
            game_slug=str(data["gameSlug"]),
            dice_count=dice_count,
            attempts=attempts,
            timestamp=int(timestamp),
            date_string=str(data["dateString"]),
        )


@dataclass(frozen=True)
class GameStats:
    """Aggregate over a set of records for one game, computed on demand."""
    total_games: int
    best_score: int | None
    average_score: float | None
    recent_records: list[GameRecord] = field(default_factory=list)

    @classmethod
    def from_records(cls, records: list[GameRecord]) -> "GameStats":
        """Compute stats for records ordered oldest first."""
        if not records:
            return cls(total_games=0, best_score=None, average_score=None, recent_records=[])

        attempts = [r.attempts for r in records]
        average = sum(attempts) / len(attempts)

        return cls(
            total_games=len(records),
            best_score=min(attempts),
            # Half-up rounding to one decimal
            average_score=math.floor(average * 10 + 0.5) / 10,
            recent_records=list(reversed(records[-RECENT_RECORDS_LIMIT:])),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalGames": self.total_games,
            "bestScore": self.best_score,
            "averageScore": self.average_score,
            "recentRecords": [r.to_dict() for r in self.recent_records],
        }
