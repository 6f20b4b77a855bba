"""Game catalog metadata models."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class Difficulty(Enum):
    """Difficulty tiers, in increasing order."""
    BEGINNER = "初級"
    INTERMEDIATE = "中級"
    ADVANCED = "上級"
    EXPERT = "超級"


class Category(Enum):
    """Catalog categories a game can belong to."""
    LUCK = "運ゲー"
    STRATEGY = "戦略ゲー"
    ARITHMETIC = "計算ゲー"
    PARTY = "パーティーゲー"
    TRPG = "TRPG"
    STATISTICS = "統計"
    ROLE_PLAY = "ロールプレイ"


@dataclass(frozen=True)
class GameMetadata:
    """Author-provided catalog entry for one game."""
    slug: str
    title: str
    component: str  # UI component that renders the game, e.g. "ZoromeGame.vue"
    description: str
    players: str
    duration: str
    difficulty: Difficulty
    dice_count: int
    category: list[Category]
    published_at: date
    tags: list[str] = field(default_factory=list)
    updated_at: date | None = None
    featured: bool = False
    config: dict[str, Any] | None = None
    body: str = ""

    @property
    def component_name(self) -> str:
        """Component name without a file extension."""
        return self.component.rsplit(".", 1)[0] if "." in self.component else self.component
