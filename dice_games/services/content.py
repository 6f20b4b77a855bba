"""Content service for loading and validating the game catalog."""

from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any

import structlog
import yaml

from ..models import Category, Difficulty, GameMetadata
from .errors import ContentValidationError

log = structlog.stdlib.get_logger()

DEFAULT_CONTENT_DIRECTORY = Path(__file__).resolve().parent.parent / "content" / "games"
FRONT_MATTER_DELIMITER = "---"
MIN_DICE_COUNT = 1
MAX_DICE_COUNT = 10

REQUIRED_STRING_FIELDS = ("title", "component", "description", "players", "duration")
KNOWN_FIELDS = frozenset({
    *REQUIRED_STRING_FIELDS,
    "difficulty",
    "diceCount",
    "category",
    "tags",
    "publishedAt",
    "updatedAt",
    "featured",
    "config",
})


class ValidationResult:
    """Result of metadata validation."""

    def __init__(self, is_valid: bool, errors: list[str] | None = None) -> None:
        self.is_valid: bool = is_valid
        self.errors: list[str] = errors or []


@dataclass(frozen=True)
class ContentDocument:
    """A content file split into front matter and body."""
    slug: str
    path: Path
    front_matter: dict[str, Any]
    body: str


def _parse_date(value: Any) -> date | None:
    """Accept YAML dates/datetimes or ISO date strings; None when unparseable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def validate_metadata(raw: Any) -> ValidationResult:
    """Validate one raw front matter mapping against the catalog schema.

    Each error is reported as "<field>: <problem>".
    """
    if not isinstance(raw, dict):
        return ValidationResult(False, [f"front matter: expected a mapping, got {type(raw).__name__}"])

    errors: list[str] = []

    for name in REQUIRED_STRING_FIELDS:
        value = raw.get(name)
        if value is None:
            errors.append(f"{name}: required")
        elif not isinstance(value, str) or not value.strip():
            errors.append(f"{name}: must be a non-empty string")

    # Validate difficulty
    difficulties = [d.value for d in Difficulty]
    if "difficulty" not in raw:
        errors.append("difficulty: required")
    elif raw["difficulty"] not in difficulties:
        errors.append(f"difficulty: must be one of {', '.join(difficulties)}")

    # Validate diceCount
    dice_count = raw.get("diceCount")
    if dice_count is None:
        errors.append("diceCount: required")
    elif isinstance(dice_count, bool) or not isinstance(dice_count, int):
        errors.append("diceCount: must be an integer")
    elif not MIN_DICE_COUNT <= dice_count <= MAX_DICE_COUNT:
        errors.append(f"diceCount: must be between {MIN_DICE_COUNT} and {MAX_DICE_COUNT}")

    # Validate category
    categories = [c.value for c in Category]
    category = raw.get("category")
    if category is None:
        errors.append("category: required")
    elif not isinstance(category, list) or not category:
        errors.append("category: must be a non-empty list")
    else:
        unknown = [c for c in category if c not in categories]
        if unknown:
            errors.append(f"category: unknown values {unknown}, expected any of {', '.join(categories)}")

    tags = raw.get("tags")
    if tags is not None and (not isinstance(tags, list) or not all(isinstance(t, str) for t in tags)):
        errors.append("tags: must be a list of strings")

    if "publishedAt" not in raw:
        errors.append("publishedAt: required")
    elif _parse_date(raw["publishedAt"]) is None:
        errors.append("publishedAt: must be a date (YYYY-MM-DD)")

    if raw.get("updatedAt") is not None and _parse_date(raw["updatedAt"]) is None:
        errors.append("updatedAt: must be a date (YYYY-MM-DD)")

    featured = raw.get("featured")
    if featured is not None and not isinstance(featured, bool):
        errors.append("featured: must be true or false")

    config = raw.get("config")
    if config is not None and not isinstance(config, dict):
        errors.append("config: must be a mapping")

    for name in sorted(set(raw) - KNOWN_FIELDS):
        errors.append(f"{name}: unknown field")

    return ValidationResult(len(errors) == 0, errors)


def metadata_from_dict(slug: str, raw: dict[str, Any], body: str = "") -> GameMetadata:
    """Convert validated front matter to GameMetadata."""
    published_at = _parse_date(raw["publishedAt"])
    if published_at is None:
        raise ValueError(f"publishedAt is not a date: {raw['publishedAt']!r}")
    updated_raw = raw.get("updatedAt")

    return GameMetadata(
        slug=slug,
        title=raw["title"],
        component=raw["component"],
        description=raw["description"],
        players=raw["players"],
        duration=raw["duration"],
        difficulty=Difficulty(raw["difficulty"]),
        dice_count=raw["diceCount"],
        category=[Category(c) for c in raw["category"]],
        published_at=published_at,
        tags=list(raw.get("tags") or []),
        updated_at=_parse_date(updated_raw) if updated_raw is not None else None,
        featured=bool(raw.get("featured", False)),
        config=dict(raw["config"]) if raw.get("config") is not None else None,
        body=body,
    )


def sort_catalog(games: list[GameMetadata]) -> list[GameMetadata]:
    """Featured games first, then newest, then by title."""
    return sorted(games, key=lambda g: (not g.featured, -g.published_at.toordinal(), g.title))


def filter_by_category(games: list[GameMetadata], category: Category | None) -> list[GameMetadata]:
    if category is None:
        return list(games)
    return [g for g in games if category in g.category]


def featured_games(games: list[GameMetadata]) -> list[GameMetadata]:
    return [g for g in games if g.featured]


class ContentService:
    """Service that loads game content documents from a directory."""

    def __init__(self, content_directory: Path | None = None) -> None:
        self.content_directory: Path = content_directory or DEFAULT_CONTENT_DIRECTORY
        log.info("Content service initialized", content_directory=str(self.content_directory))

    def parse_document(self, path: Path) -> ContentDocument:
        """Split a Markdown file into YAML front matter and body.

        Raises:
            ContentValidationError: If the front matter is missing or not valid YAML
            OSError: If the file cannot be read
        """
        text = path.read_text(encoding="utf-8")
        lines = text.splitlines()

        if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
            raise ContentValidationError(str(path), ["front matter: missing opening '---'"])

        try:
            end = next(i for i in range(1, len(lines)) if lines[i].strip() == FRONT_MATTER_DELIMITER)
        except StopIteration:
            raise ContentValidationError(str(path), ["front matter: missing closing '---'"]) from None

        try:
            front_matter = yaml.safe_load("\n".join(lines[1:end]))
        except yaml.YAMLError as e:
            raise ContentValidationError(str(path), [f"front matter: invalid YAML ({e})"]) from e

        body = "\n".join(lines[end + 1:]).strip()
        return ContentDocument(
            slug=path.stem,
            path=path,
            front_matter=front_matter if front_matter is not None else {},
            body=body,
        )

    def load_catalog(self) -> list[GameMetadata]:
        """Load and validate every game document.

        The first invalid document aborts the whole load.

        Raises:
            ContentValidationError: If any document is invalid or a slug repeats
            FileNotFoundError: If the content directory does not exist
        """
        if not self.content_directory.is_dir():
            raise FileNotFoundError(f"Content directory not found: {self.content_directory}")

        games: list[GameMetadata] = []
        seen: dict[str, Path] = {}

        for path in sorted(self.content_directory.glob("*.md")):
            document = self.parse_document(path)

            if document.slug in seen:
                raise ContentValidationError(
                    str(path), [f"slug: '{document.slug}' already defined by {seen[document.slug]}"]
                )

            result = validate_metadata(document.front_matter)
            if not result.is_valid:
                log.error("Invalid game content", path=str(path), errors=result.errors)
                raise ContentValidationError(str(path), result.errors)

            seen[document.slug] = path
            games.append(metadata_from_dict(document.slug, document.front_matter, document.body))

        log.info("Game catalog loaded", games=len(games), content_directory=str(self.content_directory))
        return sort_catalog(games)
