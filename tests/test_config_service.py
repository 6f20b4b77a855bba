"""Property-based tests for configuration service."""

import json
import tempfile
from pathlib import Path

import pytest
from hypothesis import given, strategies as st

from dice_games.models import AppConfig
from dice_games.services import ConfigurationService
from dice_games.services.errors import ConfigurationError


path_segments = st.text(min_size=1, max_size=30, alphabet=st.characters(whitelist_categories=("Lu", "Ll", "Nd")))

valid_store_paths = st.builds(lambda x: Path.home() / "test" / x / "records.json", path_segments)
valid_content_dirs = st.builds(lambda x: Path("content") / x, path_segments)
valid_log_levels = st.sampled_from(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
valid_locales = st.sampled_from(["ja", "en"])
valid_quotas = st.integers(min_value=1, max_value=50 * 1024 * 1024)

valid_config_strategy = st.builds(
    AppConfig,
    content_directory=valid_content_dirs,
    store_path=valid_store_paths,
    log_level=valid_log_levels,
    locale=valid_locales,
    storage_quota_bytes=valid_quotas,
)


@given(valid_config_strategy)
def test_configuration_round_trip(config: AppConfig) -> None:
    """For any valid configuration, saving and reloading preserves all values."""
    with tempfile.TemporaryDirectory() as temp_dir:
        service = ConfigurationService(Path(temp_dir) / "config.json")

        service.save_config(config)
        loaded_config = service.load_config()

        assert loaded_config == config


def test_configuration_round_trip_example() -> None:
    config = AppConfig(
        content_directory=Path("/srv/dice-games/games"),
        store_path=Path.home() / "dice" / "records.json",
        log_level="DEBUG",
        locale="en",
        storage_quota_bytes=1024,
    )

    with tempfile.TemporaryDirectory() as temp_dir:
        config_path = Path(temp_dir) / "nested" / "config.json"
        service = ConfigurationService(config_path)

        service.save_config(config)
        loaded_config = service.load_config()

        assert loaded_config.content_directory == Path("/srv/dice-games/games")
        assert loaded_config.store_path == Path.home() / "dice" / "records.json"
        assert loaded_config.log_level == "DEBUG"
        assert loaded_config.locale == "en"
        assert loaded_config.storage_quota_bytes == 1024
        assert json.loads(config_path.read_text(encoding="utf-8"))["locale"] == "en"


def create_invalid_config_strategy():
    """Create strategy for invalid but constructible configs."""
    return st.one_of(
        # Relative store path
        st.builds(AppConfig,
                  content_directory=valid_content_dirs,
                  store_path=st.builds(lambda x: Path(x) / "records.json", path_segments),
                  log_level=valid_log_levels),

        # Unknown log level
        st.builds(AppConfig,
                  content_directory=valid_content_dirs,
                  store_path=valid_store_paths,
                  log_level=st.text(min_size=1).filter(
                      lambda x: x not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])),

        # Unsupported locale
        st.builds(AppConfig,
                  content_directory=valid_content_dirs,
                  store_path=valid_store_paths,
                  log_level=valid_log_levels,
                  locale=st.text(min_size=1, max_size=5).filter(lambda x: x not in ["ja", "en"])),

        # Non-positive quota
        st.builds(AppConfig,
                  content_directory=valid_content_dirs,
                  store_path=valid_store_paths,
                  log_level=valid_log_levels,
                  storage_quota_bytes=st.integers(max_value=0)),
    )


@given(create_invalid_config_strategy())
def test_configuration_validation_rejects_invalid(config: AppConfig) -> None:
    result = ConfigurationService().validate_config(config)

    assert not result.is_valid
    assert len(result.errors) > 0
    assert all(isinstance(error, str) for error in result.errors)


@given(valid_config_strategy)
def test_configuration_validation_accepts_valid(config: AppConfig) -> None:
    result = ConfigurationService().validate_config(config)

    assert result.is_valid
    assert len(result.errors) == 0


def test_save_invalid_configuration_raises() -> None:
    config = AppConfig(
        content_directory=Path("games"),
        store_path=Path("relative.json"),
        log_level="INFO",
    )

    with tempfile.TemporaryDirectory() as temp_dir:
        config_path = Path(temp_dir) / "config.json"
        service = ConfigurationService(config_path)

        with pytest.raises(ConfigurationError) as exc_info:
            service.save_config(config)

        assert "store_path must be an absolute path" in exc_info.value.message
        assert not config_path.exists()


def test_missing_file_uses_defaults() -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        service = ConfigurationService(Path(temp_dir) / "absent.json")
        config = service.load_config()

        assert config.log_level == "INFO"
        assert config.locale == "ja"
        assert config.storage_quota_bytes == 5 * 1024 * 1024
        assert config.store_path.name == "records.json"
        assert service.validate_config(config).is_valid


@pytest.mark.parametrize("contents", [
    "{broken json",
    json.dumps({"log_level": "INFO"}),
    json.dumps({"store_path": "relative.json", "log_level": "INFO"}),
])
def test_unusable_file_falls_back_to_defaults(contents: str) -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        config_path = Path(temp_dir) / "config.json"
        config_path.write_text(contents, encoding="utf-8")

        config = ConfigurationService(config_path).load_config()

        assert config.store_path.is_absolute()
        assert config.log_level == "INFO"


def test_optional_values_filled_from_defaults() -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        config_path = Path(temp_dir) / "config.json"
        store_path = Path(temp_dir) / "records.json"
        config_path.write_text(
            json.dumps({"store_path": str(store_path), "log_level": "WARNING"}),
            encoding="utf-8",
        )

        config = ConfigurationService(config_path).load_config()

        assert config.store_path == store_path
        assert config.log_level == "WARNING"
        assert config.locale == "ja"
        assert config.storage_quota_bytes == 5 * 1024 * 1024
