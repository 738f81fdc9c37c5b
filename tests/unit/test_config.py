"""
Unit Tests for Configuration
============================

Test Coverage
-------------
- Config: environment parsing with safe fallbacks
- ConfigManager: YAML discovery, dot-path reads, overrides
- EconomySettings: defaults, validation, loading from ConfigManager
"""

import pytest

from clicker.core.config import Config, Environment
from clicker.core.config.manager import ConfigManager
from clicker.core.exceptions import ConfigurationError
from clicker.domain.models import UpgradeTrack
from clicker.modules.shared.settings import EconomySettings


@pytest.fixture
def config_dir(tmp_path):
    (tmp_path / "economy.yaml").write_text(
        "economy:\n"
        "  scheduler:\n"
        "    regen_interval_seconds: 0.5\n"
        "  bonus:\n"
        "    multiplier: 20\n"
        "  upgrades:\n"
        "    click:\n"
        "      starting_cost: 50\n"
        "badges:\n"
        "  default_badge_id: starter\n",
        encoding="utf-8",
    )
    return tmp_path


@pytest.fixture(autouse=True)
def fresh_config_manager():
    ConfigManager.reset()
    yield
    ConfigManager.reset()


@pytest.mark.unit
class TestConfig:

    def test_save_backend_choice(self, monkeypatch):
        monkeypatch.setenv("SAVE_BACKEND", "Redis")

        Config.load()

        assert Config.SAVE_BACKEND == "redis"

    def test_unknown_save_backend_falls_back_to_file(self, monkeypatch):
        monkeypatch.setenv("SAVE_BACKEND", "floppy")

        Config.load()

        assert Config.SAVE_BACKEND == "file"

    def test_out_of_range_int_uses_default(self, monkeypatch):
        monkeypatch.setenv("CATALOG_TIMEOUT_SECONDS", "9999")

        Config.load()

        assert Config.CATALOG_TIMEOUT_SECONDS == 10

    def test_environment_parsing(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "Production")
        Config.load()
        assert Config.ENVIRONMENT is Environment.PRODUCTION

        monkeypatch.setenv("ENVIRONMENT", "moon")
        Config.load()
        assert Config.ENVIRONMENT is Environment.DEVELOPMENT

    def test_invalid_log_level_uses_info(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")

        Config.load()

        assert Config.LOG_LEVEL == "INFO"

    def test_log_json_is_tri_state(self, monkeypatch):
        monkeypatch.delenv("LOG_JSON", raising=False)
        Config.load()
        assert Config.LOG_JSON is None

        monkeypatch.setenv("LOG_JSON", "off")
        Config.load()
        assert Config.LOG_JSON is False

    def test_bool_parsing(self, monkeypatch):
        monkeypatch.setenv("DATABASE_ECHO", "yes")

        Config.load()

        assert Config.DATABASE_ECHO is True

    def test_save_file_follows_slot_name(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        monkeypatch.setenv("SAVE_SLOT", "alt")
        monkeypatch.delenv("SAVE_FILE_PATH", raising=False)

        Config.load()

        assert Config.SAVE_FILE_PATH == tmp_path / "alt.json"

    def test_require_discord_token(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DISCORD_TOKEN", "")
        monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
        monkeypatch.setenv("LOGS_DIR", str(tmp_path / "logs"))

        with pytest.raises(ValueError):
            Config.validate(require_discord=True)


@pytest.mark.unit
class TestConfigManager:

    def test_reads_yaml_by_dot_path(self, config_dir):
        ConfigManager.initialize(config_dir)

        assert ConfigManager.get("economy.bonus.multiplier") == 20
        assert ConfigManager.get("economy.missing.key", "fallback") == "fallback"

    def test_override_only_touches_cache(self, config_dir):
        ConfigManager.initialize(config_dir)

        ConfigManager.override("economy.bonus.multiplier", 5)

        assert ConfigManager.get("economy.bonus.multiplier") == 5

    def test_missing_directory(self, tmp_path):
        ConfigManager.initialize(tmp_path / "nowhere")

        assert ConfigManager.get("economy.bonus.multiplier", 10) == 10

    def test_broken_yaml_skipped(self, tmp_path):
        (tmp_path / "bad.yaml").write_text("economy: [unclosed", encoding="utf-8")
        (tmp_path / "good.yaml").write_text("badges:\n  default_badge_id: ok\n", encoding="utf-8")

        ConfigManager.initialize(tmp_path)

        assert ConfigManager.get("badges.default_badge_id") == "ok"
        assert ConfigManager.get_metrics()["files_loaded"] == 1

    def test_shipped_config_matches_defaults(self):
        ConfigManager.initialize(Config.PROJECT_ROOT / "config")

        assert EconomySettings.from_config_manager() == EconomySettings()


@pytest.mark.unit
class TestEconomySettings:

    def test_defaults(self, settings):
        assert settings.regen_interval_seconds == 0.3
        assert settings.bonus_interval_seconds == 15.0
        assert settings.bonus_window_seconds == 3.0
        assert settings.bonus_multiplier == 10
        assert settings.new_game_state().to_snapshot().currency == 0

    def test_from_config_manager(self, config_dir):
        ConfigManager.initialize(config_dir)

        settings = EconomySettings.from_config_manager()

        assert settings.regen_interval_seconds == 0.5
        assert settings.bonus_multiplier == 20
        assert settings.starting_costs[UpgradeTrack.CLICK] == 50
        assert settings.starting_costs[UpgradeTrack.BATTERY] == 200
        state = settings.new_game_state()
        assert state.selected_badge_id == "starter"
        assert state.owned_badges == frozenset({"starter"})

    def test_wrong_type_rejected(self, config_dir):
        ConfigManager.initialize(config_dir)
        ConfigManager.override("economy.bonus.multiplier", "lots")

        with pytest.raises(ConfigurationError) as exc_info:
            EconomySettings.from_config_manager()

        assert exc_info.value.config_key == "economy.bonus.multiplier"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"regen_interval_seconds": 0},
            {"bonus_window_seconds": 15.0},
            {"growth_factors": {UpgradeTrack.CLICK: 0.9, UpgradeTrack.BATTERY: 1.2, UpgradeTrack.CHARGE: 1.2}},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigurationError):
            EconomySettings(**kwargs)
