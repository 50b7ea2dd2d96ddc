import pytest

from tpcli.core import config
from tpcli.core.config import ConfigError, load_settings


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.setenv("TPCLI_BASE_DIR", str(tmp_path))
    monkeypatch.setenv("TPCLI_DATA_DIR", str(tmp_path / "data"))
    for name in (
        "TPCLI_LOGS_DIR",
        "TPCLI_HISTORY_MAX_ENTRIES",
        "TPCLI_PANEL_ORDER",
        "TPCLI_PROMPT",
        "TPCLI_DEBUG_LOG",
    ):
        monkeypatch.delenv(name, raising=False)

    original = config.settings
    yield monkeypatch
    config.settings = original


class TestLoadSettings:
    def test_defaults(self, env, tmp_path):
        settings = load_settings(reload=True)
        assert settings.app_name == "tpcli"
        assert settings.history_max_entries == 200
        assert settings.prompt == "Enter command>"
        assert settings.panel_order == "oec"
        assert settings.tcp_bind == "localhost:6000"
        assert settings.debug_log_file is None
        assert settings.logs_dir == tmp_path / "data" / "logs"

    def test_directories_created(self, env, tmp_path):
        load_settings(reload=True)
        assert (tmp_path / "data").is_dir()
        assert (tmp_path / "data" / "logs").is_dir()

    def test_overrides(self, env, tmp_path):
        env.setenv("TPCLI_HISTORY_MAX_ENTRIES", "15")
        env.setenv("TPCLI_PANEL_ORDER", "cho")
        env.setenv("TPCLI_DEBUG_LOG", str(tmp_path / "debug.log"))
        settings = load_settings(reload=True)
        assert settings.history_max_entries == 15
        assert settings.panel_order == "cho"
        assert settings.debug_log_file == tmp_path / "debug.log"

    def test_cached_without_reload(self, env):
        first = load_settings(reload=True)
        assert load_settings() is first

    def test_bad_integer(self, env):
        env.setenv("TPCLI_HISTORY_MAX_ENTRIES", "lots")
        with pytest.raises(ConfigError, match="TPCLI_HISTORY_MAX_ENTRIES"):
            load_settings(reload=True)

    def test_history_size_must_be_positive(self, env):
        env.setenv("TPCLI_HISTORY_MAX_ENTRIES", "0")
        with pytest.raises(ConfigError):
            load_settings(reload=True)
