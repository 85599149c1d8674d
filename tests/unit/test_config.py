"""Tests for Settings loading and validation."""

from __future__ import annotations

import pytest

from fpromise.core.config import HttpConfig, Settings, load_settings
from fpromise.core.enums import LogFormat, SchedulerKind
from fpromise.core.errors import ConfigError


class TestDefaults:
    def test_defaults(self):
        settings = Settings()
        assert settings.scheduler.kind == SchedulerKind.LOOP
        assert settings.observability.log_level == "INFO"
        assert settings.observability.log_format == LogFormat.JSON
        assert settings.http.timeout_seconds == 120.0
        assert settings.http.headers == {}

    def test_http_config_standalone(self):
        cfg = HttpConfig(base_url="https://api.example.com", headers={"X-App": "demo"})
        assert cfg.base_url == "https://api.example.com"
        assert cfg.follow_redirects is False


class TestEnvironment:
    def test_nested_env_override(self, monkeypatch):
        monkeypatch.setenv("FPROMISE_HTTP__BASE_URL", "https://env.example.com")
        monkeypatch.setenv("FPROMISE_SCHEDULER__KIND", "sim")
        settings = Settings()
        assert settings.http.base_url == "https://env.example.com"
        assert settings.scheduler.kind == SchedulerKind.SIM


class TestLoadSettings:
    def test_no_file(self):
        settings = load_settings()
        assert isinstance(settings, Settings)

    def test_from_toml(self, tmp_path):
        path = tmp_path / "fpromise.toml"
        path.write_text(
            '[scheduler]\nkind = "sim"\n\n'
            '[http]\nbase_url = "https://toml.example.com"\ntimeout_seconds = 5\n'
            '\n[http.headers]\nX-Client = "tests"\n'
        )
        settings = load_settings(path)
        assert settings.scheduler.kind == SchedulerKind.SIM
        assert settings.http.base_url == "https://toml.example.com"
        assert settings.http.timeout_seconds == 5.0
        assert settings.http.headers == {"X-Client": "tests"}

    def test_overrides_win(self, tmp_path):
        path = tmp_path / "fpromise.toml"
        path.write_text('[observability]\nlog_level = "DEBUG"\n')
        settings = load_settings(path, overrides={"observability": {"log_level": "ERROR"}})
        assert settings.observability.log_level == "ERROR"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "absent.toml")

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "broken.toml"
        path.write_text("[scheduler\nkind = ")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_settings(path)

    def test_invalid_value(self):
        with pytest.raises(ConfigError):
            load_settings(overrides={"scheduler": {"kind": "threads"}})
