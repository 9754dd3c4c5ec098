import pytest

from tracelog.config import LoggerConfig, load_config


def test_logger_config_threshold_defaults_by_environment():
    assert LoggerConfig(environment="local").threshold == "debug"
    assert LoggerConfig(environment="LOCAL").threshold == "debug"
    assert LoggerConfig(environment="production").threshold == "info"
    assert LoggerConfig().threshold == "info"


def test_logger_config_explicit_level_wins():
    cfg = LoggerConfig(level="error", environment="local")
    assert cfg.threshold == "error"


@pytest.mark.parametrize("level", ["verbose", "critical", "5"])
def test_logger_config_rejects_unknown_levels(level: str):
    with pytest.raises(ValueError):
        LoggerConfig(level=level)


def test_load_config_defaults(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("LOGGER_LEVEL", raising=False)
    monkeypatch.delenv("APP_ENV", raising=False)

    cfg = load_config()
    assert cfg.level is None
    assert cfg.environment == "production"
    assert cfg.threshold == "info"


def test_load_config_local_environment_enables_debug(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("LOGGER_LEVEL", raising=False)
    monkeypatch.setenv("APP_ENV", "local")

    assert load_config().threshold == "debug"


@pytest.mark.parametrize("raw,expected", [("WARN", "warn"), (" debug ", "debug"), ("warning", "warn"), ("", "info")])
def test_load_config_parses_logger_level(monkeypatch: pytest.MonkeyPatch, raw: str, expected: str):
    monkeypatch.setenv("LOGGER_LEVEL", raw)
    monkeypatch.setenv("APP_ENV", "staging")

    assert load_config().threshold == expected


def test_load_config_invalid_level_message(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LOGGER_LEVEL", "loud")

    with pytest.raises(ValueError, match="LOGGER_LEVEL"):
        load_config()


def test_load_config_non_strict_ignores_invalid_level(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LOGGER_LEVEL", "loud")
    monkeypatch.setenv("APP_ENV", "local")

    cfg = load_config(strict=False)
    assert cfg.level is None
    assert cfg.threshold == "debug"


def test_logger_config_normalizes_level_directly():
    assert LoggerConfig(level="WARNING").level == "warn"
    assert LoggerConfig(level=" Error ").threshold == "error"
