"""Unit tests for config.py"""

import pytest
from pydantic import ValidationError

from chandiff.config import load_config
from chandiff.core.models import Granularity


def test_load_config_uses_env_db_url(monkeypatch):
    """CHANDIFF_DB_URL env var is picked up by load_config."""
    monkeypatch.setenv("CHANDIFF_DB_URL", "sqlite:///env.db")
    settings = load_config()
    assert settings.db_url == "sqlite:///env.db"


def test_load_config_env_overrides_config_yaml(tmp_path, monkeypatch):
    """CHANDIFF_DB_URL takes precedence over config.yaml db_url."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text("db_url: 'sqlite:///project.db'\n")
    monkeypatch.setenv("CHANDIFF_DB_URL", "sqlite:///override.db")
    settings = load_config()
    assert settings.db_url == "sqlite:///override.db"


def test_load_config_cli_overrides_env(monkeypatch):
    """A non-None CLI override beats the CHANDIFF_DB_URL env var."""
    monkeypatch.setenv("CHANDIFF_DB_URL", "sqlite:///env.db")
    settings = load_config(overrides={"db_url": "sqlite:///cli.db"})
    assert settings.db_url == "sqlite:///cli.db"


def test_load_config_defaults(tmp_path, monkeypatch):
    """Settings defaults apply when no config.yaml, env var, or CLI override exists."""
    monkeypatch.chdir(tmp_path)
    for name in ("DB_URL", "GRANULARITY", "CHANGED_ONLY", "INTRALINE", "COLUMN_WIDTH", "LOG_LEVEL"):
        monkeypatch.delenv(f"CHANDIFF_{name}", raising=False)
    settings = load_config()
    assert settings.db_url == "sqlite:///chandiff.db"
    assert settings.granularity is Granularity.step
    assert settings.changed_only is False
    assert settings.intraline is True
    assert settings.log_level == "WARNING"


def test_load_config_invalid_yaml(tmp_path, monkeypatch):
    """load_config raises ValueError when config.yaml contains invalid YAML."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text("key: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid config.yaml"):
        load_config()


# --- generalized env var pattern ---

def test_load_config_env_granularity(monkeypatch):
    """CHANDIFF_GRANULARITY env var is coerced to Granularity."""
    monkeypatch.setenv("CHANDIFF_GRANULARITY", "block")
    assert load_config().granularity is Granularity.block


@pytest.mark.parametrize("raw,expected", [("true", True), ("false", False), ("1", True)])
def test_load_config_env_changed_only(monkeypatch, raw, expected):
    """CHANDIFF_CHANGED_ONLY env var is coerced to bool."""
    monkeypatch.setenv("CHANDIFF_CHANGED_ONLY", raw)
    assert load_config().changed_only is expected


def test_load_config_env_column_width(monkeypatch):
    """CHANDIFF_COLUMN_WIDTH env var is coerced to int."""
    monkeypatch.setenv("CHANDIFF_COLUMN_WIDTH", "80")
    assert load_config().column_width == 80


def test_load_config_cli_overrides_config_yaml_granularity(tmp_path, monkeypatch):
    """A CLI override beats config.yaml; None overrides are ignored."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CHANDIFF_GRANULARITY", raising=False)
    (tmp_path / "config.yaml").write_text("granularity: block\nintraline: false\n")
    settings = load_config(overrides={"granularity": Granularity.step, "intraline": None})
    assert settings.granularity is Granularity.step
    assert settings.intraline is False


@pytest.mark.parametrize("overrides", [{"column_width": 5}, {"log_level": "LOUD"}, {"granularity": "line"}])
def test_load_config_rejects_out_of_range(overrides):
    """Out-of-range values fail validation."""
    with pytest.raises(ValidationError):
        load_config(overrides=overrides)
