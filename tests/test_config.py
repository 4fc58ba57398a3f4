"""Tests for environment-driven settings."""

from decimal import Decimal

import pytest

from ziptax.config import DEFAULT_DATA_DIR, GLOBAL_DEFAULT_LOCAL_RATE, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("ZIPTAX_DATA_DIR", "ZIPTAX_DEFAULT_LOCAL_RATE", "ZIPTAX_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)


def test_defaults():
    settings = load_settings()
    assert settings.data_dir == DEFAULT_DATA_DIR
    assert settings.default_local_rate == GLOBAL_DEFAULT_LOCAL_RATE == Decimal("1.50")
    assert settings.log_level == "WARNING"


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("ZIPTAX_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("ZIPTAX_DEFAULT_LOCAL_RATE", "2.25")
    monkeypatch.setenv("ZIPTAX_LOG_LEVEL", "debug")
    settings = load_settings()
    assert settings.data_dir == tmp_path.resolve()
    assert settings.default_local_rate == Decimal("2.25")
    assert settings.log_level == "DEBUG"


def test_relative_data_dir_resolved_against_cwd(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ZIPTAX_DATA_DIR", "tables")
    assert load_settings().data_dir == (tmp_path / "tables").resolve()


@pytest.mark.parametrize("value", ["abc", "-1"])
def test_bad_default_rate(monkeypatch, value):
    monkeypatch.setenv("ZIPTAX_DEFAULT_LOCAL_RATE", value)
    with pytest.raises(ValueError, match="ZIPTAX_DEFAULT_LOCAL_RATE"):
        load_settings()
