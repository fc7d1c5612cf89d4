"""
Tests for settings loading and the cached settings instance.
"""
import pytest

from pos_tool.config.settings import Settings, get_settings, reset_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


def test_explicit_data_dir(tmp_path):
    settings = Settings.load(tmp_path)
    assert settings.data_dir == tmp_path
    assert settings.products_csv == tmp_path / "products.csv"
    assert settings.sale_lines_csv == tmp_path / "sale_lines.csv"


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("POS_TOOL_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("POS_TOOL_CURRENCY", "USD")
    monkeypatch.setenv("POS_TOOL_KASIR_ID", "7")
    monkeypatch.setenv("POS_TOOL_LOG_LEVEL", "debug")

    settings = get_settings()

    assert settings.members_csv == tmp_path / "members.csv"
    assert settings.currency == "USD"
    assert settings.default_kasir_id == 7
    assert settings.log_level == "DEBUG"


def test_settings_cached_until_reset(tmp_path, monkeypatch):
    monkeypatch.setenv("POS_TOOL_CURRENCY", "IDR")
    first = get_settings()
    monkeypatch.setenv("POS_TOOL_CURRENCY", "SGD")

    assert get_settings() is first

    reset_settings()
    assert get_settings().currency == "SGD"
