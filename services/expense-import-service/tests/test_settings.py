import pytest

from settings import (
    ABSOLUTE_AMOUNTS_ENV,
    DATE_ORDER_ENV,
    DEFAULT_MAX_UPLOAD_BYTES,
    FALLBACK_DESCRIPTION_ENV,
    MAX_UPLOAD_BYTES_ENV,
    PAYMENT_METHOD_ENV,
    ImportSettings,
    ImportSettingsError,
    load_import_settings,
)

ALL_ENV_VARS = (
    DATE_ORDER_ENV,
    PAYMENT_METHOD_ENV,
    FALLBACK_DESCRIPTION_ENV,
    ABSOLUTE_AMOUNTS_ENV,
    MAX_UPLOAD_BYTES_ENV,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ALL_ENV_VARS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_environment():
    settings = load_import_settings()

    assert settings == ImportSettings()
    assert settings.day_first is False
    assert settings.payment_method == "other"
    assert settings.fallback_description == "Imported expense"
    assert settings.absolute_amounts is True
    assert settings.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv(DATE_ORDER_ENV, "Day_First")
    monkeypatch.setenv(PAYMENT_METHOD_ENV, "bank")
    monkeypatch.setenv(FALLBACK_DESCRIPTION_ENV, "  Bank import ")
    monkeypatch.setenv(ABSOLUTE_AMOUNTS_ENV, "no")
    monkeypatch.setenv(MAX_UPLOAD_BYTES_ENV, "1024")

    settings = load_import_settings()

    assert settings.day_first is True
    assert settings.payment_method == "bank"
    assert settings.fallback_description == "Bank import"
    assert settings.absolute_amounts is False
    assert settings.max_upload_bytes == 1024


@pytest.mark.parametrize(
    ("key", "value"),
    [
        (DATE_ORDER_ENV, "year_first"),
        (PAYMENT_METHOD_ENV, "cheque"),
        (ABSOLUTE_AMOUNTS_ENV, "maybe"),
        (MAX_UPLOAD_BYTES_ENV, "lots"),
        (MAX_UPLOAD_BYTES_ENV, "0"),
    ],
)
def test_invalid_values_raise(monkeypatch, key, value):
    monkeypatch.setenv(key, value)

    with pytest.raises(ImportSettingsError):
        load_import_settings()
