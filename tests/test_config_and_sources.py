from decimal import Decimal

from sourcecart.config import get_settings
from sourcecart.core.canonical import Source, composite_key, format_decimal, minor_to_major, round_half_up
from sourcecart.core.config import DEFAULT_API_BASE_URL, config_from_env


def test_config_from_env_defaults() -> None:
    config = config_from_env()

    assert config.api_base_url == DEFAULT_API_BASE_URL
    assert config.wishlist_ttl_seconds == 30.0
    assert config.retry_attempts == 2
    assert config.lang_currency is None


def test_config_from_env_reads_overrides(monkeypatch) -> None:
    monkeypatch.setenv("SOURCECART_API_BASE_URL", "https://staging.example/api")
    monkeypatch.setenv("SOURCECART_WISHLIST_TTL", "5")
    monkeypatch.setenv("SOURCECART_RETRY_BACKOFF", "not-a-number")
    monkeypatch.setenv("SOURCECART_LANG_CURRENCY", "en/USD")

    config = config_from_env()

    assert config.api_base_url == "https://staging.example/api/"
    assert config.wishlist_ttl_seconds == 5.0
    assert config.retry_backoff_seconds == 1.0
    assert config.lang_currency == "en/USD"


def test_settings_log_verbosity_is_restricted(monkeypatch) -> None:
    monkeypatch.setenv("LOG_VERBOSITY", "EXTRAHIGH")
    get_settings.cache_clear()
    try:
        assert get_settings().log_verbosity == "extrahigh"
        monkeypatch.setenv("LOG_VERBOSITY", "chatty")
        get_settings.cache_clear()
        assert get_settings().log_verbosity == "medium"
    finally:
        get_settings.cache_clear()


def test_source_aliases_and_default() -> None:
    assert Source.parse("wholesale") == Source.MARKETPLACE_A
    assert Source.parse("RETAIL") == Source.MARKETPLACE_B
    assert Source.parse("chinese") == Source.CHINESE
    assert Source.parse("unknown-market") == Source.MARKETPLACE_A
    assert Source.parse(None) == Source.MARKETPLACE_A
    assert Source.LOCAL.is_merchant and not Source.MARKETPLACE_B.is_merchant


def test_money_helpers() -> None:
    assert minor_to_major(2599) == Decimal("25.99")
    assert round_half_up(Decimal("234.5")) == 235
    assert round_half_up(Decimal("2.4999")) == 2
    assert format_decimal(Decimal("12.50")) == "12.5"
    assert format_decimal(Decimal("100")) == "100"
    assert composite_key("Red", None) == "Red_"
    assert composite_key("Red", "M") == "Red_M"
