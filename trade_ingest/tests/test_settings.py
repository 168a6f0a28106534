"""Tests for environment-driven settings."""

from trade_ingest.settings import DEFAULT_MAX_UPLOAD_BYTES, ParserSettings, load_settings


def test_defaults_from_empty_env():
    assert load_settings({}) == ParserSettings()


def test_values_from_env():
    s = load_settings({
        "TRADE_INGEST_DEFAULT_TIMEZONE": " America/Chicago ",
        "TRADE_INGEST_LOG_LEVEL": "debug",
        "TRADE_INGEST_MAX_UPLOAD_BYTES": "2048",
        "TRADE_INGEST_CORS_ORIGINS": "https://a.example, https://b.example,",
    })
    assert s.default_timezone == "America/Chicago"
    assert s.log_level == "DEBUG"
    assert s.max_upload_bytes == 2048
    assert s.cors_origins == ("https://a.example", "https://b.example")


def test_bad_upload_limit_falls_back():
    """Non-integers and non-positive limits use the default."""
    assert load_settings({"TRADE_INGEST_MAX_UPLOAD_BYTES": "lots"}).max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES
    assert load_settings({"TRADE_INGEST_MAX_UPLOAD_BYTES": "-1"}).max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES


def test_blank_timezone_is_utc():
    assert load_settings({"TRADE_INGEST_DEFAULT_TIMEZONE": "  "}).default_timezone == "utc"
