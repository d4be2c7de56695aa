"""Tests for settings defaults and overrides."""

from pathlib import Path

from jeff.config import Settings


def test_defaults() -> None:
    s = Settings()
    assert s.max_tool_rounds == 3
    assert s.message_max_length == 1000
    assert s.history_max_messages == 10
    assert s.fingerprint_window == 3
    assert s.fingerprint_window < s.history_max_messages
    assert s.cache_ttl_seconds == 86400
    assert s.rate_limit_max_requests == 20
    assert s.rate_limit_window_seconds == 60


def test_overrides() -> None:
    s = Settings(max_tool_rounds=5, port=8080, config_dir=Path("/tmp/jeff"))
    assert s.max_tool_rounds == 5
    assert s.port == 8080
    assert s.config_dir == Path("/tmp/jeff")


def test_default_config_dir_ships_persona() -> None:
    s = Settings()
    assert (s.config_dir / "JEFF.md").exists()
    assert (s.config_dir / "navigrad.json").exists()
