"""
Unit Tests for Static Settings and Source Metrics
=================================================

Purpose
-------
Test environment-driven settings parsing and the per-source metrics that
feed health snapshots.

Test Coverage
-------------
- `_safe_int`, `_safe_bool`, `_safe_str` parsing, bounds and fallbacks
- `Config.load()` and `reload_safe_configs()`
- ConfigMetrics counters and snapshots

Testing Strategy
----------------
- Environment manipulated through `monkeypatch`; settings reloaded after
- AAA pattern (Arrange, Act, Assert)
"""

import pytest

from docconf.core.config import Config, ConfigMetrics, Environment, get_health_snapshot


@pytest.fixture
def reload_config(monkeypatch):
    """Reload settings after the test so environment changes do not leak."""
    yield monkeypatch
    monkeypatch.undo()
    Config.load()


@pytest.mark.unit
class TestSettingsParsing:
    """Test typed environment parsing."""

    def test_safe_int_bounds(self, monkeypatch):
        """Test that out-of-range and invalid values fall back to the default."""
        # Arrange
        monkeypatch.setenv("DOCCONF_TEST_INT", "500")

        # Act
        too_big = Config._safe_int("DOCCONF_TEST_INT", 5, min_val=0, max_val=300)
        monkeypatch.setenv("DOCCONF_TEST_INT", "abc")
        invalid = Config._safe_int("DOCCONF_TEST_INT", 5)
        monkeypatch.setenv("DOCCONF_TEST_INT", "42")
        valid = Config._safe_int("DOCCONF_TEST_INT", 5)

        # Assert
        assert too_big == 5
        assert invalid == 5
        assert valid == 42
        assert "DOCCONF_TEST_INT" in Config.get_metrics().validation_errors

    @pytest.mark.parametrize("raw,expected", [
        ("true", True), ("ON", True), ("0", False), ("no", False), ("maybe", None),
    ])
    def test_safe_bool(self, monkeypatch, raw, expected):
        """Test boolean spellings and invalid values."""
        # Arrange
        monkeypatch.setenv("DOCCONF_TEST_BOOL", raw)

        # Act & Assert
        assert Config._safe_bool("DOCCONF_TEST_BOOL", None) is expected

    def test_safe_str_choices(self, monkeypatch):
        """Test that values outside the allowed choices are rejected."""
        # Arrange
        monkeypatch.setenv("DOCCONF_TEST_STR", "memcached")

        # Act
        value = Config._safe_str("DOCCONF_TEST_STR", "memory", choices=("memory", "redis"))

        # Assert
        assert value == "memory"

    def test_unknown_environment_defaults_to_development(self):
        """Test Environment parsing."""
        # Act & Assert
        assert Environment.from_string("Production") is Environment.PRODUCTION
        assert Environment.from_string("moon") is Environment.DEVELOPMENT


@pytest.mark.unit
class TestSettingsLoading:
    """Test loading and reloading."""

    def test_load_reads_environment(self, reload_config):
        """Test that load() picks up DOCCONF_* variables."""
        # Arrange
        reload_config.setenv("DOCCONF_CACHE_BACKEND", "REDIS")
        reload_config.setenv("DOCCONF_CACHE_NAMESPACE", "wiki-farm")
        reload_config.setenv("DOCCONF_LISTENER_TIMEOUT_SECONDS", "12")

        # Act
        Config.load()

        # Assert
        assert Config.CACHE_BACKEND == "redis"
        assert Config.CACHE_NAMESPACE == "wiki-farm"
        assert Config.LISTENER_TIMEOUT_SECONDS == 12
        assert Config.is_testing() is True

    def test_reload_safe_configs(self, reload_config):
        """Test that only safe settings are reloaded."""
        # Arrange
        reload_config.setenv("DOCCONF_LISTENER_TIMEOUT_SECONDS", "9")
        reload_config.setenv("DOCCONF_CACHE_BACKEND", "redis")

        # Act
        Config.reload_safe_configs()

        # Assert
        assert Config.LISTENER_TIMEOUT_SECONDS == 9
        assert Config.CACHE_BACKEND == "memory"

    def test_config_summary_hides_redis_url(self):
        """Test that the summary is safe to log."""
        # Act
        summary = Config.get_config_summary()

        # Assert
        assert summary["environment"] == "testing"
        assert summary["redis_url_scheme"] == "redis"
        assert "redis_url" not in summary


@pytest.mark.unit
class TestConfigMetrics:
    """Test per-source counters and health."""

    def test_hit_rate_and_errors(self):
        """Test derived metrics."""
        # Arrange
        metrics = ConfigMetrics()

        # Act
        metrics.record_lookup(1.0, hit=True)
        metrics.record_lookup(3.0, hit=False)
        metrics.record_lookup(2.0, hit=True)
        metrics.record_conversion_error()
        metrics.record_store_error()

        # Assert
        assert metrics.get_cache_hit_rate() == pytest.approx(66.666, rel=1e-3)
        assert metrics.get_avg_lookup_time_ms() == pytest.approx(2.0)
        assert metrics.errors == 2

    def test_reset(self):
        """Test that reset zeroes every counter."""
        # Arrange
        metrics = ConfigMetrics()
        metrics.record_lookup(1.0, hit=True)
        metrics.record_invalidation()

        # Act
        metrics.reset()

        # Assert
        assert metrics.to_dict() == ConfigMetrics().to_dict()

    @pytest.mark.parametrize("initialized,subscribed,errors,status", [
        (True, True, 0, "healthy"),
        (True, False, 0, "degraded"),
        (True, True, 20, "degraded"),
        (True, True, 60, "unhealthy"),
        (False, False, 0, "not_initialized"),
    ])
    def test_health_status(self, initialized, subscribed, errors, status):
        """Test health status derivation."""
        # Act
        health = get_health_snapshot(
            cache_id="configuration.document.wiki",
            initialized=initialized,
            subscribed=subscribed,
            errors=errors,
            invalidations=0,
        )

        # Assert
        assert health["status"] == status
