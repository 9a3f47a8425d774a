"""Tests for detector settings."""

from lapline.config import CornerThresholds, Settings, get_settings


class TestSettings:
    """Test cases for Settings and its environment overrides."""

    def teardown_method(self):
        get_settings.cache_clear()

    def test_defaults(self):
        settings = Settings()
        assert settings.corners.on_threshold == 0.006
        assert settings.corners.off_threshold == 0.004
        assert settings.events.dedup_window == 1.0
        assert settings.brakes.tolerance == 12.0
        assert settings.surface.window == 30

    def test_from_env_overrides(self, monkeypatch):
        monkeypatch.setenv("LAPLINE_CORNER_ON", "0.01")
        monkeypatch.setenv("LAPLINE_DEDUP_WINDOW_S", "2.5")
        monkeypatch.setenv("LAPLINE_BRAKE_TOLERANCE_M", "8")
        monkeypatch.setenv("LAPLINE_SURFACE_WINDOW", "10")

        settings = Settings.from_env()
        assert settings.corners.on_threshold == 0.01
        assert settings.corners.off_threshold == 0.004
        assert settings.events.dedup_window == 2.5
        assert settings.brakes.tolerance == 8.0
        assert settings.surface.window == 10

    def test_invalid_values_ignored(self, monkeypatch):
        monkeypatch.setenv("LAPLINE_DEDUP_WINDOW_S", "soon")
        monkeypatch.setenv("LAPLINE_SURFACE_WINDOW", "-4")

        settings = Settings.from_env()
        assert settings.events.dedup_window == 1.0
        assert settings.surface.window == 30

    def test_get_settings_cached(self, monkeypatch):
        get_settings.cache_clear()
        first = get_settings()
        monkeypatch.setenv("LAPLINE_DEDUP_WINDOW_S", "3")
        assert get_settings() is first

        # Clear config cache to pick up the new value
        get_settings.cache_clear()
        assert get_settings().events.dedup_window == 3.0

    def test_thresholds_partial_override(self):
        corners = CornerThresholds(min_angle=1.0)
        assert corners.min_angle == 1.0
        assert corners.merge_gap == 25.0
