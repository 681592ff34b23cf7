"""
Unit tests for core.config.
"""

import pytest
from pydantic import ValidationError

from motioncore.core.config import Settings, get_settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, settings):
        """Defaults describe the 800 x 450 canvas and the standard limits."""
        assert (settings.canvas_width, settings.canvas_height) == (800, 450)
        assert settings.max_catch_up_frames == 5
        assert settings.default_object_duration_ms == 20_000
        assert settings.generation_count == 6
        assert settings.uv_grid_size == 20

    def test_env_override(self, monkeypatch):
        """MOTIONCORE_ variables override defaults."""
        monkeypatch.setenv("MOTIONCORE_EXPORT_FPS", "30")
        monkeypatch.setenv("MOTIONCORE_GENERATION_FADE", "true")
        settings = Settings(_env_file=None)
        assert settings.export_fps == 30
        assert settings.generation_fade is True

    def test_generation_count_validated(self):
        """generation_count must be 4 or 6."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, generation_count=5)

    def test_get_settings_cached(self):
        """get_settings returns one shared instance."""
        assert get_settings() is get_settings()
