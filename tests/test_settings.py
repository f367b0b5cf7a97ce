"""Tests for render settings validation."""

import pytest


class TestRenderSettings:
    """Tests for RenderSettings."""

    def test_defaults(self):
        """Test the default sample count, depth and seed."""
        from pathtracer.core.settings import RenderSettings

        settings = RenderSettings(width=200, height=100)
        assert settings.samples_per_pixel == 100
        assert settings.max_depth == 50
        assert settings.seed == 0
        assert settings.aspect_ratio == 2.0

    @pytest.mark.parametrize(
        "kwargs, match",
        [
            ({"width": 0, "height": 10}, "positive"),
            ({"width": 10, "height": -1}, "positive"),
            ({"width": 4096, "height": 10}, "exceed"),
            ({"width": 10, "height": 10, "samples_per_pixel": 0}, "Samples"),
            ({"width": 10, "height": 10, "max_depth": 0}, "depth"),
            ({"width": 10, "height": 10, "seed": -1}, "Seed"),
            ({"width": 10, "height": 10, "seed": 2**32}, "Seed"),
        ],
    )
    def test_invalid_settings(self, kwargs, match):
        """Test invalid parameters raise ValueError."""
        from pathtracer.core.settings import RenderSettings

        with pytest.raises(ValueError, match=match):
            RenderSettings(**kwargs)

    def test_largest_supported_image(self):
        """Test the maximum dimensions are accepted."""
        from pathtracer.core.settings import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH, RenderSettings

        settings = RenderSettings(width=MAX_IMAGE_WIDTH, height=MAX_IMAGE_HEIGHT)
        assert settings.aspect_ratio == 1.0
