"""Tests for the progressive renderer."""

import numpy as np
import pytest


def _make_renderer(width=8, height=4, samples=4, seed=0):
    from pathtracer.camera.thin_lens import setup_camera
    from pathtracer.core.progressive import ProgressiveRenderer
    from pathtracer.core.settings import RenderSettings
    from pathtracer.scene.presets import two_spheres

    _, camera = two_spheres(aspect_ratio=width / height)
    setup_camera(camera)
    return ProgressiveRenderer(
        RenderSettings(width=width, height=height, samples_per_pixel=samples, seed=seed)
    )


class TestProgressiveRendererInit:
    """Tests for ProgressiveRenderer initialization."""

    def test_init_creates_render_target(self):
        """Test the renderer sets up a render target of its size."""
        renderer = _make_renderer(width=12, height=6)
        assert renderer.width == 12
        assert renderer.height == 6
        assert renderer.sample_count == 0

    def test_repr_shows_state(self):
        """Test repr includes the dimensions and sample count."""
        renderer = _make_renderer(width=12, height=6)
        renderer.render(2)
        assert repr(renderer) == "ProgressiveRenderer(width=12, height=6, samples=2)"


class TestProgressiveRendering:
    """Tests for sample accumulation."""

    def test_render_defaults_to_settings_samples(self):
        """Test render() without a count renders samples_per_pixel samples."""
        renderer = _make_renderer(samples=3)
        renderer.render()
        assert renderer.sample_count == 3

    @pytest.mark.parametrize("num_samples", [0, -2])
    def test_render_non_positive_does_nothing(self, num_samples):
        """Test zero or negative sample counts leave the buffer untouched."""
        renderer = _make_renderer()
        renderer.render(num_samples)
        assert renderer.sample_count == 0

    def test_multiple_render_calls_accumulate(self):
        """Test successive calls add to the sample count."""
        renderer = _make_renderer()
        renderer.render(2)
        renderer.render(3)
        assert renderer.sample_count == 5

    def test_reset_clears_samples(self):
        """Test reset() discards accumulated samples."""
        renderer = _make_renderer()
        renderer.render(2)
        renderer.reset()
        assert renderer.sample_count == 0
        assert (renderer.get_image_numpy() == 0.0).all()

    def test_callback_receives_progress(self):
        """Test the callback is called after each batch with running totals."""
        renderer = _make_renderer()
        calls = []
        renderer.render(5, batch_size=2, callback=lambda current, target: calls.append((current, target)))
        assert calls == [(2, 5), (4, 5), (5, 5)]

    def test_callback_with_existing_samples(self):
        """Test the target includes samples rendered before the call."""
        renderer = _make_renderer()
        renderer.render(2)
        calls = []
        renderer.render(2, batch_size=1, callback=lambda current, target: calls.append((current, target)))
        assert calls == [(3, 4), (4, 4)]

    def test_render_progressive_interruptible(self):
        """Test stopping the generator early keeps completed batches."""
        renderer = _make_renderer()
        for current, _ in renderer.render_progressive(10, batch_size=3):
            if current >= 3:
                break
        assert renderer.sample_count == 3

    def test_split_render_matches_single_render(self):
        """Test rendering in batches gives the same image as one call."""
        renderer = _make_renderer(seed=9)
        renderer.render(4)
        single = renderer.get_image_numpy()

        renderer.reset()
        renderer.render(1)
        renderer.render(3, batch_size=2)
        split = renderer.get_image_numpy()

        np.testing.assert_allclose(single, split, rtol=1e-6, atol=1e-7)


class TestProgressiveOutput:
    """Tests for image retrieval and saving."""

    def test_get_image_numpy_shape(self):
        """Test the linear image is (height, width, 3) float32."""
        renderer = _make_renderer(width=10, height=5)
        renderer.render(1)
        image = renderer.get_image_numpy()
        assert image.shape == (5, 10, 3)
        assert image.dtype == np.float32

    def test_get_image_rgb8(self):
        """Test the 8-bit image has the right shape and type."""
        renderer = _make_renderer(width=10, height=5)
        renderer.render(1)
        image = renderer.get_image_rgb8()
        assert image.shape == (5, 10, 3)
        assert image.dtype == np.uint8

    def test_save_ppm(self, tmp_path):
        """Test saving writes a PPM chosen by suffix."""
        renderer = _make_renderer(width=3, height=2)
        renderer.render(1)
        path = renderer.save(tmp_path / "out.ppm")
        lines = path.read_text().splitlines()
        assert lines[:3] == ["P3", "3 2", "255"]
        assert len(lines) == 3 + 6

    def test_save_unknown_suffix_raises(self, tmp_path):
        """Test an unsupported suffix raises ValueError."""
        renderer = _make_renderer(width=3, height=2)
        renderer.render(1)
        with pytest.raises(ValueError):
            renderer.save(tmp_path / "out.bmp")
