"""Tests for the radiance integrator and pixel sampler.

This module tests the core path tracing functionality including:
- Render target setup and management
- Background gradient
- Radiance estimation for misses, absorption and the depth cutoff
- Per-pixel sampling, reproducibility and quantization

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run, so module-level
imports of modules containing ti.field() declarations would fail.
"""

import numpy as np
import pytest
import taichi as ti


def _trace(origin, direction, depth=0, max_depth=50, seed=1):
    """Run radiance() for one ray and return the color as a numpy array."""
    from pathtracer.core.integrator import radiance, vec3

    result = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel(
        ox: ti.f32, oy: ti.f32, oz: ti.f32, dx: ti.f32, dy: ti.f32, dz: ti.f32,
        d: ti.i32, md: ti.i32, s: ti.u32,
    ):
        for _ in range(1):
            color, state = radiance(vec3(ox, oy, oz), vec3(dx, dy, dz), d, md, s)
            result[None] = color

    test_kernel(*origin, *direction, depth, max_depth, seed)
    return result[None].to_numpy()


class TestRenderTargetSetup:
    """Test render target initialization and management."""

    def test_setup_render_target(self):
        """Test dimensions are recorded and buffers cleared."""
        from pathtracer.core.integrator import (
            get_image,
            get_image_dimensions,
            get_total_samples,
            setup_render_target,
        )
        from pathtracer.core.settings import RenderSettings

        setup_render_target(RenderSettings(width=64, height=48))

        assert get_image_dimensions() == (64, 48)
        assert get_image() is not None
        assert get_total_samples() == 0

    def test_setup_render_target_clears_existing(self, fixed_camera):
        """Test a new setup discards previously accumulated samples."""
        from pathtracer.core.integrator import get_total_samples, render_image, setup_render_target
        from pathtracer.core.settings import RenderSettings

        setup_render_target(RenderSettings(width=8, height=4))
        render_image(2)
        assert get_total_samples() == 2

        setup_render_target(RenderSettings(width=8, height=4))
        assert get_total_samples() == 0

    def test_uninitialized_render_target_raises(self):
        """Test rendering before setup raises RuntimeError."""
        from pathtracer.core import integrator

        integrator._render_target_initialized[None] = 0
        with pytest.raises(RuntimeError, match="not set up"):
            integrator.render_image(1)
        with pytest.raises(RuntimeError, match="not set up"):
            integrator.render_sample(0, 0)


class TestBackground:
    """Tests for the sky gradient."""

    @pytest.mark.parametrize(
        "direction, expected",
        [
            ((0.0, 1.0, 0.0), (0.5, 0.7, 1.0)),
            ((0.0, -1.0, 0.0), (1.0, 1.0, 1.0)),
            ((1.0, 0.0, 0.0), (0.75, 0.85, 1.0)),
            ((0.0, 5.0, 0.0), (0.5, 0.7, 1.0)),
        ],
    )
    def test_background_gradient(self, direction, expected):
        """Test the blend from white at the bottom to blue at the top."""
        from pathtracer.core.integrator import background, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(x: ti.f32, y: ti.f32, z: ti.f32):
            result[None] = background(vec3(x, y, z))

        test_kernel(*direction)
        assert result[None].to_numpy() == pytest.approx(expected, abs=1e-6)


class TestRadiance:
    """Tests for the radiance estimate of single rays."""

    def test_miss_returns_background(self):
        """Test a ray in an empty scene returns the sky color."""
        color = _trace((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
        assert color == pytest.approx([0.75, 0.85, 1.0], abs=1e-6)

    def test_miss_at_depth_limit_still_returns_background(self):
        """Test the depth cutoff only applies to surface hits."""
        color = _trace((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), depth=50, max_depth=50)
        assert color == pytest.approx([0.5, 0.7, 1.0], abs=1e-6)

    def test_hit_at_depth_limit_is_black(self):
        """Test a surface hit at depth >= max_depth contributes nothing."""
        from pathtracer.materials import Lambertian
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere((0.0, 0.0, -1.0), 0.5, Lambertian(albedo=(1.0, 1.0, 1.0)))

        color = _trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), depth=50, max_depth=50)
        assert color == pytest.approx([0.0, 0.0, 0.0])

    def test_enclosed_path_is_cut_off(self):
        """Test a path that can never escape ends black at the depth limit."""
        from pathtracer.materials import Lambertian
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        # Negative radius: normals point inward, so diffuse bounces stay inside
        scene.add_sphere((0.0, 0.0, 0.0), -10.0, Lambertian(albedo=(1.0, 1.0, 1.0)))

        for seed in range(1, 6):
            color = _trace((0.0, 0.0, 0.0), (0.3, 0.2, -1.0), seed=seed)
            assert color == pytest.approx([0.0, 0.0, 0.0])

    def test_mirror_reflects_sky(self):
        """Test a perfect mirror returns albedo times the reflected sky."""
        from pathtracer.materials import Metal
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere((0.0, 0.0, -1.0), 0.5, Metal(albedo=(0.5, 0.5, 0.5), fuzz=0.0))

        color = _trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        # Reflected straight back along +z, where the sky is (0.75, 0.85, 1.0)
        assert color == pytest.approx([0.375, 0.425, 0.5], abs=1e-5)

    def test_absorbed_ray_is_black(self):
        """Test a metal reflection into the surface yields black."""
        from pathtracer.materials import Metal
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere((0.0, 0.0, -1.0), 0.5, Metal(albedo=(0.9, 0.9, 0.9), fuzz=0.0))

        # From inside the sphere the mirror direction points against the normal
        color = _trace((0.0, 0.0, -1.0), (0.0, 0.0, -1.0))
        assert color == pytest.approx([0.0, 0.0, 0.0])

    def test_diffuse_hit_is_darker_than_sky(self):
        """Test a diffuse bounce attenuates the light reaching the camera."""
        from pathtracer.scene.presets import two_spheres

        two_spheres()
        colors = np.array([_trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), seed=s) for s in range(1, 33)])
        assert (colors >= 0.0).all()
        assert (colors <= 1.0).all()
        assert colors.mean(axis=0)[2] < 1.0

    def test_same_state_same_result(self):
        """Test radiance is a pure function of its inputs and random state."""
        from pathtracer.scene.presets import three_materials

        three_materials()
        a = _trace((0.0, 0.0, 0.0), (-0.9, 0.1, -1.0), seed=77)
        b = _trace((0.0, 0.0, 0.0), (-0.9, 0.1, -1.0), seed=77)
        np.testing.assert_array_equal(a, b)


class TestRenderImage:
    """Tests for full-image rendering."""

    def test_render_sample_returns_color(self, fixed_camera):
        """Test rendering one sample of one pixel."""
        from pathtracer.core.integrator import render_sample, setup_render_target
        from pathtracer.core.settings import RenderSettings

        setup_render_target(RenderSettings(width=20, height=10))
        r, g, b = render_sample(10, 9)
        # Empty scene: the top row sees the blue end of the sky
        assert 0.5 <= r <= 1.0
        assert b == pytest.approx(1.0, abs=1e-6)

    def test_sample_count_increments(self, fixed_camera):
        """Test each render_image sample adds to every pixel."""
        from pathtracer.core.integrator import get_sample_count, get_total_samples, render_image, setup_render_target
        from pathtracer.core.settings import RenderSettings

        setup_render_target(RenderSettings(width=6, height=3))
        render_image(3)
        assert get_total_samples() == 3
        counts = get_sample_count().to_numpy()[:6, :3]
        assert (counts == 3).all()

    def test_render_is_reproducible(self):
        """Test equal settings and seed give identical images."""
        from pathtracer.camera.thin_lens import setup_camera
        from pathtracer.core.integrator import render
        from pathtracer.core.settings import RenderSettings
        from pathtracer.scene.presets import three_materials

        _, camera = three_materials(aspect_ratio=2.0)
        setup_camera(camera)
        settings = RenderSettings(width=16, height=8, samples_per_pixel=4, seed=5)

        first = render(settings)
        second = render(settings)
        np.testing.assert_array_equal(first, second)

    def test_seed_changes_image(self):
        """Test a different seed gives a different noise pattern."""
        from pathtracer.camera.thin_lens import setup_camera
        from pathtracer.core.integrator import render
        from pathtracer.core.settings import RenderSettings
        from pathtracer.scene.presets import three_materials

        _, camera = three_materials(aspect_ratio=2.0)
        setup_camera(camera)

        a = render(RenderSettings(width=16, height=8, samples_per_pixel=2, seed=1))
        b = render(RenderSettings(width=16, height=8, samples_per_pixel=2, seed=2))
        assert not np.array_equal(a, b)

    def test_render_two_by_one(self):
        """Test the smallest end-to-end render produces two valid pixels."""
        from pathtracer.core.integrator import render
        from pathtracer.core.settings import RenderSettings
        from pathtracer.scene.presets import two_spheres

        _, camera = two_spheres()
        image = render(RenderSettings(width=2, height=1, samples_per_pixel=1), camera)
        assert image.shape == (1, 2, 3)
        assert image.dtype == np.uint8

    def test_no_nan_or_negative_in_image(self):
        """Test accumulated linear colors stay finite and non-negative."""
        from pathtracer.camera.thin_lens import setup_camera
        from pathtracer.core.integrator import get_normalized_image_numpy, render_image, setup_render_target
        from pathtracer.core.settings import RenderSettings
        from pathtracer.scene.presets import random_spheres

        _, camera = random_spheres(seed=3, aspect_ratio=2.0)
        setup_camera(camera)
        setup_render_target(RenderSettings(width=20, height=10))
        render_image(2)

        image = get_normalized_image_numpy()
        assert image.shape == (10, 20, 3)
        assert np.isfinite(image).all()
        assert (image >= 0.0).all()
        assert (image <= 1.0 + 1e-6).all()

    def test_image_top_row_first(self, fixed_camera):
        """Test the numpy image puts the top scanline in row 0."""
        from pathtracer.core.integrator import get_normalized_image_numpy, render_image, setup_render_target
        from pathtracer.core.settings import RenderSettings

        setup_render_target(RenderSettings(width=4, height=8))
        render_image(1)
        image = get_normalized_image_numpy()
        # Sky is bluer (less red) toward the top
        assert image[0, :, 0].mean() < image[-1, :, 0].mean()


class TestResolveRgb8:
    """Tests for gamma correction and quantization."""

    def test_gamma_and_quantization(self):
        """Test sqrt gamma followed by truncation of 255.99 x value."""
        from pathtracer.core.integrator import resolve_rgb8

        image = np.array([[[0.0, 0.25, 1.0]]], dtype=np.float32)
        assert resolve_rgb8(image).tolist() == [[[0, 127, 255]]]

    def test_out_of_range_clamped(self):
        """Test values above 1, negatives and NaN stay within [0, 255]."""
        from pathtracer.core.integrator import resolve_rgb8

        image = np.array([[[4.0, -1.0, np.nan]]], dtype=np.float32)
        assert resolve_rgb8(image).tolist() == [[[255, 0, 0]]]

    def test_output_shape_and_type(self):
        """Test the output keeps the shape and is uint8."""
        from pathtracer.core.integrator import resolve_rgb8

        out = resolve_rgb8(np.full((3, 5, 3), 0.5, dtype=np.float32))
        assert out.shape == (3, 5, 3)
        assert out.dtype == np.uint8
        # sqrt(0.5) * 255.99 = 181.01...
        assert (out == 181).all()
