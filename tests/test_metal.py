"""Unit tests for the Metal material."""

import numpy as np
import pytest
import taichi as ti


class TestMetalValue:
    """Tests for the Metal material value."""

    def test_defaults(self):
        """Test a metal without fuzz is a perfect mirror."""
        from pathtracer.materials import Metal

        mat = Metal(albedo=(0.8, 0.8, 0.8))
        assert mat.fuzz == 0.0

    @pytest.mark.parametrize("fuzz", [-0.1, 1.5])
    def test_fuzz_out_of_range(self, fuzz):
        """Test fuzz outside [0, 1] is a construction error."""
        from pathtracer.materials import Metal

        with pytest.raises(ValueError, match="Fuzz"):
            Metal(albedo=(0.8, 0.8, 0.8), fuzz=fuzz)

    @pytest.mark.parametrize("fuzz", [0.0, 1.0])
    def test_fuzz_bounds_accepted(self, fuzz):
        """Test the closed interval endpoints are valid."""
        from pathtracer.materials import Metal

        assert Metal(albedo=(0.8, 0.8, 0.8), fuzz=fuzz).fuzz == fuzz

    @pytest.mark.parametrize("albedo", [(0.8, 1.8, 0.8), (0.8, 0.8, float("nan"))])
    def test_albedo_out_of_range(self, albedo):
        """Test albedo components outside [0, 1] are rejected."""
        from pathtracer.materials import Metal

        with pytest.raises(ValueError, match="Albedo"):
            Metal(albedo=albedo)


class TestScatterMetal:
    """Tests for specular scattering."""

    def test_perfect_mirror(self):
        """Test a zero-fuzz metal reflects the normalized direction exactly."""
        from pathtracer.core.rng import seed_state
        from pathtracer.materials.metal import scatter_metal, vec3

        direction = ti.Vector.field(3, dtype=ti.f32, shape=())
        attenuation = ti.Vector.field(3, dtype=ti.f32, shape=())
        scattered = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                state = seed_state(ti.u32(0), ti.u32(0), ti.u32(0))
                d, a, ok, state = scatter_metal(
                    vec3(0.8, 0.6, 0.2), 0.0, vec3(3.0, -3.0, 0.0), vec3(0.0, 1.0, 0.0), state
                )
                direction[None] = d
                attenuation[None] = a
                scattered[None] = ok

        test_kernel()
        h = np.sqrt(0.5)
        assert scattered[None] == 1
        assert direction[None].to_numpy() == pytest.approx([h, h, 0.0], abs=1e-6)
        assert attenuation[None].to_numpy() == pytest.approx([0.8, 0.6, 0.2])

    def test_fuzzy_reflection_within_fuzz_ball(self):
        """Test fuzzed directions stay within fuzz of the mirror direction."""
        from pathtracer.core.rng import seed_state
        from pathtracer.materials.metal import scatter_metal, vec3

        n = 1000
        directions = ti.Vector.field(3, dtype=ti.f32, shape=n)
        scattered = ti.field(dtype=ti.i32, shape=n)
        dots = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for k in range(n):
                state = seed_state(ti.u32(2), ti.cast(k, ti.u32), ti.u32(0))
                normal = vec3(0.0, 1.0, 0.0)
                d, a, ok, state = scatter_metal(
                    vec3(0.9, 0.9, 0.9), 0.3, vec3(1.0, -1.0, 0.0), normal, state
                )
                directions[k] = d
                scattered[k] = ok
                dots[k] = d.dot(normal)

        test_kernel()
        h = np.sqrt(0.5)
        offsets = directions.to_numpy() - np.array([h, h, 0.0])
        assert ((offsets**2).sum(axis=1) < 0.09 + 1e-5).all()
        # Absorbed exactly when the direction does not leave the surface
        np.testing.assert_array_equal(scattered.to_numpy() == 1, dots.to_numpy() > 0.0)

    def test_grazing_fuzzy_reflection_absorbs_some_rays(self):
        """Test a grazing ray on a very fuzzy metal is sometimes absorbed."""
        from pathtracer.core.rng import seed_state
        from pathtracer.materials.metal import scatter_metal, vec3

        n = 1000
        scattered = ti.field(dtype=ti.i32, shape=n)
        dots = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for k in range(n):
                state = seed_state(ti.u32(4), ti.cast(k, ti.u32), ti.u32(0))
                normal = vec3(0.0, 1.0, 0.0)
                d, a, ok, state = scatter_metal(
                    vec3(0.9, 0.9, 0.9), 1.0, vec3(1.0, -0.05, 0.0), normal, state
                )
                scattered[k] = ok
                dots[k] = d.dot(normal)

        test_kernel()
        s = scattered.to_numpy()
        assert 0 < s.sum() < n
        assert (dots.to_numpy()[s == 0] <= 0.0).all()
