"""Core rendering module.

This module contains the fundamental building blocks for path tracing:

Components:
    ray: Ray data structure, vector utilities and random sampling
    rng: Explicit per-sample random source (integer hash + xorshift)
    settings: Validated render parameters
    integrator: Radiance estimation, render target and pixel sampling kernels
    progressive: Progressive sample accumulation wrapper

Every function that consumes randomness takes the random state as an
argument and returns the advanced state with its result, so each
pixel-sample owns an independent, reproducible stream.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    random_in_unit_disk,
    random_in_unit_sphere,
    ray_at,
    reflect,
    refract,
    schlick,
    vec3,
)
from .rng import random_f32, seed_state, wang_hash, xorshift32
from .settings import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH, RenderSettings

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from pathtracer.core.integrator or pathtracer.core.progressive.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick",
    "near_zero",
    "random_in_unit_sphere",
    "random_in_unit_disk",
    "wang_hash",
    "xorshift32",
    "random_f32",
    "seed_state",
    "RenderSettings",
    "MAX_IMAGE_WIDTH",
    "MAX_IMAGE_HEIGHT",
]
