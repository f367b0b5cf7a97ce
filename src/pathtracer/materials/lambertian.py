"""Lambertian (ideal diffuse) material implementation.

A Lambertian surface scatters toward ``normal + p`` where p is a uniform
random point in the unit sphere, which concentrates scattered rays around the
normal. The attenuation is the albedo for every scattered ray.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.lambertian import Lambertian, scatter_lambertian
    >>> matte = Lambertian(albedo=(0.8, 0.3, 0.3))
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_lambertian(
    >>> #     albedo, normal, state
    >>> # )
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import near_zero, random_in_unit_sphere

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class Lambertian:
    """Lambertian (ideal diffuse) material.

    Attributes:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).

    Raises:
        ValueError: If any albedo component is outside [0, 1].
    """

    albedo: tuple[float, float, float]

    def __post_init__(self) -> None:
        if len(self.albedo) != 3:
            raise ValueError(f"Albedo must have 3 components, got {len(self.albedo)}")
        for i, component in enumerate(self.albedo):
            if not 0.0 <= component <= 1.0:
                raise ValueError(
                    f"Albedo component {i} = {component} is outside [0, 1]. "
                    "This would violate energy conservation."
                )
        object.__setattr__(self, "albedo", tuple(float(c) for c in self.albedo))


@ti.func
def scatter_lambertian(
    albedo: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Sample a diffuse scattering direction.

    The scattered ray starts at the hit point; only its direction is
    returned.

    Args:
        albedo: The diffuse reflectance color (RGB).
        normal: The unit surface normal at the hit point.
        state: The random state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, state) where:
        - scattered_direction: normal + random point in the unit sphere
          (not normalized).
        - attenuation: The albedo.
        - did_scatter: Always 1; diffuse surfaces never absorb the ray.
        - state: The advanced random state.
    """
    offset, s = random_in_unit_sphere(state)
    scattered_direction = normal + offset

    # The offset can cancel the normal almost exactly
    if near_zero(scattered_direction):
        scattered_direction = normal

    return scattered_direction, albedo, 1, s
