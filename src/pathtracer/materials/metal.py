"""Metal (specular reflective) material implementation.

Metals mirror the normalized incoming direction about the normal:

    R = V - 2(V . N)N

and perturb the result by ``fuzz`` times a random point in the unit sphere.
When the perturbed direction ends up at or below the surface the ray is
absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.metal import Metal, scatter_metal
    >>> brushed = Metal(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal, state
    >>> # )
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import dot, normalize, random_in_unit_sphere, reflect

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class Metal:
    """Metal (specular reflective) material.

    Attributes:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: Surface roughness in [0, 1]. 0 = perfect mirror.

    Raises:
        ValueError: If any albedo component or the fuzz is outside [0, 1].
    """

    albedo: tuple[float, float, float]
    fuzz: float = 0.0

    def __post_init__(self) -> None:
        if len(self.albedo) != 3:
            raise ValueError(f"Albedo must have 3 components, got {len(self.albedo)}")
        for i, component in enumerate(self.albedo):
            if not 0.0 <= component <= 1.0:
                raise ValueError(
                    f"Albedo component {i} = {component} is outside [0, 1]. "
                    "This would violate energy conservation."
                )
        if not 0.0 <= self.fuzz <= 1.0:
            raise ValueError(
                f"Fuzz = {self.fuzz} is outside [0, 1]. "
                "Fuzz must be between 0 (perfect mirror) and 1 (maximum fuzz)."
            )
        object.__setattr__(self, "albedo", tuple(float(c) for c in self.albedo))
        object.__setattr__(self, "fuzz", float(self.fuzz))


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Compute the scattered direction for a metal surface.

    Args:
        albedo: The reflective color (RGB).
        fuzz: The surface roughness in [0, 1].
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal.
        state: The random state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, state) where:
        - scattered_direction: The fuzzed mirror direction (not normalized).
        - attenuation: The albedo.
        - did_scatter: 1 if the direction leaves the surface
          (scattered . normal > 0), 0 if the ray is absorbed.
        - state: The advanced random state.
    """
    reflected = reflect(normalize(incident_direction), normal)

    offset, s = random_in_unit_sphere(state)
    scattered_direction = reflected + fuzz * offset

    did_scatter = 1
    if dot(scattered_direction, normal) <= 0.0:
        did_scatter = 0

    return scattered_direction, albedo, did_scatter, s
