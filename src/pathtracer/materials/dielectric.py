"""Dielectric (glass/water) material implementation.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when no refracted direction exists

Whether the ray enters or leaves the medium is read from the sign of
``incident . normal``, since sphere normals always point outward. When
refraction is possible the material picks reflection with the Schlick
probability and refraction otherwise. Clear glass never absorbs, so the
attenuation is white.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.dielectric import Dielectric, scatter_dielectric
    >>> glass = Dielectric(ior=1.5)
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_dielectric(
    >>> #     ior, incident_dir, normal, state
    >>> # )
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathtracer.core.rng import random_f32
from pathtracer.core.ray import dot, length, reflect, refract, schlick

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class Dielectric:
    """Dielectric (glass/water) material.

    Attributes:
        ior: Index of refraction. Common values:
            - Water: 1.33
            - Glass: 1.5
            - Diamond: 2.4

    Raises:
        ValueError: If the index of refraction is not positive.
    """

    ior: float = 1.5

    def __post_init__(self) -> None:
        if not self.ior > 0.0:
            raise ValueError(f"Index of refraction = {self.ior} must be positive.")
        object.__setattr__(self, "ior", float(self.ior))


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Compute the scattered direction for a dielectric surface.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The outward unit surface normal.
        state: The random state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, state) where:
        - scattered_direction: The reflected or refracted direction.
        - attenuation: White (1, 1, 1).
        - did_scatter: Always 1; dielectrics never absorb.
        - state: The advanced random state.
    """
    attenuation = vec3(1.0, 1.0, 1.0)

    incident_length = length(incident_direction)
    d_dot_n = dot(incident_direction, normal)

    # Entering the medium (air to glass) unless the ray travels along the normal
    outward_normal = normal
    ni_over_nt = 1.0 / ior
    cosine = 0.0
    if d_dot_n > 0.0:
        # Leaving the medium (glass to air)
        outward_normal = -normal
        ni_over_nt = ior
        if incident_length > 0.0:
            cosine = ior * d_dot_n / incident_length
    elif incident_length > 0.0:
        cosine = -d_dot_n / incident_length

    did_refract, refracted = refract(incident_direction, outward_normal, ni_over_nt)

    scattered_direction = reflect(incident_direction, normal)
    s = state
    if did_refract == 1:
        u, s = random_f32(s)
        if u >= schlick(cosine, ior):
            scattered_direction = refracted

    return scattered_direction, attenuation, 1, s
