"""Ray data structure and vector utilities for Taichi path tracing.

This module provides the Ray dataclass, the vector algebra used by the
renderer and the rejection samplers that draw random points in the unit
sphere and unit disk. All operations are Taichi functions meant to be
called from kernels.

Component-wise arithmetic and scalar scaling come from ``taichi.math.vec3``
itself; the helpers below add the products, lengths and optical relations.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.rng import random_f32

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Rejection sampling gives up after this many draws
MAX_REJECTION_ATTEMPTS = 100

# Lengths below this are treated as zero by normalize()
_MIN_LENGTH = 1e-12


@ti.dataclass
class Ray:
    """A parametric half-line ``origin + t * direction``.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length; code that depends on a unit direction normalizes it.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Negative values lie behind the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return a.x * b.x + a.y * b.y + a.z * b.z


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the right-handed cross product a x b."""
    return vec3(
        a.y * b.z - a.z * b.y,
        -(a.x * b.z - a.z * b.x),
        a.x * b.y - a.y * b.x,
    )


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return dot(v, v)


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v. A zero-length input
        returns the zero vector rather than NaN components.
    """
    result = vec3(0.0, 0.0, 0.0)
    len_v = length(v)
    if len_v > _MIN_LENGTH:
        result = v / len_v
    return result


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Optics
# =============================================================================


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Mirror an incident vector about a normal.

    Computes ``v - 2 (v . n) n``. The normal should be unit length; the
    incident vector keeps its length.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal.

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, ni_over_nt: ti.f32):
    """Refract a vector through a surface using Snell's law.

    The incident vector is normalized first. The normal must face the side
    the ray arrives from.

    Args:
        incident: The incoming direction vector.
        normal: The unit surface normal on the incident side.
        ni_over_nt: Ratio of the refractive index on the incident side to the
            index on the transmitted side.

    Returns:
        A tuple (did_refract, refracted). did_refract is 0 when the
        discriminant ``1 - ratio^2 (1 - cos^2)`` is not positive (total
        internal reflection); refracted is then the zero vector.
    """
    uv = normalize(incident)
    dt = dot(uv, normal)
    discriminant = 1.0 - ni_over_nt * ni_over_nt * (1.0 - dt * dt)
    did_refract = 0
    refracted = vec3(0.0, 0.0, 0.0)
    if discriminant > 0.0:
        did_refract = 1
        refracted = ni_over_nt * (uv - normal * dt) - normal * ti.sqrt(discriminant)
    return did_refract, refracted


@ti.func
def schlick(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Approximate Fresnel reflectance with Schlick's formula.

    ``r0 = ((1 - n) / (1 + n))^2; r0 + (1 - r0) (1 - cosine)^5``

    Args:
        cosine: Cosine of the incidence angle.
        ref_idx: Refractive index of the material.

    Returns:
        The probability of reflection.
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    x = 1.0 - cosine
    x2 = x * x
    return r0 + (1.0 - r0) * x2 * x2 * x


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Draw a uniformly distributed point inside the unit sphere.

    Rejection sampling: draw (x, y, z) in [-1, 1]^3 and accept when the
    squared length is below 1. Falls back to the origin if every one of
    MAX_REJECTION_ATTEMPTS draws is rejected.

    Args:
        state: The random state.

    Returns:
        A tuple (point, state).
    """
    p = vec3(0.0, 0.0, 0.0)
    candidate = vec3(0.0, 0.0, 0.0)
    found = 0
    s = state
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if found == 0:
            x, s = random_f32(s)
            y, s = random_f32(s)
            z, s = random_f32(s)
            candidate = 2.0 * vec3(x, y, z) - vec3(1.0, 1.0, 1.0)
            if length_squared(candidate) < 1.0:
                p = candidate
                found = 1
    return p, s


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Draw a uniformly distributed point inside the unit disk (z = 0).

    Rejection sampling: draw (x, y) in [-1, 1]^2 and accept when
    x^2 + y^2 < 1. Used for thin-lens depth of field.

    Args:
        state: The random state.

    Returns:
        A tuple (point, state) where point is (x, y, 0).
    """
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    s = state
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if found == 0:
            x, s = random_f32(s)
            y, s = random_f32(s)
            px = 2.0 * x - 1.0
            py = 2.0 * y - 1.0
            if px * px + py * py < 1.0:
                p = vec3(px, py, 0.0)
                found = 1
    return p, s
