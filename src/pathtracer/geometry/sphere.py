"""Sphere primitive with ray-sphere intersection.

The intersection solves the quadratic obtained by substituting the ray into
the implicit sphere equation:

    |origin + t * direction - center|^2 = radius^2

    a = direction . direction
    b = 2 * direction . (origin - center)
    c = (origin - center) . (origin - center) - radius^2

A negative radius keeps the same surface but flips the normal inward, which
lets a second, smaller glass sphere model a hollow shell.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import dot

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Rays whose squared direction length is below this never hit anything
_MIN_DIRECTION_LENGTH_SQUARED = 1e-20


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere. Negative values turn the normal
            inward.
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: Whether the ray intersected the sphere (1 if hit, 0 if miss).
        t: The ray parameter at the intersection. Only valid if hit == 1.
        point: The world-space intersection point, origin + t * direction.
            Only valid if hit == 1.
        normal: The unit surface normal ``(point - center) / radius``. Points
            away from the center for a positive radius, regardless of which
            side the ray arrives from. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    Evaluates the smaller root first and falls back to the larger one, so a
    ray starting inside the sphere reports the exit point.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to test intersection against.
        t_min: Hits at or below this parameter are ignored (self-intersection).
        t_max: Hits at or beyond this parameter are ignored.

    Returns:
        A HitRecord. A tangent ray (zero discriminant) or a zero-length
        direction is reported as a miss.
    """
    oc = ray_origin - sphere.center

    a = dot(ray_direction, ray_direction)
    b = 2.0 * dot(ray_direction, oc)
    c = dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = b * b - 4.0 * a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)

    if discriminant > 0.0 and a > _MIN_DIRECTION_LENGTH_SQUARED:
        sqrt_d = ti.sqrt(discriminant)

        t = (-b - sqrt_d) / (2.0 * a)
        valid = t > t_min and t < t_max

        if not valid:
            t = (-b + sqrt_d) / (2.0 * a)
            valid = t > t_min and t < t_max

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction
            hit_normal = (hit_point - sphere.center) / sphere.radius

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
    )


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius within a Taichi kernel."""
    return Sphere(center=center, radius=radius)
