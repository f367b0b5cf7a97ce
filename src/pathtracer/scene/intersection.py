"""Scene-level ray intersection testing.

Spheres and the material each one owns are stored in Taichi fields
(structure-of-arrays). ``intersect_scene`` scans every sphere and keeps the
closest hit by narrowing t_max to the best t found so far, so a later sphere
only replaces the current hit when it is strictly closer. Among spheres
reporting exactly the same t, the first in scan order wins.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials import Lambertian
    >>> from pathtracer.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, -1.0), 0.5, Lambertian(albedo=(0.5, 0.5, 0.5)))
    0
    >>> # Use intersect_scene within a Taichi kernel
"""

from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

from pathtracer.geometry.sphere import Sphere, hit_sphere
from pathtracer.materials.material import MaterialData, MaterialValue, material_fields

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection.

    Attributes:
        hit: Whether the ray intersected any sphere (1 if hit, 0 if miss).
        t: The ray parameter of the closest intersection.
        point: The world-space intersection point.
        normal: The outward unit surface normal at the point.
        sphere_id: Index of the hit sphere, whose material governs
            scattering. -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    sphere_id: ti.i32


# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Per-sphere material storage; every sphere owns its own material row
sphere_material_kinds = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
sphere_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_fuzz = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_iors = ti.field(dtype=ti.f32, shape=MAX_SPHERES)


def clear_scene() -> None:
    """Remove all spheres from the scene.

    Resets the sphere count to zero. The field data is overwritten when new
    spheres are added.
    """
    num_spheres[None] = 0


def add_sphere(
    center: Sequence[float],
    radius: float,
    material: MaterialValue,
) -> int:
    """Add a sphere with its material to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius. Negative values flip the normal inward.
        material: The material governing scattering on this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        ValueError: If the radius is zero or the center is not 3D.
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    if len(center) != 3:
        raise ValueError(f"Sphere center must have 3 components, got {len(center)}")
    if radius == 0.0:
        raise ValueError("Sphere radius must be non-zero")
    kind, albedo, fuzz, ior = material_fields(material)

    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = [float(center[0]), float(center[1]), float(center[2])]
    sphere_radii[idx] = radius
    sphere_material_kinds[idx] = kind
    sphere_albedos[idx] = list(albedo)
    sphere_fuzz[idx] = fuzz
    sphere_iors[idx] = ior
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def get_sphere_material(sphere_id: ti.i32) -> MaterialData:
    """Get the material record of a sphere.

    Args:
        sphere_id: The index of the sphere.

    Returns:
        The MaterialData stored for the sphere.
    """
    return MaterialData(
        kind=sphere_material_kinds[sphere_id],
        albedo=sphere_albedos[sphere_id],
        fuzz=sphere_fuzz[sphere_id],
        ior=sphere_iors[sphere_id],
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        sphere_id=-1,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Find the closest intersection of a ray with the scene.

    Linear scan over all spheres; cost is proportional to the sphere count.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A SceneHitRecord for the hit with the smallest t in (t_min, t_max),
        or a miss record if no sphere is hit.
    """
    closest_t = t_max
    result = _make_miss_record()

    n_spheres = num_spheres[None]
    for i in range(n_spheres):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = SceneHitRecord(
                hit=1,
                t=rec.t,
                point=rec.point,
                normal=rec.normal,
                sphere_id=i,
            )

    return result
