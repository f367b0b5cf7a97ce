"""Scene module for sphere storage and ray-scene queries.

Components:
    intersection: Taichi field storage and closest-hit queries over all spheres
    manager: Python-side scene builder with JSON serialization
    presets: Ready-made scenes paired with a framing camera

Sphere data lives in Structure-of-Arrays Taichi fields. Each sphere row also
carries its own material record, so a material is a value owned by the
sphere rather than a shared reference.
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    get_sphere_material,
    intersect_scene,
)
from .manager import SceneManager, SphereInfo
from .presets import PRESETS, random_spheres, three_materials, two_spheres

__all__ = [
    # Intersection
    "MAX_SPHERES",
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "get_sphere_material",
    "intersect_scene",
    # Manager
    "SceneManager",
    "SphereInfo",
    # Presets
    "PRESETS",
    "two_spheres",
    "three_materials",
    "random_spheres",
]
