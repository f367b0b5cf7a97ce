"""Scene manager coordinating spheres and their materials.

The SceneManager is the Python-side view of the scene: it validates and
uploads spheres to the Taichi field storage in ``scene.intersection`` and
keeps a list of what was added, which also backs scene serialization.

Scene documents are plain dicts (and JSON files) of the form::

    {
        "spheres": [
            {
                "center": [0.0, 0.0, -1.0],
                "radius": 0.5,
                "material": {"type": "lambertian", "albedo": [0.8, 0.3, 0.3]}
            }
        ]
    }

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials import Dielectric, Lambertian
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> scene.add_sphere((0, 0, -1), 0.5, Lambertian(albedo=(0.1, 0.2, 0.5)))
    0
    >>> scene.add_sphere((-1, 0, -1), 0.5, Dielectric(ior=1.5))
    1
"""

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pathtracer.materials.material import (
    MaterialValue,
    float_from_json,
    material_from_dict,
    material_to_dict,
    vec3_from_json,
)
from pathtracer.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage arrays.
        center: The center of the sphere.
        radius: The radius of the sphere.
        material: The material owned by the sphere.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material: MaterialValue


class SceneManager:
    """Builds the scene rendered by the integrator.

    Creating a SceneManager clears the field storage; there is one scene per
    Taichi runtime.

    Attributes:
        spheres: SphereInfo for every sphere in the scene, in scan order.

    Example:
        >>> scene = SceneManager()
        >>> scene.add_sphere((0, -100.5, -1), 100, Lambertian(albedo=(0.8, 0.8, 0.0)))
        0
        >>> scene.sphere_count
        1
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.spheres: list[SphereInfo] = []
        self.clear()

    def clear(self) -> None:
        """Remove every sphere from the scene."""
        clear_scene()
        self.spheres.clear()

    def add_sphere(
        self,
        center: Sequence[float],
        radius: float,
        material: MaterialValue,
    ) -> int:
        """Add a sphere that owns the given material.

        Args:
            center: The center of the sphere as (x, y, z).
            radius: The radius. Negative values model the inner wall of a
                hollow glass shell.
            material: A Lambertian, Metal or Dielectric value.

        Returns:
            The index of the sphere.

        Raises:
            ValueError: If the radius is zero or the center is not 3D.
            TypeError: If the material is not a supported material value.
            RuntimeError: If the maximum number of spheres is exceeded.
        """
        sphere_index = add_sphere(center, radius, material)
        info = SphereInfo(
            sphere_index=sphere_index,
            center=(float(center[0]), float(center[1]), float(center[2])),
            radius=float(radius),
            material=material,
        )
        self.spheres.append(info)
        logger.debug("Added sphere %d at %s r=%s (%r)", sphere_index, info.center, radius, material)
        return sphere_index

    @property
    def sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    @staticmethod
    def get_max_spheres() -> int:
        """Get the sphere capacity of the scene storage."""
        return MAX_SPHERES

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the scene as a JSON-compatible dict."""
        return {
            "spheres": [
                {
                    "center": list(info.center),
                    "radius": info.radius,
                    "material": material_to_dict(info.material),
                }
                for info in self.spheres
            ]
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Replace the scene with the contents of a scene dict.

        Args:
            data: A dict as produced by to_dict().

        Raises:
            ValueError: If a sphere or material entry is invalid.
        """
        spheres = data.get("spheres", [])
        if not isinstance(spheres, list):
            raise ValueError(f"spheres must be a list, got {spheres!r}")

        self.clear()
        for i, sphere_data in enumerate(spheres):
            if not isinstance(sphere_data, dict):
                raise ValueError(f"Sphere {i} must be an object, got {sphere_data!r}")
            if "material" not in sphere_data:
                raise ValueError(f"Sphere {i} has no material")
            center = vec3_from_json(sphere_data.get("center", [0.0, 0.0, 0.0]), f"Sphere {i} center")
            radius = float_from_json(sphere_data.get("radius", 1.0), f"Sphere {i} radius")
            material = material_from_dict(sphere_data["material"])
            self.add_sphere(center, radius, material)
        logger.info("Loaded scene with %d spheres", self.sphere_count)

    def save_json(self, path: str | Path) -> None:
        """Write the scene to a JSON file.

        Raises:
            OSError: If the file cannot be written.
        """
        Path(path).write_text(json.dumps(self.to_dict(), indent=2))

    @classmethod
    def load_json(cls, path: str | Path) -> "SceneManager":
        """Create a scene from a JSON file written by save_json().

        Raises:
            OSError: If the file cannot be read.
            ValueError: If the document is not a valid scene.
        """
        data = json.loads(Path(path).read_text())
        if not isinstance(data, dict):
            raise ValueError(f"Scene file {path} does not contain a JSON object")
        scene = cls()
        scene.from_dict(data)
        return scene

    def __repr__(self) -> str:
        return f"SceneManager(spheres={len(self.spheres)})"
