"""Ready-made scenes for rendering.

Each preset clears the scene storage, populates it, and returns the scene
together with a camera framed for it.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.presets import random_spheres
    >>> scene, camera = random_spheres(seed=7, aspect_ratio=1.5)
    >>> scene.sphere_count > 4
    True
"""

import dataclasses
import logging

import numpy as np

from pathtracer.camera.thin_lens import Camera
from pathtracer.materials import Dielectric, Lambertian, Metal
from pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# =============================================================================
# Preset Constants
# =============================================================================

GROUND_CENTER = (0.0, -100.5, -1.0)
GROUND_RADIUS = 100.0

GLASS_IOR = 1.5

# Random scene layout: small spheres on a grid of cells, a, b in [-11, 11)
RANDOM_GRID_EXTENT = 11
RANDOM_SMALL_RADIUS = 0.2
RANDOM_LAMBERTIAN_PROBABILITY = 0.8
RANDOM_METAL_PROBABILITY = 0.15

# Small spheres closer than this to the big metal sphere are skipped
_FEATURE_CLEARANCE = 0.9


# =============================================================================
# Presets
# =============================================================================


def two_spheres(aspect_ratio: float = 2.0) -> tuple[SceneManager, Camera]:
    """A small diffuse sphere resting on a huge diffuse ground sphere.

    Both spheres use a mid-gray Lambertian. The camera is the fixed-viewport
    pinhole at the origin; with the default aspect ratio of 2 its viewport is
    exactly lower-left (-2, -1, -1), horizontal (4, 0, 0), vertical (0, 2, 0).

    Args:
        aspect_ratio: Width divided by height of the output image.

    Returns:
        A tuple of (SceneManager, Camera).
    """
    scene = SceneManager()
    gray = Lambertian(albedo=(0.5, 0.5, 0.5))
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, gray)
    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, gray)

    camera = dataclasses.replace(Camera.fixed_viewport(), aspect_ratio=aspect_ratio)
    return scene, camera


def three_materials(aspect_ratio: float = 2.0) -> tuple[SceneManager, Camera]:
    """Three spheres in a row showing each material on a yellowish ground.

    - Center: blue Lambertian
    - Right: fuzzy gold Metal
    - Left: hollow glass bubble, a Dielectric shell with a negative-radius
      inner sphere

    Args:
        aspect_ratio: Width divided by height of the output image.

    Returns:
        A tuple of (SceneManager, Camera).
    """
    scene = SceneManager()
    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, Lambertian(albedo=(0.8, 0.8, 0.0)))
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, Lambertian(albedo=(0.1, 0.2, 0.5)))
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, Metal(albedo=(0.8, 0.6, 0.2), fuzz=0.3))

    glass = Dielectric(ior=GLASS_IOR)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)

    camera = dataclasses.replace(Camera.fixed_viewport(), aspect_ratio=aspect_ratio)
    return scene, camera


def random_spheres(seed: int = 0, aspect_ratio: float = 1.5) -> tuple[SceneManager, Camera]:
    """The classic cover scene: many small random spheres and three large ones.

    Small spheres are placed on a jittered grid. Each picks Lambertian with
    probability 0.8, Metal with 0.15, and Dielectric otherwise. The same seed
    always produces the same scene.

    Args:
        seed: Seed for the scene layout. Independent of the render seed.
        aspect_ratio: Width divided by height of the output image.

    Returns:
        A tuple of (SceneManager, Camera). The camera looks from (13, 2, 3)
        at the origin with aperture 0.1 focused at distance 10.
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    scene.add_sphere((0.0, -1000.0, 0.0), 1000.0, Lambertian(albedo=(0.5, 0.5, 0.5)))

    feature_anchor = np.array([4.0, RANDOM_SMALL_RADIUS, 0.0])

    for a in range(-RANDOM_GRID_EXTENT, RANDOM_GRID_EXTENT):
        for b in range(-RANDOM_GRID_EXTENT, RANDOM_GRID_EXTENT):
            choose_mat = rng.random()
            center = np.array(
                [a + 0.9 * rng.random(), RANDOM_SMALL_RADIUS, b + 0.9 * rng.random()]
            )
            if np.linalg.norm(center - feature_anchor) <= _FEATURE_CLEARANCE:
                continue

            if choose_mat < RANDOM_LAMBERTIAN_PROBABILITY:
                albedo = rng.random(3) * rng.random(3)
                material = Lambertian(albedo=tuple(float(x) for x in albedo))
            elif choose_mat < RANDOM_LAMBERTIAN_PROBABILITY + RANDOM_METAL_PROBABILITY:
                albedo = 0.5 * (1.0 + rng.random(3))
                fuzz = 0.5 * rng.random()
                material = Metal(albedo=tuple(float(x) for x in albedo), fuzz=float(fuzz))
            else:
                material = Dielectric(ior=GLASS_IOR)

            scene.add_sphere(tuple(float(x) for x in center), RANDOM_SMALL_RADIUS, material)

    scene.add_sphere((0.0, 1.0, 0.0), 1.0, Dielectric(ior=GLASS_IOR))
    scene.add_sphere((-4.0, 1.0, 0.0), 1.0, Lambertian(albedo=(0.4, 0.2, 0.1)))
    scene.add_sphere((4.0, 1.0, 0.0), 1.0, Metal(albedo=(0.7, 0.6, 0.5), fuzz=0.0))

    logger.info("Generated random scene with %d spheres (seed=%d)", scene.sphere_count, seed)

    camera = Camera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )
    return scene, camera


PRESETS = {
    "two-spheres": two_spheres,
    "three-materials": three_materials,
    "random": random_spheres,
}
