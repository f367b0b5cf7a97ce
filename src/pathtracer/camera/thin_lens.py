"""Positionable thin-lens camera for primary ray generation.

The camera supports:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view in degrees
- Arbitrary aspect ratios
- Depth of field through a finite aperture focused at focus_dist

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport rectangle lies focus_dist along -w. Lens rays start at a random
point of the aperture disk and pass through the same viewport point as the
pinhole ray, so only geometry at the focus distance stays sharp.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import Camera, setup_camera, get_ray
    >>>
    >>> camera = Camera(
    ...     lookfrom=(13.0, 2.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=2.0,
    ...     aperture=0.1,
    ...     focus_dist=10.0,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through image center
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, make_ray, random_in_unit_disk, vec3

# Basis vectors shorter than this mean the view setup is degenerate
_DEGENERATE_LENGTH = 1e-8

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class Camera:
    """Configuration for a thin-lens camera.

    With aperture 0 the camera is a pinhole and focus_dist only scales the
    viewport, which does not change the rays' directions.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees.
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 disables depth of field.
        focus_dist: Distance from the camera to the plane in focus.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float
    aperture: float = 0.0
    focus_dist: float = 1.0

    @classmethod
    def fixed_viewport(cls) -> "Camera":
        """Create the basic pinhole camera at the origin looking down -z.

        The viewport spans lower-left corner (-2, -1, -1), horizontal (4, 0, 0)
        and vertical (0, 2, 0).
        """
        return cls(
            lookfrom=(0.0, 0.0, 0.0),
            lookat=(0.0, 0.0, -1.0),
            vup=(0.0, 1.0, 0.0),
            vfov=90.0,
            aspect_ratio=2.0,
        )

    @property
    def lens_radius(self) -> float:
        """Half the aperture."""
        return self.aperture / 2.0


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

# Camera origin (position)
_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport vectors for ray computation
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())  # Lower-left of viewport

_lens_radius = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def _validate_camera(camera: Camera) -> None:
    """Reject camera parameters that cannot produce a viewport.

    Raises:
        ValueError: On a non-positive or out-of-range parameter.
    """
    if not 0.0 < camera.vfov < 180.0:
        raise ValueError(f"Vertical field of view must be in (0, 180) degrees, got {camera.vfov}")
    if camera.aspect_ratio <= 0.0:
        raise ValueError(f"Aspect ratio must be positive, got {camera.aspect_ratio}")
    if camera.aperture < 0.0:
        raise ValueError(f"Aperture must be non-negative, got {camera.aperture}")
    if camera.focus_dist <= 0.0:
        raise ValueError(f"Focus distance must be positive, got {camera.focus_dist}")


def setup_camera(camera: Camera) -> None:
    """Initialize camera state from configuration.

    Computes the camera's orthonormal basis (u, v, w) and viewport geometry
    from the provided camera parameters. This must be called before rendering.

    Args:
        camera: Camera configuration with position, orientation, FOV and lens.

    Raises:
        ValueError: If the parameters are out of range, lookfrom equals
            lookat, or vup is parallel to the view direction.

    Note:
        This function writes to Taichi fields and should be called from
        Python (not from within a Taichi kernel).
    """
    _validate_camera(camera)

    theta = math.radians(camera.vfov)
    half_height = math.tan(theta / 2.0)
    half_width = camera.aspect_ratio * half_height

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    # w points from lookat toward lookfrom (backward)
    w = lookfrom - lookat
    w_len = np.linalg.norm(w)
    if w_len < _DEGENERATE_LENGTH:
        raise ValueError("Camera lookfrom and lookat must be different points")
    w = w / w_len

    # u points right (perpendicular to w and vup)
    u = np.cross(vup, w)
    u_len = np.linalg.norm(u)
    if u_len < _DEGENERATE_LENGTH:
        raise ValueError("Camera vup must not be parallel to the view direction")
    u = u / u_len

    # v points up in the camera's frame
    v = np.cross(w, u)

    focus = camera.focus_dist
    horizontal = 2.0 * half_width * focus * u
    vertical = 2.0 * half_height * focus * v
    lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - focus * w

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = camera.lens_radius


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def _viewport_point(s: ti.f32, t: ti.f32) -> vec3:
    """Map normalized viewport coordinates to a world-space point."""
    return _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]


@ti.func
def get_ray(s: ti.f32, t: ti.f32) -> Ray:
    """Generate a pinhole ray through normalized viewport coordinates (s, t).

    The coordinates are normalized:
    - s = 0: left edge, s = 1: right edge
    - t = 0: bottom edge, t = 1: top edge

    Args:
        s: Horizontal coordinate in [0, 1].
        t: Vertical coordinate in [0, 1].

    Returns:
        A Ray from the camera origin toward the viewport point. The direction
        is not normalized.
    """
    origin = _camera_origin[None]
    return make_ray(origin, _viewport_point(s, t) - origin)


@ti.func
def get_ray_lens(s: ti.f32, t: ti.f32, state: ti.u32):
    """Generate a thin-lens ray through normalized viewport coordinates (s, t).

    The origin is moved by a random point of the lens disk (radius
    aperture / 2) in the u-v plane, and the ray is aimed at the same viewport
    point as the pinhole ray.

    Args:
        s: Horizontal coordinate in [0, 1].
        t: Vertical coordinate in [0, 1].
        state: The random state.

    Returns:
        A tuple (origin, direction, state).
    """
    rd, next_state = random_in_unit_disk(state)
    rd = _lens_radius[None] * rd
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y

    origin = _camera_origin[None] + offset
    direction = _viewport_point(s, t) - origin
    return origin, direction, next_state


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, ...]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        vectors and the 1-tuple lens_radius.
    """

    def _as_tuple(field: "ti.MatrixField") -> tuple[float, float, float]:
        vec = field[None]
        return (float(vec[0]), float(vec[1]), float(vec[2]))

    return {
        "origin": _as_tuple(_camera_origin),
        "u": _as_tuple(_camera_u),
        "v": _as_tuple(_camera_v),
        "w": _as_tuple(_camera_w),
        "horizontal": _as_tuple(_viewport_horizontal),
        "vertical": _as_tuple(_viewport_vertical),
        "lower_left": _as_tuple(_lower_left_corner),
        "lens_radius": (float(_lens_radius[None]),),
    }
