"""Camera module for view and ray generation.

Components:
    thin_lens: Positionable camera with adjustable field of view and
        optional thin-lens depth of field

Ray generation uses normalized viewport coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .thin_lens import (
    Camera,
    get_camera_info,
    get_ray,
    get_ray_lens,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "get_ray",
    "get_ray_lens",
    "get_camera_info",
]
