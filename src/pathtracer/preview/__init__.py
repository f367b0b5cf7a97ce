"""Preview module for image output.

Components:
    export: Plain-text PPM and PNG export of 8-bit RGB images

Example:
    >>> from pathtracer.preview import save_image
    >>> save_image(renderer.get_image_rgb8(), "output.png")
"""

from pathtracer.preview.export import (
    PPM_MAX_VALUE,
    format_ppm,
    save_image,
    save_png,
    write_ppm,
)

__all__ = [
    "PPM_MAX_VALUE",
    "format_ppm",
    "write_ppm",
    "save_png",
    "save_image",
]
