"""Image export utilities for rendered images.

Supported formats:
    - PPM, plain-text ``P3`` variant
    - PNG (8-bit via Pillow)

All functions take an 8-bit RGB image of shape (H, W, 3) whose first row is
the top scanline, as produced by ``resolve_rgb8``.

Example:
    >>> from pathtracer.preview.export import write_ppm
    >>> write_ppm(renderer.get_image_rgb8(), "image.ppm")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

# Maximum channel value written in the PPM header
PPM_MAX_VALUE = 255


def _check_rgb8(image: npt.NDArray[np.integer]) -> npt.NDArray[np.uint8]:
    """Validate an (H, W, 3) image with channels in [0, 255].

    Raises:
        ValueError: If the shape or value range is wrong.
    """
    array = np.asarray(image)
    if array.ndim != 3 or array.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {array.shape}")
    if array.size and (array.min() < 0 or array.max() > PPM_MAX_VALUE):
        raise ValueError("Image channels must lie in [0, 255]")
    return array.astype(np.uint8)


def format_ppm(image: npt.NDArray[np.integer]) -> str:
    """Encode an image as plain-text PPM.

    The output is the header ``P3``, ``<width> <height>``, ``255``, followed by
    one ``r g b`` line per pixel in row-major order from the top scanline.

    Args:
        image: 8-bit RGB image of shape (H, W, 3).

    Returns:
        The PPM document, ending with a newline.
    """
    pixels = _check_rgb8(image)
    height, width, _ = pixels.shape
    lines = ["P3", f"{width} {height}", str(PPM_MAX_VALUE)]
    lines.extend(f"{r} {g} {b}" for r, g, b in pixels.reshape(-1, 3).tolist())
    return "\n".join(lines) + "\n"


def write_ppm(image: npt.NDArray[np.integer], filepath: str | Path) -> Path:
    """Write an image as a plain-text PPM file.

    Args:
        image: 8-bit RGB image of shape (H, W, 3).
        filepath: Output file path.

    Returns:
        The path written.

    Raises:
        OSError: If the file cannot be created or written.
    """
    path = Path(filepath)
    path.write_text(format_ppm(image))
    logger.info("Wrote %s", path)
    return path


def save_png(image: npt.NDArray[np.integer], filepath: str | Path) -> Path:
    """Write an image as an 8-bit PNG file.

    Args:
        image: 8-bit RGB image of shape (H, W, 3).
        filepath: Output file path.

    Returns:
        The path written.

    Raises:
        OSError: If the file cannot be created or written.
    """
    path = Path(filepath)
    pil_image = PILImage.fromarray(_check_rgb8(image))
    pil_image.save(path, format="PNG")
    logger.info("Wrote %s", path)
    return path


def save_image(image: npt.NDArray[np.integer], filepath: str | Path) -> Path:
    """Write an image, choosing PPM or PNG from the file suffix.

    Raises:
        ValueError: If the suffix is neither .ppm nor .png.
        OSError: If the file cannot be created or written.
    """
    path = Path(filepath)
    suffix = path.suffix.lower()
    if suffix == ".ppm":
        return write_ppm(image, path)
    if suffix == ".png":
        return save_png(image, path)
    raise ValueError(f"Unsupported image format {suffix!r}; use .ppm or .png")
