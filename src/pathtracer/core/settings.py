"""Render parameters with construction-time validation.

Invalid parameters are configuration errors and are rejected here, before
any Taichi kernel runs.
"""

from dataclasses import dataclass

# Maximum supported image dimensions (render buffers are preallocated to this size)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Default recursion cutoff for the radiance integrator
DEFAULT_MAX_DEPTH = 50


@dataclass(frozen=True)
class RenderSettings:
    """Parameters of a render job.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of jittered camera rays averaged per pixel.
        max_depth: Number of scattering events after which a path is cut off
            and contributes black.
        seed: Seed of the per-pixel random streams. Renders with equal
            settings and seed are identical.

    Raises:
        ValueError: If any dimension, sample count or depth is not positive,
            the seed is negative, or the image exceeds the supported size.
    """

    width: int
    height: int
    samples_per_pixel: int = 100
    max_depth: int = DEFAULT_MAX_DEPTH
    seed: int = 0

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if self.samples_per_pixel <= 0:
            raise ValueError(
                f"Samples per pixel must be positive, got {self.samples_per_pixel}"
            )
        if self.max_depth <= 0:
            raise ValueError(f"Max depth must be positive, got {self.max_depth}")
        if not 0 <= self.seed < 2**32:
            raise ValueError(f"Seed must be in [0, 2^32), got {self.seed}")

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height
