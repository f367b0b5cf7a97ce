"""Progressive renderer for iterative sample accumulation.

This module wraps the integrator to support:
- Progressive rendering that refines over time
- Batch rendering (multiple samples per pixel in one call)
- Progress callbacks for UI updates
- Easy reset and re-render functionality

Because every pixel-sample has its own random stream, rendering N samples in
one call or across several calls produces the same image.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>> from pathtracer.core.settings import RenderSettings
    >>> from pathtracer.scene.presets import three_materials
    >>>
    >>> scene, camera = three_materials(aspect_ratio=2.0)
    >>> setup_camera(camera)
    >>>
    >>> renderer = ProgressiveRenderer(RenderSettings(width=200, height=100))
    >>> renderer.render(100)  # Render 100 SPP
    >>> pixels = renderer.get_image_rgb8()
"""

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import numpy as np
import numpy.typing as npt

from pathtracer.core.integrator import (
    clear_render_target,
    get_image,
    get_normalized_image_numpy,
    get_total_samples,
    render_image,
    resolve_rgb8,
    setup_render_target,
)
from pathtracer.core.settings import RenderSettings

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer keeps its render settings and delegates to the global
    integrator buffers (which are Taichi fields).

    Attributes:
        settings: The render parameters.
    """

    def __init__(self, settings: RenderSettings) -> None:
        """Initialize the progressive renderer and clear the render target.

        Args:
            settings: The render parameters.
        """
        self.settings = settings
        setup_render_target(settings)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.settings.width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.settings.height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Clear the color buffer and sample count for a fresh render."""
        clear_render_target()

    def render(
        self,
        num_samples: int | None = None,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Number of samples to add. Defaults to the settings'
                samples_per_pixel.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int | None = None,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Stopping the iteration early leaves every pixel with the same number
        of completed samples.

        Args:
            num_samples: Number of samples to add. Defaults to the settings'
                samples_per_pixel.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).
        """
        if num_samples is None:
            num_samples = self.settings.samples_per_pixel
        if num_samples <= 0:
            return

        batch_size = max(1, batch_size)
        target_samples = self.sample_count + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch)
            remaining -= batch
            yield (self.sample_count, target_samples)

    def get_image(self) -> Any:
        """Get the raw Taichi color sum buffer field."""
        return get_image()

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the averaged linear image of shape (height, width, 3)."""
        return get_normalized_image_numpy()

    def get_image_rgb8(self) -> npt.NDArray[np.uint8]:
        """Get the gamma-corrected 8-bit image of shape (height, width, 3)."""
        return resolve_rgb8(self.get_image_numpy())

    def save(self, filepath: str | Path) -> Path:
        """Save the rendered image as PPM or PNG, chosen by file suffix.

        Raises:
            ValueError: If the suffix is not .ppm or .png.
            OSError: If the file cannot be written.
        """
        from pathtracer.preview.export import save_image

        return save_image(self.get_image_rgb8(), filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
