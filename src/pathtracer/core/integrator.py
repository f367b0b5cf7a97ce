"""Radiance integrator and pixel sampler.

This module implements the rendering kernels: a depth-limited Monte Carlo
estimate of the light arriving along a ray, and the per-pixel loop that
averages jittered camera rays into an image.

The radiance estimate follows a path through the scene. Each hit scatters
according to the sphere's material and multiplies the path's attenuation;
an absorbed ray yields black, a ray that escapes the scene picks up the sky
gradient, and a path that reaches the depth limit is cut off to black.

Each pixel-sample seeds its own random stream from (seed, pixel, sample), so
images are reproducible and pixels can be computed in any order.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>> from pathtracer.core.integrator import (
    ...     get_normalized_image_numpy, render_image, resolve_rgb8, setup_render_target
    ... )
    >>> from pathtracer.core.settings import RenderSettings
    >>> from pathtracer.scene.presets import two_spheres
    >>>
    >>> scene, camera = two_spheres()
    >>> setup_camera(camera)
    >>> setup_render_target(RenderSettings(width=200, height=100, samples_per_pixel=10))
    >>> render_image(num_samples=10)
    >>> pixels = resolve_rgb8(get_normalized_image_numpy())
"""

import logging

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import Camera, get_ray_lens, setup_camera
from pathtracer.core.ray import normalize
from pathtracer.core.rng import random_f32, seed_state
from pathtracer.core.settings import (
    DEFAULT_MAX_DEPTH,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    RenderSettings,
)
from pathtracer.materials.material import scatter_material
from pathtracer.scene.intersection import get_sphere_material, intersect_scene

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Maximum number of scattering events along a path
MAX_DEPTH = DEFAULT_MAX_DEPTH

# t range for scene intersection; t_min skips hits on the surface a ray starts from
T_MIN = 0.001
T_MAX = tm.inf

# Sky gradient endpoints
SKY_WHITE = vec3(1.0, 1.0, 1.0)
SKY_BLUE = vec3(0.5, 0.7, 1.0)

# Scale applied after gamma correction before truncating to 8 bits
_QUANTIZE_SCALE = 255.99

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Image dimensions and render parameters (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())
_max_depth = ti.field(dtype=ti.i32, shape=())
_seed = ti.field(dtype=ti.u32, shape=())

# Per-pixel color sums, indexed [column, row] with row 0 at the image bottom
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(settings: RenderSettings) -> None:
    """Initialize the render target for a render job.

    Sets the active image dimensions, depth limit and seed, and clears the
    buffers. The buffers are preallocated to MAX_IMAGE_WIDTH x
    MAX_IMAGE_HEIGHT to avoid Taichi kernel recompilation.

    Args:
        settings: The validated render parameters.
    """
    _image_width[None] = settings.width
    _image_height[None] = settings.height
    _max_depth[None] = settings.max_depth
    _seed[None] = settings.seed
    _render_target_initialized[None] = 1

    clear_render_target()
    logger.debug(
        "Render target %dx%d, max depth %d, seed %d",
        settings.width,
        settings.height,
        settings.max_depth,
        settings.seed,
    )


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_image() -> "ti.MatrixField":
    """Get the color sum buffer.

    Note: This returns the full preallocated buffer. Use get_image_dimensions()
    to determine the active region.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _color_buffer


def get_sample_count() -> "ti.ScalarField":
    """Get the sample count field.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _sample_count


# =============================================================================
# Radiance Estimation
# =============================================================================


@ti.func
def background(direction: vec3) -> vec3:
    """Sky color seen along a ray that escapes the scene.

    Blends white at the horizon-down end to light blue straight up:
    ``t = 0.5 (unit.y + 1); (1 - t) white + t blue``.

    Args:
        direction: The ray direction (any non-zero length).

    Returns:
        The background color.
    """
    unit_direction = normalize(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * SKY_WHITE + t * SKY_BLUE


@ti.func
def radiance(
    ray_origin: vec3,
    ray_direction: vec3,
    depth: ti.i32,
    max_depth: ti.i32,
    state: ti.u32,
):
    """Estimate the light arriving along a ray.

    Iterative form of the recursion
    ``color(ray, depth) = attenuation * color(scattered, depth + 1)``:
    the loop carries the product of attenuations and stops at the first miss
    (background), absorption (black) or when a surface is hit with
    depth >= max_depth (black).

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray.
        depth: Number of scattering events already on the path.
        max_depth: Depth at which surface hits are cut off to black.
        state: The random state.

    Returns:
        A tuple (color, state).
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    origin = ray_origin
    direction = ray_direction
    current_depth = depth
    s = state

    # Active flag for path continuation; every iteration either ends the
    # path or advances current_depth toward max_depth
    active = 1

    for _ in range(max_depth + 1):
        if active == 1:
            hit_record = intersect_scene(origin, direction, T_MIN, T_MAX)

            if hit_record.hit == 0:
                color = throughput * background(direction)
                active = 0
            elif current_depth >= max_depth:
                active = 0
            else:
                material = get_sphere_material(hit_record.sphere_id)
                scattered_direction, attenuation, did_scatter, s = scatter_material(
                    material, direction, hit_record.normal, s
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = hit_record.point
                    direction = scattered_direction
                    current_depth += 1

    return color, s


@ti.func
def sample_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    sample_index: ti.i32,
    width: ti.i32,
    height: ti.i32,
) -> vec3:
    """Trace one jittered camera ray through a pixel.

    Args:
        pixel_i: Pixel column (0 = left).
        pixel_j: Pixel row (0 = bottom).
        sample_index: Index of the sample within the pixel.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        The radiance estimate for this sample.
    """
    pixel_index = pixel_j * width + pixel_i
    state = seed_state(
        _seed[None],
        ti.cast(pixel_index, ti.u32),
        ti.cast(sample_index, ti.u32),
    )

    jitter_s, state = random_f32(state)
    jitter_t, state = random_f32(state)
    s = (ti.cast(pixel_i, ti.f32) + jitter_s) / ti.cast(width, ti.f32)
    t = (ti.cast(pixel_j, ti.f32) + jitter_t) / ti.cast(height, ti.f32)

    origin, direction, state = get_ray_lens(s, t, state)
    color, state = radiance(origin, direction, 0, _max_depth[None], state)
    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32):
    """Add one sample to every pixel of the color buffer.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
    """
    for i, j in ti.ndrange(width, height):
        color = sample_pixel(i, j, _sample_count[i, j], width, height)

        # Degenerate geometry must not leak NaN/Inf into the image
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        _color_buffer[i, j] += color
        _sample_count[i, j] += 1


@ti.kernel
def _render_single_sample(
    pixel_i: ti.i32, pixel_j: ti.i32, sample_index: ti.i32, width: ti.i32, height: ti.i32
) -> vec3:
    """Trace a single sample of a specific pixel without accumulating it."""
    return sample_pixel(pixel_i, pixel_j, sample_index, width, height)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_sample(pixel_i: int, pixel_j: int, sample_index: int = 0) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel.

    This is a Python-callable function for testing. For production rendering,
    use render_image() which processes all pixels in parallel.

    Args:
        pixel_i: Pixel column (0 = left).
        pixel_j: Pixel row (0 = bottom).
        sample_index: Index of the sample; selects the random stream.

    Returns:
        Tuple of (R, G, B) linear color values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    color = _render_single_sample(pixel_i, pixel_j, sample_index, width, height)

    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(num_samples: int = 1) -> None:
    """Add the given number of samples to every pixel.

    Can be called repeatedly; samples accumulate in the color buffer and
    each call continues the per-pixel sample numbering.

    Args:
        num_samples: Number of samples to render per pixel.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    for _ in range(num_samples):
        _render_one_spp(width, height)


def get_total_samples() -> int:
    """Get the number of samples rendered per pixel so far.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_normalized_image_numpy() -> npt.NDArray[np.float32]:
    """Get the averaged linear image as a NumPy array.

    The array shape is (height, width, 3), row 0 being the top scanline.
    Pixels without samples are black.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    sums = _color_buffer.to_numpy()[:width, :height, :]
    counts = _sample_count.to_numpy()[:width, :height]

    image = sums / np.maximum(counts, 1)[:, :, np.newaxis]

    # Transpose from (width, height, 3) to (height, width, 3)
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (buffer rows run bottom-up, images top-down)
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)


def resolve_rgb8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Gamma-correct and quantize a linear image to 8 bits per channel.

    Applies gamma 2 (square root), scales by 255.99 and truncates. Channels
    outside [0, 1] are clamped to [0, 255] after scaling.

    Args:
        image: Linear image of shape (H, W, 3).

    Returns:
        uint8 image of shape (H, W, 3).
    """
    linear = np.nan_to_num(np.asarray(image, dtype=np.float64), nan=0.0, posinf=1.0, neginf=0.0)
    corrected = np.sqrt(np.maximum(linear, 0.0))
    scaled = np.floor(_QUANTIZE_SCALE * corrected)
    return np.clip(scaled, 0, 255).astype(np.uint8)


def render(settings: RenderSettings, camera: Camera | None = None) -> npt.NDArray[np.uint8]:
    """Render the current scene into an 8-bit image.

    The scene must already be populated (SceneManager or a preset).

    Args:
        settings: The render parameters.
        camera: Camera to upload before rendering. If None, the camera from
            the last setup_camera() call is used.

    Returns:
        uint8 image of shape (height, width, 3), top scanline first.
    """
    if camera is not None:
        setup_camera(camera)
    setup_render_target(settings)
    logger.info(
        "Rendering %dx%d at %d samples per pixel",
        settings.width,
        settings.height,
        settings.samples_per_pixel,
    )
    render_image(settings.samples_per_pixel)
    return resolve_rgb8(get_normalized_image_numpy())
