"""Command-line entry point for rendering a scene to an image file.

Usage:
    pathtracer [options]

Options:
    --scene NAME        Preset scene: two-spheres, three-materials, random
                        (default: random)
    --scene-file PATH   Load spheres (and optionally a camera) from JSON
    --width WIDTH       Image width in pixels (default: 200)
    --height HEIGHT     Image height in pixels (default: 100)
    --samples SAMPLES   Number of samples per pixel (default: 100)
    --max-depth DEPTH   Maximum scattering events per path (default: 50)
    --seed SEED         Seed for the render and the random scene (default: 0)
    --output OUTPUT     Output file path, .ppm or .png (default: image.ppm)
    --batch-size SIZE   Samples per progress update (default: 10)
    --arch ARCH         Taichi backend: cpu or gpu (default: cpu)
    --quiet             Only log warnings and suppress progress output
    --verbose           Log debug messages

Example:
    pathtracer --scene three-materials --width 400 --height 200 --samples 50 --output out.png
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path

import taichi as ti

from pathtracer.core.settings import RenderSettings

logger = logging.getLogger(__name__)

_SUPPORTED_SUFFIXES = (".ppm", ".png")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="pathtracer",
        description="Render a scene of spheres with a Monte Carlo path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--scene",
        choices=["two-spheres", "three-materials", "random"],
        default=None,
        help="Preset scene (default: random)",
    )
    source.add_argument(
        "--scene-file",
        type=Path,
        default=None,
        help="JSON scene file written by SceneManager.save_json()",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=200,
        help="Image width in pixels (default: 200)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=100,
        help="Image height in pixels (default: 100)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Maximum scattering events per path (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for the render and the random scene (default: 0)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("image.ppm"),
        help="Output file path, .ppm or .png (default: image.ppm)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--arch",
        choices=["cpu", "gpu"],
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and suppress progress output",
    )
    verbosity.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug messages",
    )
    return parser


def configure_logging(quiet: bool = False, verbose: bool = False) -> None:
    """Configure the root logger for command-line use."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def settings_from_args(args: argparse.Namespace) -> RenderSettings:
    """Validate the arguments and build the render settings.

    Raises:
        ValueError: If a render parameter or the output suffix is invalid.
    """
    if args.output.suffix.lower() not in _SUPPORTED_SUFFIXES:
        raise ValueError(f"Unsupported output format {args.output.suffix!r}, use .ppm or .png")
    if args.batch_size < 1:
        raise ValueError(f"batch size must be positive, got {args.batch_size}")

    return RenderSettings(
        width=args.width,
        height=args.height,
        samples_per_pixel=args.samples,
        max_depth=args.max_depth,
        seed=args.seed,
    )


def load_scene(args: argparse.Namespace, aspect_ratio: float):
    """Populate the scene and return (SceneManager, Camera).

    A scene file may carry a "camera" object with Camera's fields; without
    one the fixed-viewport camera is used.

    Raises:
        OSError: If the scene file cannot be read.
        ValueError: If the scene file is invalid.
    """
    from pathtracer.camera.thin_lens import Camera
    from pathtracer.scene.manager import SceneManager
    from pathtracer.scene.presets import PRESETS, random_spheres

    if args.scene_file is None:
        scene_name = args.scene or "random"
        if scene_name == "random":
            return random_spheres(seed=args.seed, aspect_ratio=aspect_ratio)
        return PRESETS[scene_name](aspect_ratio=aspect_ratio)

    data = json.loads(args.scene_file.read_text())
    if not isinstance(data, dict):
        raise ValueError(f"Scene file {args.scene_file} does not contain a JSON object")

    scene = SceneManager()
    scene.from_dict(data)

    camera_data = data.get("camera")
    if camera_data is None:
        camera = Camera.fixed_viewport()
        camera.aspect_ratio = aspect_ratio
    else:
        try:
            camera = Camera(**camera_data)
        except TypeError as e:
            raise ValueError(f"Invalid camera in {args.scene_file}: {e}") from e
    return scene, camera


def render_to_file(args: argparse.Namespace, settings: RenderSettings) -> Path:
    """Render the selected scene and save it to args.output.

    Taichi must already be initialized.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports so the Taichi fields are created after ti.init()
    from pathtracer.camera.thin_lens import setup_camera
    from pathtracer.core.progressive import ProgressiveRenderer
    from pathtracer.preview.export import save_image

    scene, camera = load_scene(args, settings.aspect_ratio)
    setup_camera(camera)
    logger.info("Scene has %d spheres", scene.sphere_count)

    renderer = ProgressiveRenderer(settings)
    logger.info(
        "Rendering %dx%d at %d samples per pixel",
        settings.width,
        settings.height,
        settings.samples_per_pixel,
    )

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if args.quiet:
            return
        elapsed = time.time() - start_time
        progress_pct = (current / target) * 100 if target > 0 else 0
        samples_per_sec = current / elapsed if elapsed > 0 else 0
        print(
            f"\r  Progress: {current}/{target} samples "
            f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
            end="",
            flush=True,
        )

    renderer.render(batch_size=args.batch_size, callback=progress_callback)

    if not args.quiet:
        print()  # Newline after progress

    output_file = save_image(renderer.get_image_rgb8(), args.output)
    logger.info("Saved %s in %.2fs", output_file, time.time() - start_time)
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(quiet=args.quiet, verbose=args.verbose)

    try:
        settings = settings_from_args(args)

        arch = ti.gpu if args.arch == "gpu" else ti.cpu
        ti.init(arch=arch)

        render_to_file(args, settings)
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
