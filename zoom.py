import logging
import os
import sys
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


# Import libraries for the reference render
import tensorflow as tf
import numpy as np

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")

# Imports for visualization
import PIL.Image
import imageio

from fixbrot import (
    ColourScheme,
    EIGHT_NEIGHBOURS,
    FixedPointError,
    Grid,
    RenderParameters,
    RenderResult,
    SIX_NEIGHBOURS,
    SamplingOverflow,
    ZoomPath,
    encode_result,
)
from fixbrot.complex import Complex
from fixbrot.fixed import Fix2x61
from fixbrot.reference import agreement, render_reference

gpus = tf.config.list_physical_devices('GPU')
DEVICE = '/GPU:0' if gpus else '/CPU:0'

from argparse import ArgumentParser

VALID_MODES = ("gif", "image", "frames")
NEIGHBOUR_SETS = {6: SIX_NEIGHBOURS, 8: EIGHT_NEIGHBOURS}


@dataclass
class OutputConfig:
    modes: tuple[str, ...]
    gif_path: Path | None
    image_path: Path | None
    frame_dir: Path | None
    image_format: str
    gif_frame_duration: float


def build_parser():
    parser = ArgumentParser()

    parser.add_argument('--power', type=int,
                        dest='power', help='the grid is 2**POWER samples on each side',
                        metavar='POWER', default=8)

    parser.add_argument('--centre-r', type=str,
                        dest='centre_r', help='real part of the centre of the sampled square, as a decimal',
                        metavar='CENTRE_R', default='0')

    parser.add_argument('--centre-i', type=str,
                        dest='centre_i', help='imaginary part of the centre of the sampled square, as a decimal',
                        metavar='CENTRE_I', default='0')

    parser.add_argument('--radius', type=str,
                        dest='radius', help='half the width of the sampled square, as a decimal',
                        metavar='RADIUS', default='2')

    parser.add_argument('--floor', type=int,
                        dest='floor', help='minimum number of iterations given to every candidate',
                        metavar='FLOOR', default=500)

    parser.add_argument('--workers', type=int,
                        dest='workers', help='threads used for the per-cell iteration phase',
                        metavar='WORKERS', default=1)

    parser.add_argument('--neighbours', type=int, choices=sorted(NEIGHBOUR_SETS), default=6,
                        help='neighbours marked as candidates around an escaped cell: 6 skips the vertical ones.')

    parser.add_argument('--zoom-path', type=str,
                        dest='zoom_path', help='comma separated quadrants to zoom into: 1=top left, 2=top right, 3=bottom left, 4=bottom right',
                        metavar='ZOOM_PATH', default='')

    parser.add_argument('--colours', type=str,
                        dest='colours', help='colour scheme: "grey", "fractint" or "log-grey"',
                        metavar='COLOURS', default='grey')

    parser.add_argument('--mode', dest='modes', action='append', metavar='MODE',
                        help='Output modes to generate. May be repeated. Choices: gif, image, frames.')

    parser.add_argument('--output', dest='output', type=str,
                        help='Destination for single-file outputs (gif/image) or container directory when both are requested.')

    parser.add_argument('--frame-dir', dest='frame_dir', type=str,
                        help='Directory in which to store the frame sequence.')

    parser.add_argument('--format', type=str,
                        dest='format', help='file format for image-based outputs. Can be any extension supported by Pillow. Default: "png".',
                        metavar='FORMAT', default='png')

    parser.add_argument('--gif-frame-duration', type=float, dest='gif_frame_duration', default=0.5,
                        help='Seconds each zoom step is shown in GIF output.')

    parser.add_argument('--compare-reference', dest='compare_reference', action='store_true',
                        help='Also render each frame in float64 with TensorFlow and report how many cells agree.')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including refinement rounds and TensorFlow diagnostics.')

    return parser


def resolve_output_config(opt, parser: ArgumentParser) -> OutputConfig:
    modes: list[str] = []
    for mode in opt.modes or ["image"]:
        if mode not in VALID_MODES:
            parser.error(f"Unknown output mode '{mode}'. Valid choices: {', '.join(sorted(VALID_MODES))}.")
        if mode not in modes:
            modes.append(mode)
    modes_tuple = tuple(modes)

    image_format = (getattr(opt, "format", "png") or "png").lower().lstrip(".")
    if not image_format:
        image_format = "png"

    frame_dir_path: Path | None = None
    if "frames" in modes_tuple:
        frame_dir_path = Path(opt.frame_dir or "./frames").expanduser().resolve()
    elif opt.frame_dir is not None:
        parser.error("--frame-dir is only valid with the frames mode.")

    if opt.gif_frame_duration <= 0:
        parser.error("--gif-frame-duration must be positive.")

    file_modes = [mode for mode in modes_tuple if mode in {"gif", "image"}]
    output_arg = getattr(opt, "output", None)
    gif_path: Path | None = None
    image_path: Path | None = None

    if not file_modes:
        if output_arg:
            parser.error("--output is only valid when gif or image modes are requested.")
    elif len(file_modes) == 1:
        mode = file_modes[0]
        if output_arg:
            output_path = Path(output_arg).expanduser()
            if str(output_arg).endswith(tuple(filter(None, {os.sep, os.altsep}))):
                parser.error("--output must be a file path when a single file-based mode is selected.")
            if output_path.exists() and output_path.is_dir():
                parser.error("--output must point to a file, not a directory, when a single file mode is active.")
            if mode == "gif":
                if output_path.suffix:
                    if output_path.suffix.lower() != ".gif":
                        parser.error("GIF outputs must end with .gif.")
                else:
                    output_path = output_path.with_suffix(".gif")
                gif_path = output_path.resolve()
            else:
                suffix = output_path.suffix
                expected_suffix = f".{image_format}"
                if suffix:
                    if suffix.lower() != expected_suffix.lower():
                        parser.error(f"--output extension {suffix} does not match --format {image_format}.")
                else:
                    output_path = output_path.with_suffix(expected_suffix)
                image_path = output_path.resolve()
        elif mode == "gif":
            gif_path = Path("zoom.gif").resolve()
        else:
            image_path = Path(f"frame_final.{image_format}").resolve()
    else:
        base_dir = Path(output_arg).expanduser() if output_arg else Path.cwd()
        if base_dir.exists() and not base_dir.is_dir():
            parser.error("--output must be a directory when both gif and image modes are active.")
        gif_path = (base_dir / "zoom.gif").resolve()
        image_path = (base_dir / f"frame_final.{image_format}").resolve()

    return OutputConfig(
        modes=modes_tuple,
        gif_path=gif_path,
        image_path=image_path,
        frame_dir=frame_dir_path,
        image_format=image_format,
        gif_frame_duration=opt.gif_frame_duration,
    )


def resolve_render_parameters(opt, parser: ArgumentParser) -> RenderParameters:
    if opt.power < 2:
        parser.error("--power must be at least 2.")
    if opt.floor < 1:
        parser.error("--floor must be at least 1.")
    if opt.workers < 1:
        parser.error("--workers must be at least 1.")
    try:
        centre = Complex.parse(opt.centre_r, opt.centre_i)
    except (ValueError, FixedPointError) as exc:
        parser.error(f"Invalid centre ({opt.centre_r}, {opt.centre_i}): {exc}")
    try:
        radius = Fix2x61.parse(opt.radius)
    except (ValueError, FixedPointError) as exc:
        parser.error(f"Invalid radius {opt.radius}: {exc}")
    if radius.raw <= 0:
        parser.error("--radius must be positive.")
    return RenderParameters(
        power=opt.power,
        centre=centre,
        radius=radius,
        floor=opt.floor,
        workers=opt.workers,
        neighbours=NEIGHBOUR_SETS[opt.neighbours],
    )


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def to_image(pixels: np.ndarray) -> PIL.Image.Image:
    return PIL.Image.fromarray(pixels)


def write_single_image(image: PIL.Image.Image, output_path: Path, image_format: str) -> None:
    """Write a single image to ``output_path`` using the provided format."""

    pil_format = _pil_format_name(image_format)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=pil_format)


def write_frame_sequence(
    image: PIL.Image.Image,
    frame_dir: Path,
    index: int,
    digits: int,
    image_format: str,
    prefix: str,
) -> Path:
    """Persist a frame in a numbered sequence inside ``frame_dir``."""

    pil_format = _pil_format_name(image_format)
    frame_path = frame_dir / f"{prefix}{index:0{digits}d}.{image_format}"
    frame_dir.mkdir(parents=True, exist_ok=True)
    image.save(str(frame_path), format=pil_format)
    return frame_path


def write_gif(writer: Any, frame_array: np.ndarray) -> None:
    """Append ``frame_array`` to an active GIF writer."""

    writer.append_data(frame_array)


@dataclass
class OutputWriters:
    config: OutputConfig
    frame_digits: int

    def __post_init__(self) -> None:
        self._needs_frames = bool("frames" in self.config.modes and self.config.frame_dir is not None)
        self._needs_final_image = bool("image" in self.config.modes and self.config.image_path is not None)
        self._gif_writer = None
        if "gif" in self.config.modes and self.config.gif_path is not None:
            self.config.gif_path.parent.mkdir(parents=True, exist_ok=True)
            self._gif_writer = imageio.get_writer(
                str(self.config.gif_path), mode='I', duration=self.config.gif_frame_duration, loop=0
            )

    def write_frame(self, frame_index: int, pixels: np.ndarray) -> None:
        if self._gif_writer is not None:
            write_gif(self._gif_writer, pixels)
        if self._needs_frames:
            write_frame_sequence(
                to_image(pixels),
                self.config.frame_dir,
                frame_index,
                self.frame_digits,
                self.config.image_format,
                "frame",
            )

    def finalize(self, final_pixels: np.ndarray | None) -> None:
        if self._needs_final_image and final_pixels is not None:
            write_single_image(to_image(final_pixels), self.config.image_path, self.config.image_format)

    def close(self) -> None:
        if self._gif_writer is not None:
            self._gif_writer.close()
            self._gif_writer = None


def compare_with_reference(result: RenderResult, floor: int) -> float:
    max_iterations = max(floor, 2 * result.deepest)
    reference = render_reference(result.metadata, max_iterations, device=DEVICE)
    return agreement(result, reference)


def zoom_frames(params: RenderParameters, grid: Grid, path: ZoomPath, parser: ArgumentParser):
    """Yield refined frames, reporting a zoom too deep to sample as a usage error."""

    frames = params.planner().frames(grid, path)
    depth = 0
    while True:
        try:
            frame = next(frames)
        except StopIteration:
            return
        except (FixedPointError, ValueError) as exc:
            parser.error(f"Zoom depth {depth} of path {path} cannot be sampled: {exc}")
        yield frame
        depth += 1


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)
    logging.basicConfig(
        level=logging.DEBUG if VERBOSE else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    output_config = resolve_output_config(opt, parser)
    params = resolve_render_parameters(opt, parser)
    try:
        scheme = ColourScheme.parse(opt.colours)
    except ValueError as exc:
        parser.error(str(exc))
    try:
        path = ZoomPath.parse(opt.zoom_path)
    except ValueError as exc:
        parser.error(f"Invalid zoom path: {exc}")

    log("TensorFlow version: %s, reference device %s" % (tf.__version__, DEVICE))

    try:
        grid = Grid.create(params.power, params.centre, params.radius)
    except SamplingOverflow as exc:
        parser.error(f"The sampled square cannot be represented in (-4, 4): {exc}")

    total_frames = len(path) + 1
    frame_digits = max(3, len(str(total_frames - 1)))
    writers = OutputWriters(output_config, frame_digits=frame_digits)

    final_pixels: np.ndarray | None = None
    try:
        for i, frame in enumerate(zoom_frames(params, grid, path, parser)):
            print("frame {0} out of {1}".format(i, total_frames), end='\r')
            result = RenderResult.from_grid(frame)
            log("frame %d: centre %r radius %r deepest escape %d"
                % (i, frame.centre, frame.radius, result.deepest))
            if opt.compare_reference:
                score = compare_with_reference(result, params.floor)
                print("frame {0}: {1:.2%} of cells agree with the float64 reference".format(i, score))
            final_pixels = encode_result(result, scheme)
            writers.write_frame(i, final_pixels)
    finally:
        writers.close()

    writers.finalize(final_pixels)


if __name__ == '__main__':
    main()
