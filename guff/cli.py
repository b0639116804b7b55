"""Command-line entry point: ``guff [options] <prompt>``."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import RESOLUTIONS, RunConfig, default_config, load_config, parse_model
from .errors import GuffError, InputError
from .inputs import load_input_images
from .layout import MAX_FRAMES, MIN_FRAMES, FrameRequest, parse_aspect, parse_size
from .logging_config import configure_logging
from .pipeline import run

LOGGER = logging.getLogger(__name__)

EPILOG = """Requires: gifsicle (brew install gifsicle)

Examples:
  guff 'a bouncing ball'
  guff -f 8 -s 256x256 'a spinning star'
  guff -d 'a dancing penguin'
  guff -m gemini/gemini-2-flash-preview-image-generation 'a waving hand'"""


def _parse_args(argv: List[str], defaults: Dict[str, Any]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="guff",
        description="Generate animated GIFs using AI.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("prompt", nargs="?", help="What the animation should show.")
    parser.add_argument(
        "-f", "--frames", default=str(defaults["frames"]),
        help=f"Number of animation frames (default: {defaults['frames']})",
    )
    parser.add_argument(
        "-D", "--delay", default=str(defaults["delay_ms"]),
        help=f"Delay between frames in ms (default: {defaults['delay_ms']})",
    )
    parser.add_argument(
        "-s", "--size", default=str(defaults["size"]),
        help=f"Output size WxH (default: {defaults['size']})",
    )
    parser.add_argument(
        "-a", "--aspect", default=str(defaults["aspect"]),
        help=f"Frame aspect ratio W:H (default: {defaults['aspect']})",
    )
    parser.add_argument("-o", "--output", help="Output filename (default: auto-generated)")
    parser.add_argument(
        "-i", "--input", action="append", default=[],
        help="Input image for reference (repeatable)",
    )
    parser.add_argument(
        "-r", "--resolution", default=str(defaults["resolution"]),
        help=f"Resolution: 1k, 2k, 4k (default: {defaults['resolution']}, Gemini only)",
    )
    parser.add_argument(
        "-t", "--temperature", default=str(defaults["temperature"]),
        help=f"Temperature 0.0-2.0 (default: {defaults['temperature']})",
    )
    parser.add_argument(
        "-m", "--model", default=str(defaults["model"]),
        help=f"Model as provider/model (default: {defaults['model']})",
    )
    parser.add_argument(
        "-c", "--colors", default=str(defaults["colors"]),
        help=f"Max colors in GIF palette (default: {defaults['colors']})",
    )
    parser.add_argument(
        "--trim", action="store_true",
        help="Gemini only: trim padding per frame and re-centre on a shared canvas",
    )
    parser.add_argument(
        "-d", "--debug", action="store_true",
        help="Log full prompt, API details and intermediate files",
    )
    return parser.parse_args(argv)


def _int_in_range(value: str, low: int, high: int, message: str) -> int:
    try:
        number = int(value, 10)
    except (TypeError, ValueError):
        raise InputError(message) from None
    if number < low or number > high:
        raise InputError(message)
    return number


def _float_in_range(value: str, low: float, high: float, message: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InputError(message) from None
    if number != number or number < low or number > high:
        raise InputError(message)
    return number


def build_config(args: argparse.Namespace, settings: Dict[str, Any]) -> RunConfig:
    """Validate parsed arguments and freeze them into a :class:`RunConfig`."""

    if not args.prompt:
        raise InputError("prompt is required. Use --help for usage.")

    frames = _int_in_range(
        args.frames, MIN_FRAMES, MAX_FRAMES,
        f"frames must be between {MIN_FRAMES} and {MAX_FRAMES}",
    )
    delay = _int_in_range(args.delay, 10, 10000, "delay must be between 10 and 10000 ms")
    width, height = parse_size(args.size)
    provider, model = parse_model(args.model)

    image_size = RESOLUTIONS.get(str(args.resolution).lower())
    if image_size is None:
        raise InputError(
            f'unknown resolution "{args.resolution}". Use: {", ".join(RESOLUTIONS)}'
        )

    temperature = _float_in_range(
        args.temperature, 0.0, 2.0, "temperature must be between 0.0 and 2.0"
    )
    colors = _int_in_range(args.colors, 2, 256, "colors must be between 2 and 256")
    frame_aspect = parse_aspect(args.aspect)
    inputs = load_input_images(args.input or [])

    return RunConfig.from_settings(
        settings,
        prompt=args.prompt,
        request=FrameRequest(frames, width, height, frame_aspect),
        provider=provider,
        model=model,
        delay_ms=delay,
        colors=colors,
        image_size=image_size,
        temperature=temperature,
        inputs=tuple(inputs),
        output=Path(args.output) if args.output else None,
        debug=bool(args.debug),
        reconcile=bool(args.trim),
    )


def main(argv: Optional[List[str]] = None) -> int:
    try:
        settings = load_config()
    except OSError:
        settings = default_config()
    args = _parse_args(argv if argv is not None else sys.argv[1:], settings["defaults"])
    configure_logging(debug=args.debug)

    try:
        config = build_config(args, settings)
        run(config)
    except GuffError as exc:
        LOGGER.debug("Run failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
