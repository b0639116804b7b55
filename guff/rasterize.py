"""Rasterize SVG frames into fixed-size RGB frames."""
from __future__ import annotations

import io
import logging
from typing import List, Sequence, Tuple

from PIL import Image, ImageOps
from resvg_py import svg_to_bytes

from .errors import RasterizeError

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255, 255)


def flatten_on_white(image: Image.Image) -> Image.Image:
    """Composite ``image`` over opaque white and return it in RGB mode."""

    rgba = image.convert("RGBA")
    base = Image.new("RGBA", rgba.size, WHITE)
    return Image.alpha_composite(base, rgba).convert("RGB")


def contain_on_white(image: Image.Image, size: Tuple[int, int]) -> Image.Image:
    """Scale ``image`` to fit inside ``size`` and centre it on white.

    Aspect ratio is preserved and nothing is cropped; the leftover area is
    filled with opaque white.
    """

    frame = Image.new("RGBA", size, WHITE)
    fitted = ImageOps.contain(image.convert("RGBA"), size, Image.LANCZOS)
    offset = (
        (size[0] - fitted.width) // 2,
        (size[1] - fitted.height) // 2,
    )
    frame.paste(fitted, offset, fitted)
    return frame.convert("RGB")


def rasterize_svg(svg: str, size: Tuple[int, int]) -> Image.Image:
    png_bytes = bytes(svg_to_bytes(svg_string=svg))
    with Image.open(io.BytesIO(png_bytes)) as rendered:
        rendered.load()
        return contain_on_white(flatten_on_white(rendered), size)


def rasterize_frames(svgs: Sequence[str], size: Tuple[int, int]) -> List[Image.Image]:
    """Render every SVG in order.  One bad frame fails the whole sequence."""

    frames: List[Image.Image] = []
    for index, svg in enumerate(svgs):
        try:
            frames.append(rasterize_svg(svg, size))
        except Exception as exc:
            raise RasterizeError(f"frame {index} could not be rendered: {exc}", index) from exc
    logger.debug("Rasterized %d frames at %dx%d", len(frames), size[0], size[1])
    return frames


__all__ = ["contain_on_white", "flatten_on_white", "rasterize_frames", "rasterize_svg"]
