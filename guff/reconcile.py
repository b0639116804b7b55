"""Make independently trimmed grid cells geometrically consistent.

Each cell is trimmed on its own, so the subject ends up at a different scale
in every cell.  Pasting all of them, centred, onto one canvas sized to the
largest trimmed cell and only then resizing keeps the subject's apparent size
stable across the loop.  Composite and resize stay two separate steps.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np
from PIL import Image

from .layout import round_half_up
from .rasterize import contain_on_white

logger = logging.getLogger(__name__)

DEFAULT_TRIM_THRESHOLD = 20
CANVAS_COLOR = (255, 255, 255)


@dataclass(frozen=True)
class TrimmedCell:
    image: Image.Image
    width: int
    height: int


def _content_bounds(image: Image.Image, threshold: int) -> Tuple[int, int, int, int] | None:
    pixels = np.asarray(image.convert("RGB"), dtype=np.int16)
    background = pixels[0, 0]
    content = np.abs(pixels - background).max(axis=2) > threshold
    rows = np.flatnonzero(content.any(axis=1))
    cols = np.flatnonzero(content.any(axis=0))
    if rows.size == 0 or cols.size == 0:
        return None
    return (int(cols[0]), int(rows[0]), int(cols[-1]) + 1, int(rows[-1]) + 1)


def trim_background(image: Image.Image, threshold: int = DEFAULT_TRIM_THRESHOLD) -> TrimmedCell:
    """Strip border rows/columns that match the top-left pixel colour.

    A pixel matches when no channel differs by more than ``threshold``.  A
    cell that is entirely background is returned untouched.
    """

    rgb = image.convert("RGB")
    bounds = _content_bounds(rgb, threshold)
    if bounds is not None:
        rgb = rgb.crop(bounds)
    return TrimmedCell(rgb, rgb.width, rgb.height)


def shared_canvas_size(cells: Sequence[TrimmedCell]) -> Tuple[int, int]:
    if not cells:
        raise ValueError("at least one cell is required")
    return (max(c.width for c in cells), max(c.height for c in cells))


def center_offset(canvas: Tuple[int, int], cell: TrimmedCell) -> Tuple[int, int]:
    return (
        round_half_up((canvas[0] - cell.width) / 2),
        round_half_up((canvas[1] - cell.height) / 2),
    )


def recenter(cells: Sequence[TrimmedCell]) -> List[Image.Image]:
    canvas_size = shared_canvas_size(cells)
    frames: List[Image.Image] = []
    for cell in cells:
        canvas = Image.new("RGB", canvas_size, CANVAS_COLOR)
        canvas.paste(cell.image, center_offset(canvas_size, cell))
        frames.append(canvas)
    return frames


def reconcile_frames(
    cells: Sequence[Image.Image],
    output_size: Tuple[int, int],
    *,
    threshold: int = DEFAULT_TRIM_THRESHOLD,
) -> List[Image.Image]:
    """Trim, re-centre on a shared canvas, then contain-fit to ``output_size``."""

    trimmed = [trim_background(cell, threshold) for cell in cells]
    canvas_size = shared_canvas_size(trimmed)
    logger.debug(
        "Trimmed %d cells, shared canvas %dx%d", len(trimmed), canvas_size[0], canvas_size[1]
    )
    return [contain_on_white(frame, output_size) for frame in recenter(trimmed)]


__all__ = [
    "DEFAULT_TRIM_THRESHOLD",
    "TrimmedCell",
    "center_offset",
    "reconcile_frames",
    "recenter",
    "shared_canvas_size",
    "trim_background",
]
