"""Slice a provider-rendered sprite sheet into animation frames.

The image model does not always honour the requested grid: it sometimes adds
an extra (possibly partial) row.  Row count is therefore re-derived from the
canvas itself, assuming the column count and per-frame aspect ratio held.
Cells are read row by row, left to right, which is the order the provider is
told to draw frames in.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from PIL import Image, ImageOps

from .errors import GridSliceError
from .layout import round_half_up

logger = logging.getLogger(__name__)

DEFAULT_INSET_RATIO = 0.03

FIT_COVER = "cover"
FIT_NATIVE = "native"

Box = Tuple[int, int, int, int]


@dataclass(frozen=True)
class CellGeometry:
    columns: int
    rows: int
    cell_width: int
    cell_height: int
    inset_x: int
    inset_y: int
    drifted: bool = False

    @property
    def crop_size(self) -> Tuple[int, int]:
        return (
            self.cell_width - 2 * self.inset_x,
            self.cell_height - 2 * self.inset_y,
        )


def detect_rows(width: int, height: int, columns: int, frame_aspect: float) -> int:
    """Row count implied by the canvas, given ``columns`` and the frame aspect."""

    expected_w = width / columns
    expected_h = expected_w / frame_aspect
    return round_half_up(height / expected_h)


def cell_geometry(
    size: Tuple[int, int],
    columns: int,
    requested_rows: int,
    frame_aspect: float,
    *,
    inset_ratio: float = DEFAULT_INSET_RATIO,
) -> CellGeometry:
    width, height = size
    rows = requested_rows
    detected = detect_rows(width, height, columns, frame_aspect)
    drifted = detected != requested_rows
    if drifted:
        logger.warning(
            "Warning: detected %d rows (expected %d), adjusting", detected, requested_rows
        )
        rows = detected
    if rows < 1:
        raise GridSliceError(f"image {width}x{height} is too short for a {columns}-column grid")

    cell_w = width // columns
    cell_h = height // rows
    inset_x = max(1, round_half_up(cell_w * inset_ratio))
    inset_y = max(1, round_half_up(cell_h * inset_ratio))
    if cell_w - 2 * inset_x < 1 or cell_h - 2 * inset_y < 1:
        raise GridSliceError(
            f"cells of {cell_w}x{cell_h} are too small to extract from a {width}x{height} image"
        )

    logger.debug(
        "--- Image: %dx%d, Frame: %dx%d, Grid: %dx%d ---",
        width, height, cell_w, cell_h, columns, rows,
    )
    return CellGeometry(columns, rows, cell_w, cell_h, inset_x, inset_y, drifted)


def iter_cell_boxes(geometry: CellGeometry, count: int) -> Iterator[Box]:
    """Yield crop boxes in playback order, stopping after ``count`` cells."""

    crop_w, crop_h = geometry.crop_size
    emitted = 0
    for row in range(geometry.rows):
        for col in range(geometry.columns):
            if emitted >= count:
                return
            left = col * geometry.cell_width + geometry.inset_x
            top = row * geometry.cell_height + geometry.inset_y
            yield (left, top, left + crop_w, top + crop_h)
            emitted += 1


def slice_grid(
    image: Image.Image,
    columns: int,
    rows: int,
    count: int,
    frame_aspect: float,
    *,
    output_size: Optional[Tuple[int, int]] = None,
    fit: str = FIT_COVER,
    inset_ratio: float = DEFAULT_INSET_RATIO,
) -> List[Image.Image]:
    """Extract up to ``count`` frames from ``image``.

    ``fit="cover"`` crops each cell to fill ``output_size`` exactly.
    ``fit="native"`` returns the inset crops at their extracted size, for
    callers that reconcile frame sizes themselves.
    """

    if fit not in (FIT_COVER, FIT_NATIVE):
        raise ValueError(f"Unknown fit mode: {fit}")
    if fit == FIT_COVER and output_size is None:
        raise ValueError("output_size is required for cover fit")

    geometry = cell_geometry(
        image.size, columns, rows, frame_aspect, inset_ratio=inset_ratio
    )
    source = image.convert("RGB")
    frames: List[Image.Image] = []
    for box in iter_cell_boxes(geometry, count):
        cell = source.crop(box)
        if fit == FIT_COVER:
            cell = ImageOps.fit(cell, output_size, Image.LANCZOS)
        frames.append(cell)

    if len(frames) < count:
        logger.warning("Warning: grid holds %d cells (expected %d)", len(frames), count)
    return frames


__all__ = [
    "CellGeometry",
    "DEFAULT_INSET_RATIO",
    "FIT_COVER",
    "FIT_NATIVE",
    "cell_geometry",
    "detect_rows",
    "iter_cell_boxes",
    "slice_grid",
]
