"""Grid planning for sprite-sheet animations.

A request for ``n`` frames is laid out as the most square-like
``columns x rows`` factor pair of ``n``.  The provider renders the whole grid
on one canvas, so the canvas aspect ratio is negotiated against the small set
of ratios the image model accepts.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .errors import GridLayoutError, InputError

MIN_FRAMES = 2
MAX_FRAMES = 64
SUGGESTION_CEILING = 16


@dataclass(frozen=True)
class AspectRatio:
    label: str
    value: float


ASPECT_RATIOS: Sequence[AspectRatio] = (
    AspectRatio("1:1", 1.0),
    AspectRatio("16:9", 16 / 9),
    AspectRatio("9:16", 9 / 16),
    AspectRatio("4:3", 4 / 3),
    AspectRatio("3:4", 3 / 4),
)


@dataclass(frozen=True)
class FrameRequest:
    count: int
    output_width: int
    output_height: int
    frame_aspect: float

    @property
    def output_size(self) -> Tuple[int, int]:
        return (self.output_width, self.output_height)


@dataclass(frozen=True)
class GridPlan:
    columns: int
    rows: int
    aspect_label: str


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""

    return int(math.floor(value + 0.5))


def grid_layout(n: int) -> Tuple[int, int]:
    """Return ``(columns, rows)`` for ``n`` frames.

    The last divisor found while scanning ``r`` upward with ``r * r <= n`` is
    kept, which gives the largest row count not exceeding the square root.
    Primes fall back to a single row.
    """

    best_cols, best_rows = n, 1
    r = 2
    while r * r <= n:
        if n % r == 0:
            best_cols, best_rows = n // r, r
        r += 1
    return best_cols, best_rows


def _forms_clean_grid(n: int) -> bool:
    _, rows = grid_layout(n)
    return rows > 1 or n <= 3


def suggest_frame_counts(n: int) -> List[int]:
    """Nearest counts below and above ``n`` that tile as a clean grid."""

    suggestions: List[int] = []
    for candidate in range(n - 1, MIN_FRAMES - 1, -1):
        if _forms_clean_grid(candidate):
            suggestions.append(candidate)
            break
    for candidate in range(n + 1, SUGGESTION_CEILING + 1):
        if _forms_clean_grid(candidate):
            suggestions.append(candidate)
            break
    return suggestions


def check_clean_grid(n: int) -> None:
    """Reject counts that would force a single strip wider than 3 frames."""

    cols, rows = grid_layout(n)
    if rows == 1 and cols > 3:
        suggestions = suggest_frame_counts(n)
        hint = " or ".join(str(s) for s in suggestions)
        raise GridLayoutError(
            f"{n} frames can't form a clean grid (only {cols}x1). Try: {hint}",
            suggestions,
        )


def best_aspect_ratio(columns: int, rows: int, frame_aspect: float) -> str:
    """Pick the supported canvas ratio closest to the grid's true ratio.

    Distance is measured in log space so that 2:1 and 1:2 are equally far
    from 1:1.
    """

    target = (columns * frame_aspect) / rows
    best = ASPECT_RATIOS[0]
    best_dist = math.inf
    for ratio in ASPECT_RATIOS:
        dist = abs(math.log(ratio.value / target))
        if dist < best_dist:
            best_dist = dist
            best = ratio
    return best.label


def plan_grid(request: FrameRequest, *, require_clean_grid: bool = False) -> GridPlan:
    if require_clean_grid:
        check_clean_grid(request.count)
    cols, rows = grid_layout(request.count)
    return GridPlan(
        columns=cols,
        rows=rows,
        aspect_label=best_aspect_ratio(cols, rows, request.frame_aspect),
    )


_SIZE_RE = re.compile(r"^(\d+)x(\d+)$")
_ASPECT_RE = re.compile(r"^(\d+):(\d+)$")


def parse_size(value: str) -> Tuple[int, int]:
    match = _SIZE_RE.match(value or "")
    if not match:
        raise InputError("size must be in WxH format (e.g., 128x128)")
    width, height = int(match.group(1)), int(match.group(2))
    if width <= 0 or height <= 0:
        raise InputError("size dimensions must be positive")
    return width, height


def parse_aspect(value: str) -> float:
    match = _ASPECT_RE.match(value or "")
    if not match:
        raise InputError("aspect must be in W:H format (e.g., 1:1, 16:9, 4:3)")
    num, den = int(match.group(1)), int(match.group(2))
    if num <= 0 or den <= 0:
        raise InputError("aspect terms must be positive")
    return num / den


__all__ = [
    "ASPECT_RATIOS",
    "AspectRatio",
    "FrameRequest",
    "GridPlan",
    "MAX_FRAMES",
    "MIN_FRAMES",
    "best_aspect_ratio",
    "check_clean_grid",
    "grid_layout",
    "parse_aspect",
    "parse_size",
    "plan_grid",
    "round_half_up",
    "suggest_frame_counts",
]
