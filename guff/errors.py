"""Exception types raised by the guff pipeline.

Core modules raise these and never terminate the process themselves; the CLI
turns them into a one-line diagnosis and an exit status.
"""

from __future__ import annotations

from typing import List, Optional


class GuffError(Exception):
    """Base class for every failure that ends a run."""


class InputError(GuffError):
    """Invalid command-line value or input file."""


class PreconditionError(GuffError):
    """A required credential or external tool is missing."""


class ProviderError(GuffError):
    """The AI provider call failed (HTTP status or transport)."""


class ResponseShapeError(ProviderError):
    """The provider answered, but not with the payload shape we expect."""


class FrameScriptError(GuffError):
    """The model-authored frame program misbehaved."""

    def __init__(
        self,
        message: str,
        *,
        index: Optional[int] = None,
        exit_code: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.index = index
        self.exit_code = exit_code
        self.stderr = stderr


class GridLayoutError(GuffError):
    """The requested frame count cannot be laid out as a clean grid."""

    def __init__(self, message: str, suggestions: List[int]) -> None:
        super().__init__(message)
        self.suggestions = list(suggestions)


class GridSliceError(GuffError):
    """The composite image cannot be sliced into usable cells."""


class RasterizeError(GuffError):
    """An SVG frame could not be rendered."""

    def __init__(self, message: str, index: int) -> None:
        super().__init__(message)
        self.index = index


class EncoderError(GuffError):
    """gifsicle failed to merge the frames."""


__all__ = [
    "GuffError",
    "InputError",
    "PreconditionError",
    "ProviderError",
    "ResponseShapeError",
    "FrameScriptError",
    "GridLayoutError",
    "GridSliceError",
    "RasterizeError",
    "EncoderError",
]
