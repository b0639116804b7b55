"""Merge finished frames into one looping GIF with gifsicle."""
from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from pathlib import Path
from typing import List, Sequence, Union

from PIL import Image

from .errors import EncoderError, PreconditionError
from .layout import round_half_up

logger = logging.getLogger(__name__)

ENCODER = "gifsicle"
INSTALL_HINT = "Install with: brew install gifsicle (or your package manager)"


def check_encoder(binary: str = ENCODER) -> str:
    """Fail early when the encoder is unavailable; return its version line."""

    try:
        result = subprocess.run(
            [binary, "--version"],
            check=True,
            capture_output=True,
            text=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        raise PreconditionError(
            f"{binary} is required but not found. {INSTALL_HINT}"
        ) from exc
    lines = result.stdout.strip().splitlines()
    return lines[0] if lines else binary


def delay_centiseconds(delay_ms: int) -> int:
    return round_half_up(delay_ms / 10)


def build_encoder_command(
    frame_paths: Sequence[str],
    output: Union[str, Path],
    *,
    delay_ms: int,
    colors: int,
    optimize: int = 3,
    binary: str = ENCODER,
) -> List[str]:
    return [
        binary,
        "--delay",
        str(delay_centiseconds(delay_ms)),
        "--loop",
        "--colors",
        str(colors),
        f"-O{optimize}",
        *frame_paths,
        "-o",
        str(output),
    ]


def write_frame_files(frames: Sequence[Image.Image], directory: str) -> List[str]:
    """Write each frame as a single-image GIF, named in playback order."""

    paths: List[str] = []
    for index, frame in enumerate(frames):
        path = os.path.join(directory, f"frame-{index}.gif")
        frame.convert("RGB").save(path, format="GIF")
        paths.append(path)
    return paths


def assemble_gif(
    frames: Sequence[Image.Image],
    output: Union[str, Path],
    *,
    delay_ms: int,
    colors: int,
    optimize: int = 3,
    binary: str = ENCODER,
) -> Path:
    """Encode ``frames`` into ``output``.  Intermediate files never outlive the call."""

    if not frames:
        raise EncoderError("no frames to assemble")

    output = Path(output)
    with tempfile.TemporaryDirectory(prefix="guff-") as tmp_dir:
        frame_paths = write_frame_files(frames, tmp_dir)
        command = build_encoder_command(
            frame_paths,
            output,
            delay_ms=delay_ms,
            colors=colors,
            optimize=optimize,
            binary=binary,
        )
        logger.debug("Running: %s", " ".join(command))
        try:
            subprocess.run(command, check=True, capture_output=True, text=True)
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip()
            raise EncoderError(
                f"{binary} failed (exit {exc.returncode}): {stderr}"
            ) from exc
        except OSError as exc:
            raise EncoderError(f"{binary} could not be started: {exc}") from exc
    return output


__all__ = [
    "ENCODER",
    "assemble_gif",
    "build_encoder_command",
    "check_encoder",
    "delay_centiseconds",
    "write_frame_files",
]
