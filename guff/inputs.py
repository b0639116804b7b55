"""Reference images passed along with the prompt."""
from __future__ import annotations

import base64
import os
from dataclasses import dataclass
from typing import Iterable, List

from .errors import InputError

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


@dataclass(frozen=True)
class InputImage:
    mime_type: str
    data: str  # base64


def load_input_image(path: str) -> InputImage:
    full_path = os.path.abspath(path)
    if not os.path.isfile(full_path):
        raise InputError(f"input file not found: {path}")
    ext = os.path.splitext(full_path)[1].lower()
    mime_type = MIME_TYPES.get(ext)
    if mime_type is None:
        raise InputError(
            f'unsupported image format "{ext}". Use: {", ".join(MIME_TYPES)}'
        )
    with open(full_path, "rb") as handle:
        data = base64.b64encode(handle.read()).decode("ascii")
    return InputImage(mime_type, data)


def load_input_images(paths: Iterable[str]) -> List[InputImage]:
    return [load_input_image(path) for path in paths]


__all__ = ["InputImage", "MIME_TYPES", "load_input_image", "load_input_images"]
