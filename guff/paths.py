import os
import re
from pathlib import Path
from typing import Optional, Union

SLUG_LIMIT = 60


def slugify(text: str) -> str:
    slug = text.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    slug = slug.strip("-")
    return slug[:SLUG_LIMIT]


def unique_path(path: Union[str, Path]) -> Path:
    """Return ``path`` or the first free ``name-N.ext`` sibling, N starting at 2."""

    path = Path(path)
    if not path.exists():
        return path
    base, ext = os.path.splitext(str(path))
    n = 2
    while os.path.exists(f"{base}-{n}{ext}"):
        n += 1
    return Path(f"{base}-{n}{ext}")


def output_path(prompt: str, output: Optional[Union[str, Path]] = None) -> Path:
    if output:
        target = Path(output).expanduser().resolve()
    else:
        target = Path(f"{slugify(prompt) or 'animation'}.gif").resolve()
    return unique_path(target)
