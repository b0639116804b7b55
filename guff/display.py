"""Best-effort inline preview of the finished GIF in the terminal."""
from __future__ import annotations

import base64
import io
import logging
import os
import sys
from enum import Enum
from typing import Mapping, Optional, TextIO

from PIL import Image

logger = logging.getLogger(__name__)

KITTY_CHUNK_SIZE = 4096


class DisplayProtocol(Enum):
    ITERM = "iterm"
    KITTY = "kitty"
    NONE = "none"


_TERM_PROGRAMS = {
    "iTerm.app": DisplayProtocol.ITERM,
    "ghostty": DisplayProtocol.KITTY,
}


def detect_protocol(env: Optional[Mapping[str, str]] = None) -> DisplayProtocol:
    env = os.environ if env is None else env
    return _TERM_PROGRAMS.get(env.get("TERM_PROGRAM", ""), DisplayProtocol.NONE)


def iterm_sequence(name: str, payload: bytes) -> str:
    """OSC 1337 inline file escape; iTerm2 animates GIFs natively."""

    b64 = base64.b64encode(payload).decode("ascii")
    encoded_name = base64.b64encode(name.encode("utf-8")).decode("ascii")
    return f"\x1b]1337;File=inline=1;name={encoded_name};size={len(payload)}:{b64}\x07"


def kitty_sequences(png: bytes, chunk_size: int = KITTY_CHUNK_SIZE) -> list:
    """Kitty graphics protocol transmission split into ``chunk_size`` pieces."""

    b64 = base64.b64encode(png).decode("ascii")
    chunks = []
    for start in range(0, len(b64), chunk_size):
        chunk = b64[start:start + chunk_size]
        more = 0 if start + chunk_size >= len(b64) else 1
        if start == 0:
            chunks.append(f"\x1b_Ga=T,f=100,m={more};{chunk}\x1b\\")
        else:
            chunks.append(f"\x1b_Gm={more};{chunk}\x1b\\")
    return chunks


def _first_frame_png(payload: bytes) -> bytes:
    with Image.open(io.BytesIO(payload)) as gif:
        gif.seek(0)
        buf = io.BytesIO()
        gif.convert("RGBA").save(buf, format="PNG")
    return buf.getvalue()


def display_inline(
    path: str,
    stream: Optional[TextIO] = None,
    env: Optional[Mapping[str, str]] = None,
) -> DisplayProtocol:
    """Show ``path`` inline when the terminal supports it.  Never raises."""

    stream = sys.stdout if stream is None else stream
    protocol = detect_protocol(env)
    if protocol is DisplayProtocol.NONE:
        return protocol
    try:
        with open(path, "rb") as handle:
            payload = handle.read()
        if protocol is DisplayProtocol.ITERM:
            stream.write(iterm_sequence(os.path.basename(path), payload))
        else:
            for chunk in kitty_sequences(_first_frame_png(payload)):
                stream.write(chunk)
        stream.write("\n")
        stream.flush()
    except Exception as exc:  # preview is cosmetic
        logger.debug("Inline display failed: %s", exc)
    return protocol


__all__ = [
    "DisplayProtocol",
    "detect_protocol",
    "display_inline",
    "iterm_sequence",
    "kitty_sequences",
]
