"""Run model-authored frame programs and validate what they print.

The program is untrusted: it may crash, loop forever, print garbage or print
something that only looks like SVG.  Each of those cases is reported with a
specific message instead of a generic traceback.
"""
from __future__ import annotations

import json
import logging
import os
import re
import signal
import subprocess
import sys
import tempfile
from typing import List, Optional

from .errors import FrameScriptError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
_DEBUG_STDOUT_CHARS = 500

_FENCED_RE = re.compile(r"```(?:python|py|)\n([\s\S]*?)```")


def extract_code(text: str) -> Optional[str]:
    """Pull the program out of a model reply.

    A fenced block tagged ``python``/``py`` (or untagged) wins.  A reply
    without fences is accepted as-is when it looks like a program that prints
    a JSON dump.
    """

    text = text or ""
    fenced = _FENCED_RE.search(text)
    if fenced:
        return fenced.group(1)
    if "print(" in text and "json.dumps" in text:
        return text
    return None


def parse_frames(stdout: str, expected: int) -> List[str]:
    """Validate program output and return the SVG documents it printed."""

    try:
        svgs = json.loads(stdout.strip())
    except json.JSONDecodeError as exc:
        logger.debug("stdout: %s", stdout[:_DEBUG_STDOUT_CHARS])
        raise FrameScriptError("generated code did not output valid JSON") from exc

    if not isinstance(svgs, list) or not svgs:
        raise FrameScriptError(
            f"expected array of SVG strings, got {type(svgs).__name__}"
        )

    for index, svg in enumerate(svgs):
        if not isinstance(svg, str) or not svg.strip().startswith("<svg"):
            raise FrameScriptError(
                f"frame {index} is not a valid SVG string", index=index
            )

    if len(svgs) != expected:
        logger.warning("Warning: got %d frames (expected %d)", len(svgs), expected)

    return svgs


def _kill_process_tree(proc: subprocess.Popen) -> None:
    # The child leads its own session, so its pid is also the group id.
    if os.name == "posix":
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            logger.debug("Process group %d already exited", proc.pid)
    else:
        proc.kill()


def run_frame_script(
    code: str,
    expected: int,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    keep_script: bool = False,
) -> List[str]:
    """Execute ``code`` in a child interpreter and return its SVG frames.

    The child runs in isolated mode so it does not see the user's site
    packages or environment-driven import paths.  On timeout the whole
    process group is killed, including anything the program spawned.
    ``keep_script`` leaves the temporary file behind for inspection.
    """

    handle = tempfile.NamedTemporaryFile(
        "w", suffix=".py", prefix="guff-gen-", delete=False, encoding="utf-8"
    )
    script_path = handle.name
    try:
        with handle:
            handle.write(code)

        logger.debug("--- Generated code written to %s ---", script_path)
        logger.debug("%s", code)
        logger.debug("--- Executing... ---")

        proc = subprocess.Popen(
            [sys.executable, "-I", script_path],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=os.name == "posix",
        )
        try:
            raw_stdout, raw_stderr = proc.communicate(timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            _kill_process_tree(proc)
            proc.communicate()
            raise FrameScriptError(
                f"generated code timed out after {timeout:g}s"
            ) from exc

        if proc.returncode != 0:
            stderr = raw_stderr.decode("utf-8", errors="replace").strip()
            raise FrameScriptError(
                f"generated code failed (exit {proc.returncode}):\n{stderr}",
                exit_code=proc.returncode,
                stderr=stderr,
            )

        try:
            stdout = raw_stdout.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FrameScriptError(
                "generated code did not output valid JSON (stdout is not UTF-8)"
            ) from exc
        return parse_frames(stdout, expected)
    finally:
        if not keep_script:
            try:
                os.remove(script_path)
            except OSError:
                logger.debug("Could not remove %s", script_path)


__all__ = ["DEFAULT_TIMEOUT", "extract_code", "parse_frames", "run_frame_script"]
