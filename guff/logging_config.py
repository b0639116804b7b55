import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from .config import GUFF_DIR

_DEFAULT_LEVEL = os.getenv("GUFF_LOG_LEVEL", "INFO").upper()
LOGS = os.path.join(str(GUFF_DIR), "logs")
LOG_FILE = os.path.join(LOGS, "guff.log")


def configure_logging(level: Optional[str] = None, debug: bool = False) -> str:
    """Send plain messages to stderr and timestamped records to the log file."""

    if debug:
        level = "DEBUG"
    desired_level = getattr(logging, (level or _DEFAULT_LEVEL), logging.INFO)
    root = logging.getLogger()
    if getattr(configure_logging, "_configured", False):
        root.setLevel(desired_level)
        return LOG_FILE

    for handler in list(root.handlers):
        root.removeHandler(handler)

    root.setLevel(desired_level)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(stream_handler)

    try:
        os.makedirs(LOGS, exist_ok=True)
        file_handler = RotatingFileHandler(
            LOG_FILE, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
        )
    except OSError as exc:
        root.debug("File logging disabled: %s", exc)
    else:
        file_handler.setFormatter(
            logging.Formatter("[%(asctime)s] [%(levelname)s] %(name)s: %(message)s")
        )
        root.addHandler(file_handler)

    configure_logging._configured = True  # type: ignore[attr-defined]
    root.debug("Logging configured. Log file: %s", LOG_FILE)
    return LOG_FILE