"""End-to-end run: preconditions, planning, generation, encoding, preview."""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Mapping, Optional, TextIO

from .assemble import assemble_gif, check_encoder
from .config import Provider, RunConfig
from .display import display_inline
from .layout import plan_grid
from .paths import output_path
from .providers import build_source

logger = logging.getLogger(__name__)


def run(
    config: RunConfig,
    *,
    env: Optional[Mapping[str, str]] = None,
    stream: Optional[TextIO] = None,
) -> Path:
    """Generate one animation and return the written GIF path.

    Encoder and credential checks happen before any provider call, and the
    grid policy rejects unusable frame counts before any network traffic.
    """

    env = os.environ if env is None else env
    version = check_encoder(config.encoder_binary)
    logger.debug("Using %s", version)

    plan = plan_grid(config.request, require_clean_grid=config.provider is Provider.GEMINI)
    source = build_source(config, env)

    logger.info("Generating %d-frame animation...", config.request.count)
    frames = source.generate(plan)

    target = output_path(config.prompt, config.output)
    assemble_gif(
        frames,
        target,
        delay_ms=config.delay_ms,
        colors=config.colors,
        optimize=config.optimize,
        binary=config.encoder_binary,
    )
    logger.info("Saved %s", target.name)
    display_inline(str(target), stream=stream or sys.stdout, env=env)
    return target


__all__ = ["run"]
