"""Frame sources, one per supported provider."""
from __future__ import annotations

import os
from typing import Mapping, Optional, Type

from ..config import Provider, RunConfig
from .base import FrameSource
from .claude import ClaudeSource
from .gemini import GeminiSource


def source_class(provider: Provider) -> Type[FrameSource]:
    if provider is Provider.CLAUDE:
        return ClaudeSource
    if provider is Provider.GEMINI:
        return GeminiSource
    raise ValueError(f"Unhandled provider: {provider!r}")


def build_source(config: RunConfig, env: Optional[Mapping[str, str]] = None) -> FrameSource:
    """Instantiate the source for ``config.provider`` with its credential."""

    env = os.environ if env is None else env
    return source_class(config.provider).from_env(config, env)


__all__ = ["ClaudeSource", "FrameSource", "GeminiSource", "build_source", "source_class"]
