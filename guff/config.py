"""Settings file loader and the immutable per-run configuration.

``~/.guff/config.json`` (or the file named by ``GUFF_CONFIG``) stores CLI
defaults and the tunable constants used by slicing, script execution and
encoding.  When the file is missing a default copy is written so users have
something to edit.  A :class:`RunConfig` is built once per invocation from
those settings plus the command line, and handed to every component.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from .errors import InputError
from .inputs import InputImage
from .layout import FrameRequest

GUFF_DIR = Path(os.environ.get("GUFF_HOME", Path.home() / ".guff"))
CONFIG_PATH = Path(os.environ.get("GUFF_CONFIG", GUFF_DIR / "config.json"))

RESOLUTIONS: Dict[str, str] = {
    "1k": "1K",
    "2k": "2K",
    "4k": "4K",
}

_DEFAULT_CONFIG: Dict[str, Any] = {
    "defaults": {
        "frames": 32,
        "delay_ms": 100,
        "size": "128x128",
        "aspect": "1:1",
        "resolution": "1k",
        "temperature": 1.0,
        "model": "claude/claude-sonnet-4-6",
        "colors": 256,
    },
    "slicing": {
        "inset_ratio": 0.03,
        "trim_threshold": 20,
    },
    "script": {
        "timeout_seconds": 30,
    },
    "encoder": {
        "binary": "gifsicle",
        "optimize": 3,
    },
    "providers": {
        "anthropic_url": "https://api.anthropic.com/v1/messages",
        "anthropic_version": "2023-06-01",
        "max_tokens": 4096,
        "gemini_url": "https://generativelanguage.googleapis.com/v1beta/models",
        "request_timeout_seconds": 300,
    },
}


def default_config() -> Dict[str, Any]:
    return json.loads(json.dumps(_DEFAULT_CONFIG))


def _write_default(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(_DEFAULT_CONFIG, handle, indent=2, sort_keys=True)
        handle.write("\n")


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Return the settings, creating or repairing the file if necessary."""

    path = Path(path) if path is not None else CONFIG_PATH
    if not path.exists():
        _write_default(path)
        return default_config()

    with path.open("r", encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError:
            data = None

    if not isinstance(data, dict):
        # Corrupt settings are replaced so the next run starts clean.
        _write_default(path)
        return default_config()

    merged = default_config()
    for key, value in data.items():
        if isinstance(merged.get(key), dict):
            if isinstance(value, dict):
                merged[key].update(value)
            # a section of the wrong type keeps its defaults
        else:
            merged[key] = value
    return merged


class Provider(str, Enum):
    CLAUDE = "claude"
    GEMINI = "gemini"


def parse_model(value: str) -> Tuple[Provider, str]:
    """Split ``provider/model``.  A bare model name is treated as Gemini."""

    if "/" in value:
        name, model = value.split("/", 1)
    else:
        name, model = Provider.GEMINI.value, value
    try:
        provider = Provider(name)
    except ValueError:
        supported = ", ".join(p.value for p in Provider)
        raise InputError(f'unsupported provider "{name}". Supported: {supported}') from None
    if not model:
        raise InputError("model name is required after the provider prefix")
    return provider, model


@dataclass(frozen=True)
class RunConfig:
    prompt: str
    request: FrameRequest
    provider: Provider
    model: str
    delay_ms: int = 100
    colors: int = 256
    image_size: str = "1K"
    temperature: float = 1.0
    inputs: Sequence[InputImage] = ()
    output: Optional[Path] = None
    debug: bool = False
    reconcile: bool = False
    inset_ratio: float = 0.03
    trim_threshold: int = 20
    script_timeout: float = 30
    encoder_binary: str = "gifsicle"
    optimize: int = 3
    anthropic_url: str = _DEFAULT_CONFIG["providers"]["anthropic_url"]
    anthropic_version: str = _DEFAULT_CONFIG["providers"]["anthropic_version"]
    max_tokens: int = 4096
    gemini_url: str = _DEFAULT_CONFIG["providers"]["gemini_url"]
    request_timeout: float = 300

    @classmethod
    def from_settings(cls, settings: Dict[str, Any], **values: Any) -> "RunConfig":
        """Build a run config with tunables taken from ``settings``.

        Raises :class:`InputError` naming the offending key when a value in
        the settings file cannot be converted.
        """

        def setting(section: str, key: str, convert: Callable[[Any], Any], default: Any) -> Any:
            table = settings.get(section)
            if not isinstance(table, dict):
                return default
            value = table.get(key, default)
            try:
                return convert(value)
            except (TypeError, ValueError):
                raise InputError(
                    f"invalid setting {section}.{key}: {value!r} in {CONFIG_PATH}"
                ) from None

        tunables = {
            "inset_ratio": setting("slicing", "inset_ratio", float, cls.inset_ratio),
            "trim_threshold": setting("slicing", "trim_threshold", int, cls.trim_threshold),
            "script_timeout": setting("script", "timeout_seconds", float, cls.script_timeout),
            "encoder_binary": setting("encoder", "binary", str, cls.encoder_binary),
            "optimize": setting("encoder", "optimize", int, cls.optimize),
            "anthropic_url": setting("providers", "anthropic_url", str, cls.anthropic_url),
            "anthropic_version": setting(
                "providers", "anthropic_version", str, cls.anthropic_version
            ),
            "max_tokens": setting("providers", "max_tokens", int, cls.max_tokens),
            "gemini_url": setting("providers", "gemini_url", str, cls.gemini_url),
            "request_timeout": setting(
                "providers", "request_timeout_seconds", float, cls.request_timeout
            ),
        }
        tunables.update(values)
        return cls(**tunables)


__all__ = [
    "CONFIG_PATH",
    "GUFF_DIR",
    "Provider",
    "RESOLUTIONS",
    "RunConfig",
    "default_config",
    "load_config",
    "parse_model",
]
