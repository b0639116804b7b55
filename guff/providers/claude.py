"""Procedural path: Claude writes a Python program that prints SVG frames."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from PIL import Image

from ..config import RunConfig
from ..errors import ResponseShapeError
from ..layout import GridPlan
from ..procedural import extract_code, run_frame_script
from ..rasterize import rasterize_frames
from .base import FrameSource, require_list, require_mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MessagesUsage:
    input_tokens: int
    output_tokens: int


@dataclass(frozen=True)
class MessagesResponse:
    texts: List[str]
    usage: Optional[MessagesUsage] = None

    @property
    def text(self) -> Optional[str]:
        for text in self.texts:
            if text:
                return text
        return None

    @classmethod
    def from_json(cls, data: Any) -> "MessagesResponse":
        payload = require_mapping(data, "response")
        blocks = require_list(payload.get("content", []), "content")
        texts: List[str] = []
        for block in blocks:
            block = require_mapping(block, "content block")
            if block.get("type") == "text":
                text = block.get("text")
                if not isinstance(text, str):
                    raise ResponseShapeError("unexpected response shape: text block without text")
                texts.append(text)

        usage = None
        raw_usage = payload.get("usage")
        if isinstance(raw_usage, dict):
            usage = MessagesUsage(
                int(raw_usage.get("input_tokens", 0) or 0),
                int(raw_usage.get("output_tokens", 0) or 0),
            )
        return cls(texts, usage)


def build_system_prompt(count: int, width: int, height: int) -> str:
    return f"""You are an animation frame generator. You write Python code that produces SVG strings for animation frames.

OUTPUT FORMAT:
Write a self-contained Python 3 script that:
1. Creates exactly {count} SVG strings, each {width}x{height} pixels
2. Outputs a JSON array of SVG strings to stdout via print(json.dumps(frames))
3. Uses ONLY the Python standard library (json, math) - no third-party packages
4. Each SVG must be a complete, valid SVG document starting with <svg> and ending with </svg>
5. Prints nothing else to stdout

SVG GUIDELINES:
- Use viewBox="0 0 {width} {height}" and xmlns="http://www.w3.org/2000/svg" on each SVG
- Use basic SVG elements: <rect>, <circle>, <ellipse>, <polygon>, <path>, <line>, <text>, <g>
- Use transform attributes for rotation, scaling, translation
- Use math (math.sin, math.cos, math.pi) for smooth animation curves
- Use vibrant, complementary colors - avoid plain black-on-white
- Make subjects large, filling most of the frame
- Keep the subject centered and consistently sized across frames

ANIMATION PRINCIPLES:
- The animation should loop seamlessly (last frame flows back to first)
- Use easing: ease-in-out via sine curves, not linear interpolation
- For N frames, compute progress as t = i / N (not N-1, since it loops)
- Common patterns:
  - Oscillation: math.sin(t * 2 * math.pi)
  - Rotation: angle = t * 360
  - Bounce: abs(math.sin(t * math.pi))
  - Pulse: 1 + 0.2 * math.sin(t * 2 * math.pi)

QUALITY:
- Add visual depth: gradients, shadows, layered shapes
- Use stroke-width >= 2 for outlines
- Add details: highlights, secondary motion, particle effects
- Make it visually polished, not basic placeholder graphics

CODE STRUCTURE TEMPLATE:
import json
import math

frames = []
W = {width}
H = {height}
N = {count}

for i in range(N):
    t = i / N  # 0 to 1, looping
    # ... build the SVG string with f-strings ...
    frames.append(svg)

print(json.dumps(frames))"""


class ClaudeSource(FrameSource):
    label = "Claude"
    credential_env = "ANTHROPIC_API_KEY"

    def build_request(self, system_prompt: str) -> Dict[str, Any]:
        config = self.config
        content: List[Dict[str, Any]] = [
            {
                "type": "image",
                "source": {"type": "base64", "media_type": img.mime_type, "data": img.data},
            }
            for img in config.inputs
        ]
        content.append(
            {
                "type": "text",
                "text": f"Create a {config.request.count}-frame looping animation of: {config.prompt}",
            }
        )
        return {
            "model": config.model,
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
            "system": system_prompt,
            "messages": [{"role": "user", "content": content}],
        }

    def request_code(self) -> str:
        config = self.config
        request = config.request
        system_prompt = build_system_prompt(
            request.count, request.output_width, request.output_height
        )
        body = self.build_request(system_prompt)

        if config.debug:
            logger.debug("--- Claude API Request ---")
            logger.debug("%s", json.dumps({**body, "system": "(see below)"}, indent=2))
            logger.debug("--- System Prompt ---")
            logger.debug("%s", system_prompt)

        data = self._post_json(
            config.anthropic_url,
            body,
            headers={
                "Content-Type": "application/json",
                "x-api-key": self.api_key,
                "anthropic-version": config.anthropic_version,
            },
        )
        response = MessagesResponse.from_json(data)
        if response.usage:
            logger.info(
                "Tokens: %d in / %d out",
                response.usage.input_tokens,
                response.usage.output_tokens,
            )

        text = response.text
        if not text:
            raise ResponseShapeError("no text in Claude API response")

        code = extract_code(text)
        if code is None:
            logger.debug("%s", text[:1000])
            raise ResponseShapeError("could not extract code from Claude's response")
        return code

    def generate(self, plan: GridPlan) -> List[Image.Image]:
        config = self.config
        code = self.request_code()
        svgs = run_frame_script(
            code,
            config.request.count,
            timeout=config.script_timeout,
            keep_script=config.debug,
        )
        return rasterize_frames(svgs, config.request.output_size)


__all__ = ["ClaudeSource", "MessagesResponse", "MessagesUsage", "build_system_prompt"]
