"""Composite-image path: Gemini paints every frame on one sprite sheet."""
from __future__ import annotations

import base64
import binascii
import io
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from PIL import Image, UnidentifiedImageError

from ..errors import ResponseShapeError
from ..layout import GridPlan
from ..reconcile import reconcile_frames
from ..slicer import FIT_COVER, FIT_NATIVE, slice_grid
from .base import FrameSource, require_list, require_mapping

logger = logging.getLogger(__name__)

DEBUG_UNSLICED = "debug-unsliced.png"


@dataclass(frozen=True)
class GeminiUsage:
    prompt_tokens: int
    candidate_tokens: int


@dataclass(frozen=True)
class GenerateContentResponse:
    image_data: Optional[str]
    mime_type: Optional[str] = None
    usage: Optional[GeminiUsage] = None

    @classmethod
    def from_json(cls, data: Any) -> "GenerateContentResponse":
        payload = require_mapping(data, "response")

        usage = None
        raw_usage = payload.get("usageMetadata")
        if isinstance(raw_usage, dict):
            usage = GeminiUsage(
                int(raw_usage.get("promptTokenCount", 0) or 0),
                int(raw_usage.get("candidatesTokenCount", 0) or 0),
            )

        candidates = require_list(payload.get("candidates", []), "candidates")
        if not candidates:
            return cls(None, usage=usage)
        candidate = require_mapping(candidates[0], "candidate")
        content = require_mapping(candidate.get("content", {}), "candidate content")
        parts = require_list(content.get("parts", []), "content parts")
        for part in parts:
            part = require_mapping(part, "content part")
            inline = part.get("inlineData")
            if isinstance(inline, dict) and inline.get("data"):
                return cls(str(inline["data"]), inline.get("mimeType"), usage)
        return cls(None, usage=usage)


def build_grid_prompt(prompt: str, count: int, columns: int, rows: int) -> str:
    return "\n".join(
        [
            f"Generate a {columns}x{rows} grid of {count} animation frames showing: {prompt}",
            "",
            "CRITICAL INSTRUCTIONS:",
            f"- Create exactly {count} frames arranged in a {columns}-column, {rows}-row grid",
            "- Frame order: left-to-right, top-to-bottom (frame 1 is top-left)",
            "- Each frame shows the next step in a smooth, looping animation",
            "- Use a plain white background in all frames",
            "- All frames must be exactly the same size with clear, straight boundaries between them",
            "- Do NOT draw borders, lines, or dividers between frames",
            "- The animation should loop seamlessly from the last frame back to the first",
            "- The subject should fill most of each frame with minimal padding - avoid large empty margins",
            "- Keep the subject centered and consistently sized across all frames",
            "- ABSOLUTELY NO text of any kind in the image: no frame numbers, no labels, "
            "no captions, no watermarks, no annotations",
        ]
    )


def decode_image(data: str) -> Image.Image:
    try:
        raw = base64.b64decode(data, validate=False)
        image = Image.open(io.BytesIO(raw))
        image.load()
    except (binascii.Error, UnidentifiedImageError, OSError) as exc:
        raise ResponseShapeError(f"image data in API response could not be decoded: {exc}") from exc
    return image


class GeminiSource(FrameSource):
    label = "Gemini"
    credential_env = "GEMINI_API_KEY"

    def build_request(self, plan: GridPlan, prompt_text: str) -> Dict[str, Any]:
        config = self.config
        parts: List[Dict[str, Any]] = [
            {"inlineData": {"mimeType": img.mime_type, "data": img.data}}
            for img in config.inputs
        ]
        parts.append({"text": prompt_text})
        return {
            "contents": [{"parts": parts}],
            "generation_config": {
                "response_modalities": ["TEXT", "IMAGE"],
                "temperature": config.temperature,
                "image_config": {
                    "aspect_ratio": plan.aspect_label,
                    "image_size": config.image_size,
                },
            },
        }

    def request_sheet(self, plan: GridPlan) -> Image.Image:
        config = self.config
        prompt_text = build_grid_prompt(
            config.prompt, config.request.count, plan.columns, plan.rows
        )
        body = self.build_request(plan, prompt_text)
        url = f"{config.gemini_url}/{config.model}:generateContent"

        if config.debug:
            logger.debug("--- Prompt ---")
            logger.debug("%s", prompt_text)
            logger.debug(
                "--- Grid: %dx%d, Aspect ratio: %s ---", plan.columns, plan.rows, plan.aspect_label
            )
            logger.debug("--- API Request ---")
            logger.debug("POST %s?key=***", url)
            logger.debug("%s", json.dumps(body, indent=2)[:4000])

        data = self._post_json(
            url,
            body,
            headers={"Content-Type": "application/json"},
            params={"key": self.api_key},
        )
        response = GenerateContentResponse.from_json(data)
        if response.usage:
            logger.info(
                "Tokens: %d in / %d out",
                response.usage.prompt_tokens,
                response.usage.candidate_tokens,
            )
        if not response.image_data:
            raise ResponseShapeError("no image data in API response")

        sheet = decode_image(response.image_data)
        if config.debug:
            debug_path = os.path.abspath(DEBUG_UNSLICED)
            sheet.save(debug_path, format="PNG")
            logger.debug("--- Saved unsliced image: %s ---", debug_path)
        return sheet

    def frames_from_sheet(self, sheet: Image.Image, plan: GridPlan) -> List[Image.Image]:
        config = self.config
        request = config.request
        if not config.reconcile:
            return slice_grid(
                sheet,
                plan.columns,
                plan.rows,
                request.count,
                request.frame_aspect,
                output_size=request.output_size,
                fit=FIT_COVER,
                inset_ratio=config.inset_ratio,
            )
        cells = slice_grid(
            sheet,
            plan.columns,
            plan.rows,
            request.count,
            request.frame_aspect,
            fit=FIT_NATIVE,
            inset_ratio=config.inset_ratio,
        )
        return reconcile_frames(cells, request.output_size, threshold=config.trim_threshold)

    def generate(self, plan: GridPlan) -> List[Image.Image]:
        return self.frames_from_sheet(self.request_sheet(plan), plan)


__all__ = [
    "GeminiSource",
    "GeminiUsage",
    "GenerateContentResponse",
    "build_grid_prompt",
    "decode_image",
]
