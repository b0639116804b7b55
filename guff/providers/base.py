"""Shared plumbing for the AI providers that produce animation frames."""
from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

import requests
from PIL import Image

from ..config import RunConfig
from ..errors import PreconditionError, ProviderError, ResponseShapeError
from ..layout import GridPlan

logger = logging.getLogger(__name__)


class FrameSource(ABC):
    """One generation path: turns a prompt into a list of finished frames."""

    label: str = ""
    credential_env: str = ""

    def __init__(self, config: RunConfig, api_key: str) -> None:
        self.config = config
        self.api_key = api_key

    @classmethod
    def from_env(cls, config: RunConfig, env: Mapping[str, str]) -> "FrameSource":
        api_key = env.get(cls.credential_env, "")
        if not api_key:
            raise PreconditionError(f"{cls.credential_env} environment variable is required")
        return cls(config, api_key)

    @abstractmethod
    def generate(self, plan: GridPlan) -> List[Image.Image]:
        """Return the ordered frames for ``plan``."""

    # -- HTTP ---------------------------------------------------------------
    def _post_json(
        self,
        url: str,
        body: Dict[str, Any],
        *,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        try:
            response = requests.post(
                url,
                json=body,
                headers=headers,
                params=params,
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as exc:
            raise ProviderError(f"{self.label} API request failed: {exc}") from exc

        if not response.ok:
            raise ProviderError(
                f"{self.label} API returned {response.status_code}: {response.text}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ResponseShapeError(f"{self.label} API returned a non-JSON body") from exc

        if self.config.debug:
            logger.debug("--- %s API Response ---", self.label)
            logger.debug("%s", json.dumps(data, indent=2)[:4000])
        return data


def require_mapping(value: Any, what: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ResponseShapeError(f"unexpected response shape: {what} is not an object")
    return value


def require_list(value: Any, what: str) -> List[Any]:
    if not isinstance(value, list):
        raise ResponseShapeError(f"unexpected response shape: {what} is not a list")
    return value


__all__ = ["FrameSource", "require_list", "require_mapping"]
