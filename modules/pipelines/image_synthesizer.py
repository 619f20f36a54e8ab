"""Remote text-to-image service implementation."""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from config.settings import AppConfig
from modules.countdown.errors import GenerationFailed

logger = logging.getLogger(__name__)


class ImageSynthesizer:
    """Facade around a hosted image-generation model returning raw bytes."""

    def __init__(self, config: AppConfig, session: Optional[Any] = None) -> None:
        self.config = config
        self._session = session

    @property
    def session(self) -> Any:
        """Lazily create the HTTP session."""
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.hf_token or ''}",
            "Accept": "image/*",
        }

    def synthesize(self, prompt: str) -> bytes:
        """Generate an image for ``prompt`` and return the response body unchanged."""
        url = self.config.image_endpoint
        try:
            response = self.session.post(
                url,
                json={"inputs": prompt},
                headers=self._headers(),
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as exc:
            raise GenerationFailed(f"image request to {url} failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            detail = (response.text or "")[:200]
            raise GenerationFailed(f"image request returned HTTP {response.status_code}: {detail}")

        data = response.content
        if not data:
            raise GenerationFailed("image request returned an empty body")

        logger.info("Received %d image bytes from %s", len(data), self.config.image_model)
        return data
