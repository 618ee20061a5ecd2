from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from .errors import GenerationFailed
from .models import GenerateImagePayload, GenerateImageResponse

logger = logging.getLogger("studio.client")

GENERATE_IMAGE_PATH = "/api/generate-image"
DEFAULT_FAILURE_MESSAGE = "Failed to generate image."
UNEXPECTED_FAILURE_MESSAGE = "Unexpected error occurred."


class StudioClient:
    """HTTP client for the studio's generate-image endpoint."""

    def __init__(self, base_url: str = "http://127.0.0.1:8000", transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    async def generate(self, payload: GenerateImagePayload) -> GenerateImageResponse:
        """Post one generation request.

        Every failure, whatever its cause, is raised as GenerationFailed with
        a single human-readable message.
        """
        url = f"{self.base_url}{GENERATE_IMAGE_PATH}"
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
                response = await client.post(url, json=payload.to_json_dict())
        except httpx.HTTPError as exc:
            logger.warning("Request to %s failed: %s", url, exc)
            raise GenerationFailed(str(exc) or UNEXPECTED_FAILURE_MESSAGE) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise GenerationFailed(UNEXPECTED_FAILURE_MESSAGE) from exc

        if response.is_error:
            message = body.get("error") if isinstance(body, dict) else None
            raise GenerationFailed(message if isinstance(message, str) and message else DEFAULT_FAILURE_MESSAGE)

        try:
            return GenerateImageResponse.model_validate(body)
        except ValidationError as exc:
            raise GenerationFailed(UNEXPECTED_FAILURE_MESSAGE) from exc
