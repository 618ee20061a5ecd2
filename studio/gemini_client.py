from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from .config import Settings
from .errors import ConfigurationError, UpstreamContractError, UpstreamError
from .models import GenerateImagePayload, GenerateImageResponse, HistoryEntry

logger = logging.getLogger("studio.gemini")

DATA_URI_PREFIX = re.compile(r"^data:image/\w+;base64,")
INLINE_IMAGE_MIME_TYPE = "image/png"
RESPONSE_MIME_TYPE = "image/png"
RESPONSE_MODALITIES = ["IMAGE"]


class GeminiImageClient:
    """Thin REST wrapper around the generateContent endpoint for image output."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        """Purpose: Keep settings and an optional transport for outbound calls.
        Inputs/Outputs: Input is Settings and an optional httpx transport; no return value.
        Side Effects / State: None; a fresh HTTP client is opened per request.
        Dependencies: Uses httpx and Settings from config.
        Failure Modes: None at construction; a missing key is reported by generate_image.
        If Removed: The proxy cannot reach the image model.
        Testing Notes: Inject httpx.MockTransport to capture outbound requests.
        """
        self._settings = settings
        self._transport = transport
        self._model = _normalize_model_name(settings.google_image_model)

    @property
    def endpoint(self) -> str:
        return f"{self._settings.api_endpoint}/v1beta/models/{self._model}:generateContent"

    async def generate_image(self, payload: GenerateImagePayload) -> GenerateImageResponse:
        """Purpose: Send one generation request and normalize the model response.
        Inputs/Outputs: Input is a validated payload; returns GenerateImageResponse.
        Side Effects / State: One outbound HTTP POST; no retries.
        Dependencies: Uses build_request_body and parse_generation_response.
        Failure Modes: ConfigurationError without a key; UpstreamError on vendor
            non-2xx; UpstreamContractError when no image comes back.
        If Removed: The generate-image endpoint has nothing to call.
        Testing Notes: Check headers, URL and body captured by a mock transport.
        """
        # Refuse before any network traffic when the credential is missing.
        if not self._settings.has_credentials:
            raise ConfigurationError("GOOGLE_API_KEY is not configured.")
        body = build_request_body(payload)
        parts = body["contents"][0]["parts"]
        logger.info(
            "Calling model=%s parts=%d base_image=%s",
            self._model,
            len(parts),
            payload.base_image is not None,
        )
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self._settings.google_api_key,
        }
        async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
            response = await client.post(self.endpoint, headers=headers, json=body)

        if response.is_error:
            logger.warning("Model call failed with status %d", response.status_code)
            raise UpstreamError(response.status_code, _read_error_body(response))

        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamContractError("Invalid response from the model.", details=response.text) from exc
        return parse_generation_response(data, payload.prompt)


def strip_data_uri(image: str) -> str:
    """Remove a leading ``data:image/<type>;base64,`` prefix, if any."""
    return DATA_URI_PREFIX.sub("", image, count=1)


def flatten_history(history: List[HistoryEntry]) -> str:
    """Purpose: Convert chat history into speaker-prefixed lines.
    Inputs/Outputs: Input is a list of HistoryEntry; output is newline-joined text.
    Side Effects / State: None.
    Dependencies: Used by build_request_body.
    Failure Modes: Entries without text are skipped; returns "" when nothing remains.
    If Removed: The model loses conversational context between edits.
    Testing Notes: Verify "User:"/"Assistant:" prefixes and skipped empty entries.
    """
    # Prefix each turn with its speaker and drop text-less turns.
    lines: list[str] = []
    for entry in history:
        if not entry.text:
            continue
        speaker = "Assistant" if entry.role == "assistant" else "User"
        lines.append(f"{speaker}: {entry.text}")
    return "\n".join(lines)


def build_generation_config(aspect_ratio: Optional[str], image_size: Optional[str]) -> Dict[str, Any]:
    """Request image output; imageConfig carries only the hints actually given."""
    config: Dict[str, Any] = {
        "responseMimeType": RESPONSE_MIME_TYPE,
        "responseModalities": list(RESPONSE_MODALITIES),
    }
    image_config: Dict[str, str] = {}
    if aspect_ratio:
        image_config["aspectRatio"] = aspect_ratio
    if image_size:
        image_config["imageSize"] = image_size
    if image_config:
        config["imageConfig"] = image_config
    return config


def build_request_body(payload: GenerateImagePayload) -> Dict[str, Any]:
    """Purpose: Assemble the generateContent body for a generation request.
    Inputs/Outputs: Input is a GenerateImagePayload; output is the JSON-ready body.
    Side Effects / State: None; pure function.
    Dependencies: Uses flatten_history, strip_data_uri, build_generation_config.
    Failure Modes: None; assumes the prompt was validated upstream.
    If Removed: Requests to the model cannot be built.
    Testing Notes: A lone prompt yields exactly one text part; a base image
        precedes the text as inline data with its data-URI prefix removed.
    """
    # Base image first, then history plus the latest prompt as one text block.
    parts: List[Dict[str, Any]] = []
    if payload.base_image:
        parts.append(
            {
                "inlineData": {
                    "mimeType": INLINE_IMAGE_MIME_TYPE,
                    "data": strip_data_uri(payload.base_image),
                }
            }
        )

    context_text = flatten_history(payload.history)
    if context_text:
        combined_prompt = f"{context_text}\nUser (latest request): {payload.prompt}"
    else:
        combined_prompt = payload.prompt
    parts.append({"text": combined_prompt})

    return {
        "contents": [{"role": "user", "parts": parts}],
        "generationConfig": build_generation_config(payload.aspect_ratio, payload.image_size),
    }


def parse_generation_response(data: Any, prompt: str) -> GenerateImageResponse:
    """Purpose: Extract the image and caption from a generateContent response.
    Inputs/Outputs: Input is the decoded vendor body and original prompt;
        output is GenerateImageResponse.
    Side Effects / State: None.
    Dependencies: Used by GeminiImageClient.generate_image.
    Failure Modes: UpstreamContractError (502) carrying the whole payload when
        the first candidate has no part with inlineData.data.
    If Removed: Vendor responses cannot be normalized for the UI.
    Testing Notes: Check the default caption when no text part is returned.
    """
    # Only the first candidate is considered.
    parts: List[Any] = []
    if isinstance(data, dict):
        candidates = data.get("candidates") or []
        if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
            content = candidates[0].get("content") or {}
            if isinstance(content, dict):
                parts = content.get("parts") or []

    image_data = None
    for part in parts:
        inline = part.get("inlineData") if isinstance(part, dict) else None
        if isinstance(inline, dict) and inline.get("data"):
            image_data = inline["data"]
            break
    if image_data is None:
        logger.warning("Model response contained no inline image data")
        raise UpstreamContractError("No image data returned by the model.", details=data)

    alt_text = next(
        (part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)),
        f"AI generated artwork inspired by: {prompt}",
    )
    model_version = data.get("modelVersion")
    return GenerateImageResponse(
        image_base64=image_data,
        alt_text=alt_text,
        model_version=model_version if isinstance(model_version, str) else None,
    )


def _read_error_body(response: httpx.Response) -> Any:
    # Prefer the structured error body and fall back to raw text.
    try:
        return response.json()
    except ValueError:
        return response.text


def _normalize_model_name(name: Optional[str]) -> str:
    """Purpose: Normalize model names by stripping prefix and whitespace.
    Inputs/Outputs: Input is a model name string; output is the bare model id.
    Side Effects / State: None.
    Dependencies: Used by GeminiImageClient to build the endpoint URL.
    Failure Modes: Returns empty string for falsy input.
    If Removed: A "models/foo" setting would produce "models/models/foo" URLs.
    Testing Notes: Ensure "models/foo" becomes "foo" and whitespace is trimmed.
    """
    # Strip "models/" prefix and whitespace.
    if not name:
        return ""
    cleaned = name.strip()
    if cleaned.startswith("models/"):
        return cleaned.split("/", 1)[1]
    return cleaned
