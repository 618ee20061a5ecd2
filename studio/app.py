from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .config import Settings, load_settings
from .errors import ConfigurationError, InvalidRequestError, StudioError
from .gemini_client import GeminiImageClient
from .models import ErrorResponse, GenerateImagePayload, GenerateImageResponse

BASE_DIR = Path(__file__).resolve().parent

log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()
log_level = getattr(logging, log_level_name, logging.INFO)
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

logging.getLogger("studio").setLevel(log_level)
logger = logging.getLogger("studio.proxy")

ENV_PATH = BASE_DIR / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH, override=True)


def create_app(settings: Optional[Settings] = None, gemini: Optional[GeminiImageClient] = None) -> FastAPI:
    """Purpose: Build the FastAPI application with injected configuration.
    Inputs/Outputs: Optional Settings and GeminiImageClient; returns a FastAPI app.
    Side Effects / State: Reads the environment when settings are omitted.
    Dependencies: Uses load_settings and GeminiImageClient.
    Failure Modes: None at startup; configuration gaps surface per request.
    If Removed: No HTTP surface exists for the studio.
    Testing Notes: Pass a client backed by httpx.MockTransport to avoid network.
    """
    settings = settings or load_settings()
    gemini = gemini or GeminiImageClient(settings)
    if not settings.has_credentials:
        logger.warning("GOOGLE_API_KEY is not set; image requests will be rejected")

    app = FastAPI(title="Image Studio")
    app.state.settings = settings
    app.state.gemini = gemini

    @app.exception_handler(StudioError)
    async def handle_studio_error(request: Request, exc: StudioError) -> JSONResponse:
        # Every failure shares the {"error", "details"} body.
        body = ErrorResponse(error=exc.message, details=exc.details)
        return JSONResponse(status_code=exc.status_code, content=body.to_json_dict())

    @app.post("/api/generate-image", response_model=GenerateImageResponse, response_model_exclude_none=True)
    async def generate_image(request: Request) -> JSONResponse:
        """Purpose: Validate a generation request and proxy it to the image model.
        Inputs/Outputs: Raw JSON body matching GenerateImagePayload; returns
            {imageBase64, altText, modelVersion?}.
        Side Effects / State: One outbound call per valid request; stateless.
        Dependencies: Uses GeminiImageClient and StudioError handlers.
        Failure Modes: 500 without credential, 400 for bad JSON or empty prompt,
            vendor status passthrough, 502 when no image is returned.
        If Removed: The UI cannot generate or edit images.
        Testing Notes: Send whitespace prompts and verify no outbound call is made.
        """
        # Credential check comes first so it wins over any payload problem.
        if not settings.has_credentials:
            raise ConfigurationError("GOOGLE_API_KEY is not configured.")
        payload = parse_payload(await request.body())
        result = await gemini.generate_image(payload)
        logger.info("Generated image model_version=%s", result.model_version)
        return JSONResponse(content=result.to_json_dict())

    return app


def parse_payload(raw: bytes) -> GenerateImagePayload:
    """Decode and validate a request body, raising InvalidRequestError on failure."""
    try:
        data = json.loads(raw)
    except ValueError as exc:
        logger.info("Rejected request: invalid JSON")
        raise InvalidRequestError("Invalid JSON payload.", details=str(exc)) from exc
    if not isinstance(data, dict):
        logger.info("Rejected request: body is not an object")
        raise InvalidRequestError("Invalid JSON payload.", details="Expected a JSON object.")

    prompt = data.get("prompt")
    if not isinstance(prompt, str) or not prompt.strip():
        logger.info("Rejected request: empty prompt")
        raise InvalidRequestError("Prompt is required.")
    if data.get("history") is None:
        data = {**data, "history": []}

    try:
        return GenerateImagePayload.model_validate(data)
    except ValidationError as exc:
        logger.info("Rejected request: invalid fields")
        raise InvalidRequestError("Invalid request payload.", details=str(exc)) from exc


app = create_app()
