from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

DEFAULT_IMAGE_MODEL = "imagen-3.0-generate"
DEFAULT_API_ENDPOINT = "https://generativelanguage.googleapis.com"


@dataclass(frozen=True)
class Settings:
    """Configuration container for the image model credential and endpoint."""
    google_api_key: str
    google_image_model: str
    api_endpoint: str

    @property
    def has_credentials(self) -> bool:
        """True when an API key is configured (blank keys count as missing)."""
        return bool(self.google_api_key.strip())


def load_settings() -> Settings:
    """Purpose: Load configuration from environment variables and defaults.
    Inputs/Outputs: No inputs; returns a Settings instance.
    Side Effects / State: Reads environment variables.
    Dependencies: Uses os.getenv.
    Failure Modes: None; a missing GOOGLE_API_KEY yields an empty key that the
        proxy reports per request instead of failing at startup.
    If Removed: The app cannot resolve the model or credential.
    Testing Notes: Verify defaults and overrides via environment variables.
    """
    # Read credential, model and endpoint with defaults for the optional ones.
    endpoint = os.getenv("GOOGLE_API_ENDPOINT") or DEFAULT_API_ENDPOINT
    return Settings(
        google_api_key=os.getenv("GOOGLE_API_KEY", ""),
        google_image_model=os.getenv("GOOGLE_IMAGE_MODEL") or DEFAULT_IMAGE_MODEL,
        api_endpoint=endpoint.rstrip("/"),
    )
