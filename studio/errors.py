from __future__ import annotations

from typing import Any, Optional


class StudioError(Exception):
    """Base error rendered by the API as ``{"error": ..., "details": ...}``."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(StudioError):
    """The server is missing configuration it needs to serve the request."""

    status_code = 500


class InvalidRequestError(StudioError):
    """The client sent a payload that cannot be processed."""

    status_code = 400


class UpstreamError(StudioError):
    """The image model API answered with a non-success status."""

    def __init__(self, status_code: int, details: Any) -> None:
        super().__init__("Image generation failed.", details=details, status_code=status_code)


class UpstreamContractError(StudioError):
    """The image model API succeeded but returned nothing usable."""

    status_code = 502


class GenerationFailed(Exception):
    """Client-side failure carrying the single message shown to the user."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
