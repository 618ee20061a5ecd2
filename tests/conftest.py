"""
Pytest configuration and fixtures for the test suite.

Provides settings, a recording stand-in for the image model API and a
FastAPI TestClient wired to it, so no test touches the network.
"""

import json
from typing import Any, Callable, List

import httpx
import pytest
from fastapi.testclient import TestClient

from studio.app import create_app
from studio.config import Settings
from studio.gemini_client import GeminiImageClient

IMAGE_RESPONSE = {
    "candidates": [
        {
            "content": {
                "parts": [
                    {"text": "A red balloon drifting over a field"},
                    {"inlineData": {"mimeType": "image/png", "data": "iVBORw0KGgo="}},
                ]
            }
        }
    ],
    "modelVersion": "imagen-3.0-generate-002",
}


class VendorStub:
    """Records outbound requests and answers with a canned response."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.status_code = 200
        self.body: Any = IMAGE_RESPONSE

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.body, str):
            return httpx.Response(self.status_code, text=self.body)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        google_api_key="test-key",
        google_image_model="imagen-3.0-generate",
        api_endpoint="https://generativelanguage.googleapis.com",
    )


@pytest.fixture
def vendor() -> VendorStub:
    return VendorStub()


@pytest.fixture
def make_client(vendor: VendorStub) -> Callable[[Settings], TestClient]:
    def _make(settings: Settings) -> TestClient:
        gemini = GeminiImageClient(settings, transport=vendor.transport)
        return TestClient(create_app(settings, gemini))

    return _make


@pytest.fixture
def client(make_client, settings: Settings) -> TestClient:
    return make_client(settings)
