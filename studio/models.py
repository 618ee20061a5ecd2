from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ChatRole = Literal["user", "assistant"]


class CamelModel(BaseModel):
    """Base model exposing camelCase JSON field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class HistoryEntry(CamelModel):
    """Text-only view of a chat turn sent as generation context."""
    role: ChatRole
    text: Optional[str] = None


class GenerateImagePayload(CamelModel):
    """Request payload for the image generation API."""
    prompt: str
    history: List[HistoryEntry] = Field(default_factory=list)
    base_image: Optional[str] = None
    aspect_ratio: Optional[str] = None
    image_size: Optional[str] = None


class GenerateImageResponse(CamelModel):
    """Normalized result returned by the image generation API."""
    image_base64: str
    alt_text: str
    model_version: Optional[str] = None


class ErrorResponse(CamelModel):
    """Error body shared by every failed API response."""
    error: str
    details: Optional[Any] = None


class ChatMessage(CamelModel):
    """A single chat turn; frozen once created."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    role: ChatRole
    text: Optional[str] = None
    image_base64: Optional[str] = None
    created_at: int


class ActiveImage(BaseModel):
    """The image used as the base for the next generation."""
    model_config = ConfigDict(frozen=True)

    id: str
    image_base64: str
