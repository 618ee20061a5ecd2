"""Client-side conversation state for the image studio.

Holds the ordered chat turns, the selection/seed fields the active image is
derived from, and the request state that keeps submissions single-flight.
The active image is never stored; it is recomputed from the message list,
the selected id and the uploaded seed on every access.
"""

from __future__ import annotations

import enum
import logging
import time
import uuid
from typing import List, Optional

from .client import StudioClient, UNEXPECTED_FAILURE_MESSAGE
from .errors import GenerationFailed
from .models import ActiveImage, ChatMessage, GenerateImagePayload, HistoryEntry

logger = logging.getLogger("studio.conversation")

SEED_IMAGE_ID = "upload"
ASPECT_RATIOS = ["1:1", "3:2", "2:3", "16:9", "9:16", "4:3", "3:4", "21:9"]
IMAGE_SIZES = ["1K", "2K", "4K"]
DEFAULT_ASPECT_RATIO = "1:1"
DEFAULT_IMAGE_SIZE = "1K"

INTRO_MESSAGE = ChatMessage(
    id="intro",
    role="assistant",
    text=(
        "Hi, I am your generative design partner. Describe what you want to see or how to "
        "tweak the current image, and I will regenerate it live for you."
    ),
    created_at=int(time.time() * 1000),
)


class RequestState(enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    ERROR = "error"


def _now_ms() -> int:
    return int(time.time() * 1000)


class ConversationSession:
    """Chat history plus the derived active image for one user."""

    def __init__(self, client: StudioClient) -> None:
        self._client = client
        self._messages: List[ChatMessage] = [INTRO_MESSAGE]
        self.selected_image_id: Optional[str] = None
        self.seed_image: Optional[str] = None
        self.state = RequestState.IDLE
        self.error: Optional[str] = None
        self._aspect_ratio = DEFAULT_ASPECT_RATIO
        self._image_size = DEFAULT_IMAGE_SIZE

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    @property
    def aspect_ratio(self) -> str:
        return self._aspect_ratio

    @aspect_ratio.setter
    def aspect_ratio(self, value: str) -> None:
        if value not in ASPECT_RATIOS:
            raise ValueError(f"Unsupported aspect ratio: {value}")
        self._aspect_ratio = value

    @property
    def image_size(self) -> str:
        return self._image_size

    @image_size.setter
    def image_size(self, value: str) -> None:
        if value not in IMAGE_SIZES:
            raise ValueError(f"Unsupported image size: {value}")
        self._image_size = value

    @property
    def is_busy(self) -> bool:
        return self.state is RequestState.PENDING

    @property
    def input_enabled(self) -> bool:
        return not self.is_busy

    @property
    def assistant_images(self) -> List[ChatMessage]:
        return [m for m in self._messages if m.role == "assistant" and m.image_base64]

    @property
    def active_image(self) -> Optional[ActiveImage]:
        """Seed image first, then the selected history image, else the latest one."""
        if self.seed_image:
            return ActiveImage(id=SEED_IMAGE_ID, image_base64=self.seed_image)
        images = self.assistant_images
        if self.selected_image_id is None:
            latest = images[-1] if images else None
        else:
            latest = next((m for m in images if m.id == self.selected_image_id), None)
        if latest is None:
            return None
        return ActiveImage(id=latest.id, image_base64=latest.image_base64)

    def history(self) -> List[HistoryEntry]:
        """Text-only snapshot of the conversation; image data is left out."""
        return [HistoryEntry(role=m.role, text=m.text) for m in self._messages if m.text]

    async def submit(self, prompt: str) -> Optional[ChatMessage]:
        """Send a prompt and append the generated image to the conversation.

        Returns the new assistant message, or None when the submission was
        ignored (a request is already pending, or the prompt is blank) or
        failed. A failure leaves the messages and image selection as they
        were after the user turn was appended and records ``error``.
        """
        if self.is_busy:
            logger.debug("Ignoring submit while a request is pending")
            return None
        trimmed = prompt.strip()
        if not trimmed:
            return None

        self.error = None
        self.state = RequestState.PENDING
        self._messages.append(
            ChatMessage(id=str(uuid.uuid4()), role="user", text=trimmed, created_at=_now_ms())
        )
        active = self.active_image
        payload = GenerateImagePayload(
            prompt=trimmed,
            history=self.history(),
            base_image=self.seed_image or (active.image_base64 if active else None),
            aspect_ratio=self._aspect_ratio,
            image_size=self._image_size,
        )

        try:
            result = await self._client.generate(payload)
        except GenerationFailed as exc:
            logger.info("Generation failed: %s", exc.message)
            self.error = exc.message
            self.state = RequestState.ERROR
            return None
        except Exception:
            self.error = UNEXPECTED_FAILURE_MESSAGE
            self.state = RequestState.ERROR
            raise

        message = ChatMessage(
            id=str(uuid.uuid4()),
            role="assistant",
            text=result.alt_text,
            image_base64=result.image_base64,
            created_at=_now_ms(),
        )
        self._messages.append(message)
        self.selected_image_id = message.id
        self.seed_image = None
        self.state = RequestState.IDLE
        return message

    def select_image(self, message_id: str) -> None:
        if not any(m.id == message_id for m in self.assistant_images):
            raise KeyError(message_id)
        self.selected_image_id = message_id
        self.seed_image = None

    def upload_seed(self, image: str) -> None:
        # Accepts raw base64 or a data URI.
        data = image.split(",")[-1].strip()
        if not data:
            raise ValueError("Uploaded image is empty.")
        self.seed_image = data
        self.selected_image_id = None

    def reset(self) -> None:
        self._messages = [INTRO_MESSAGE]
        self.selected_image_id = None
        self.seed_image = None
