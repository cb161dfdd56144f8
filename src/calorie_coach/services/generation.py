"""Boundary to the external text and image generation capability."""

import json
import re
from dataclasses import dataclass
from typing import Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from calorie_coach.domain.chat import HistoryTurn

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*")


class GenerationError(RuntimeError):
    """Raised when the generation service cannot be reached or fails."""


class ResponseParseError(ValueError):
    """Raised when a structured response is malformed or incomplete."""


@dataclass(frozen=True)
class TextPart:
    """Plain text content part."""

    text: str


@dataclass(frozen=True)
class ImagePart:
    """Inline base64 image content part."""

    data: str
    media_type: str

    @property
    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.data}"


ContentPart = TextPart | ImagePart


class GenerationClient(Protocol):
    """Interface for the generative model service."""

    async def generate_structured(
        self,
        *,
        system_instruction: str | None,
        parts: list[ContentPart],
        schema: dict[str, object],
        schema_name: str,
    ) -> str:
        """Return the raw JSON text produced for ``schema``."""

    async def generate_text(
        self,
        *,
        system_instruction: str,
        history: list[HistoryTurn],
        message: str,
    ) -> str:
        """Return a plain-text reply continuing ``history`` with ``message``."""

    async def generate_image(self, *, prompt: str) -> str | None:
        """Return a data URL for a generated image, if one was produced."""


def strip_code_fences(text: str | None) -> str:
    """Remove markdown code fence markers around model output."""
    if not text:
        return ""
    return _FENCE_PATTERN.sub("", text).strip()


def parse_structured(raw_text: str | None, model: type[ModelT]) -> ModelT:
    """Decode and validate a structured response.

    Every failure mode (empty text, invalid JSON, non-object payload, missing
    or mistyped fields) raises ``ResponseParseError``.
    """
    cleaned = strip_code_fences(raw_text)
    if not cleaned:
        raise ResponseParseError("Empty structured response")
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ResponseParseError("Structured response is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise ResponseParseError("Structured response is not a JSON object")
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ResponseParseError(str(exc)) from exc
