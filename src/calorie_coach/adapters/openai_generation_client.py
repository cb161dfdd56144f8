"""OpenAI-backed generation client."""

import base64
from dataclasses import dataclass

import httpx
from openai import AsyncOpenAI, OpenAIError

from calorie_coach.domain.chat import ChatRole, HistoryTurn
from calorie_coach.services.generation import (
    ContentPart,
    GenerationClient,
    GenerationError,
    ImagePart,
)

AVATAR_SIZE = "1024x1024"


@dataclass
class OpenAIGenerationClient(GenerationClient):
    """Generation client backed by the OpenAI Responses and Images APIs."""

    client: AsyncOpenAI
    http_client: httpx.AsyncClient
    model: str
    image_model: str
    reasoning_effort: str | None = None
    store: bool = False

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        api_key: str,
        *,
        model: str,
        image_model: str,
        reasoning_effort: str | None,
        store: bool,
    ) -> "OpenAIGenerationClient":
        """Create a client with managed OpenAI and httpx sessions."""
        return cls(
            client=AsyncOpenAI(api_key=api_key),
            http_client=httpx.AsyncClient(),
            model=model,
            image_model=image_model,
            reasoning_effort=reasoning_effort,
            store=store,
        )

    async def generate_structured(
        self,
        *,
        system_instruction: str | None,
        parts: list[ContentPart],
        schema: dict[str, object],
        schema_name: str,
    ) -> str:
        """Call the Responses API with a strict JSON schema output format."""
        request_payload = self._base_payload(system_instruction)
        request_payload["input"] = [
            {"role": "user", "content": [_content_item(part) for part in parts]}
        ]
        request_payload["text"] = {
            "format": {
                "type": "json_schema",
                "name": schema_name,
                "strict": True,
                "schema": schema,
            }
        }
        try:
            response = await self.client.responses.create(**request_payload)
        except OpenAIError as exc:
            raise GenerationError(f"Structured generation failed: {exc}") from exc
        return response.output_text or ""

    async def generate_text(
        self,
        *,
        system_instruction: str,
        history: list[HistoryTurn],
        message: str,
    ) -> str:
        """Continue a conversation and return the reply text."""
        request_payload = self._base_payload(system_instruction)
        request_payload["input"] = [
            {"role": _api_role(turn.role), "content": turn.text} for turn in history
        ] + [{"role": "user", "content": message}]
        try:
            response = await self.client.responses.create(**request_payload)
        except OpenAIError as exc:
            raise GenerationError(f"Text generation failed: {exc}") from exc
        return response.output_text or ""

    async def generate_image(self, *, prompt: str) -> str | None:
        """Generate a square avatar and return it as a data URL."""
        try:
            result = await self.client.images.generate(
                model=self.image_model, prompt=prompt, size=AVATAR_SIZE, n=1
            )
        except OpenAIError as exc:
            raise GenerationError(f"Image generation failed: {exc}") from exc
        if not result.data:
            return None
        image = result.data[0]
        if image.b64_json:
            return f"data:image/png;base64,{image.b64_json}"
        if image.url:
            return await self._download_as_data_url(image.url)
        return None

    async def close(self) -> None:
        """Close the underlying HTTP sessions."""
        await self.http_client.aclose()
        await self.client.close()

    async def _download_as_data_url(self, url: str) -> str:
        try:
            response = await self.http_client.get(url, timeout=30)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise GenerationError(f"Avatar download failed: {exc}") from exc
        media_type = response.headers.get("content-type", "image/png").split(";")[0]
        encoded = base64.b64encode(response.content).decode("utf-8")
        return f"data:{media_type};base64,{encoded}"

    def _base_payload(self, system_instruction: str | None) -> dict[str, object]:
        payload: dict[str, object] = {"model": self.model, "store": self.store}
        if system_instruction:
            payload["instructions"] = system_instruction
        if self.reasoning_effort:
            payload["reasoning"] = {"effort": self.reasoning_effort}
        return payload


def _content_item(part: ContentPart) -> dict[str, object]:
    if isinstance(part, ImagePart):
        return {"type": "input_image", "image_url": part.data_url}
    return {"type": "input_text", "text": part.text}


def _api_role(role: ChatRole) -> str:
    return "assistant" if role == ChatRole.MODEL else "user"
