"""Coach persona generation."""

import logging
from dataclasses import dataclass, replace

from calorie_coach.domain.intake import CoachPersona
from calorie_coach.domain.profiles import DEFAULT_COACH, CoachProfile
from calorie_coach.services.generation import (
    GenerationClient,
    TextPart,
    parse_structured,
)
from calorie_coach.services.prompts import build_persona_prompt

logger = logging.getLogger(__name__)

PERSONA_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "personality": {"type": "string"},
        "background": {"type": "string"},
        "tone": {"type": "string"},
        "greeting": {"type": "string"},
        "image_prompt": {"type": "string"},
    },
    "required": [
        "name",
        "personality",
        "background",
        "tone",
        "greeting",
        "image_prompt",
    ],
    "additionalProperties": False,
}


@dataclass
class CoachService:
    """Generates coach personas and their avatars."""

    client: GenerationClient

    async def create_new_coach(self, style_hint: str | None = None) -> CoachProfile:
        """Return a freshly generated coach, or the default coach on failure.

        Never raises: onboarding and coach replacement depend on a result.
        """
        try:
            raw = await self.client.generate_structured(
                system_instruction=None,
                parts=[TextPart(build_persona_prompt(style_hint))],
                schema=PERSONA_SCHEMA,
                schema_name="coach_persona",
            )
            persona = parse_structured(raw, CoachPersona)
            coach = CoachProfile(
                name=persona.name.strip(),
                personality=persona.personality.strip(),
                background=persona.background.strip(),
                tone=persona.tone.strip(),
                greeting=persona.greeting.strip(),
            )
        except Exception:
            logger.exception("Coach generation failed", extra={"style": style_hint})
            return replace(DEFAULT_COACH, avatar_url="")

        avatar_url = await self._generate_avatar(persona.image_prompt)
        return replace(coach, avatar_url=avatar_url)

    async def _generate_avatar(self, prompt: str) -> str:
        try:
            generated = await self.client.generate_image(prompt=prompt)
        except Exception:
            logger.warning("Avatar generation skipped", exc_info=True)
            return ""
        return generated or ""
