"""Free-form coaching replies."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from calorie_coach.domain.meals import MealLog
from calorie_coach.domain.profiles import UserProfile
from calorie_coach.services.generation import GenerationClient, strip_code_fences
from calorie_coach.services.history import (
    DEFAULT_HISTORY_LIMIT,
    Turn,
    sanitize_history,
)
from calorie_coach.services.meals import summarize_day
from calorie_coach.services.prompts import build_chat_instruction

logger = logging.getLogger(__name__)

EMPTY_REPLY_MESSAGE = "（言葉が見つからないようだ……）"
REPLY_FAILURE_MESSAGE = "思考回路にノイズが走ったようだ……もう一度言ってくれるか？"


@dataclass
class CoachingResponder:
    """Plain-prose chat in the coach's voice, without meal extraction."""

    client: GenerationClient
    history_limit: int = DEFAULT_HISTORY_LIMIT

    async def reply(
        self,
        history: Sequence[Turn],
        message: str,
        profile: UserProfile,
        meals: Sequence[MealLog],
        now: datetime,
    ) -> str:
        """Return a coaching reply; never raises and never returns an empty string."""
        try:
            instruction = build_chat_instruction(
                profile, now, summarize_day(meals, now.date(), profile.tdee, now.tzinfo)
            )
            text = await self.client.generate_text(
                system_instruction=instruction,
                history=sanitize_history(history, self.history_limit),
                message=message,
            )
        except Exception:
            logger.exception("Coaching reply failed")
            return REPLY_FAILURE_MESSAGE

        cleaned = strip_code_fences(text)
        if not cleaned:
            logger.warning("Coaching reply was empty")
            return EMPTY_REPLY_MESSAGE
        return cleaned
