"""Meal intake classification and nutrition extraction."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from calorie_coach.domain.intake import IntakeDecision, IntakeOutcome, IntakeResult
from calorie_coach.domain.meals import ZERO_NUTRITION, MealLog, normalize_nutrition
from calorie_coach.domain.profiles import UserProfile
from calorie_coach.services.generation import (
    ContentPart,
    GenerationClient,
    ImagePart,
    ResponseParseError,
    TextPart,
    parse_structured,
)
from calorie_coach.services.history import (
    DEFAULT_HISTORY_LIMIT,
    Turn,
    format_recent_context,
    sanitize_history,
)
from calorie_coach.services.images import NormalizedImage
from calorie_coach.services.prompts import (
    build_intake_prompt,
    build_system_instruction,
)

logger = logging.getLogger(__name__)

PARSE_FAILURE_MESSAGE = "データの解析に失敗しました。もう一度試してください。"
TRANSPORT_FAILURE_MESSAGE = (
    "ごめんね、ちょっと通信の調子が悪いみたい。もう一回送ってくれる？"
)
DEFAULT_FEEDBACK = "承知しました。"
DEFAULT_MEAL_NAME = "名称不明の食事"
DEFAULT_CONFIRMATION = "記録しました！"
DEFAULT_BACKDATE_LIMIT_DAYS = 30

INTAKE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "is_food_related": {
            "type": "boolean",
            "description": "Whether the input reports eating or drinking",
        },
        "feedback": {
            "type": "string",
            "description": "Reply to the user in the coach's tone",
        },
        "confirmation_message": {
            "type": "string",
            "description": "Short message shown once the log is accepted",
        },
        "target_date": {
            "type": "string",
            "description": "Day the meal was eaten (YYYY-MM-DD)",
        },
        "meal_data": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "calories": {"type": "number"},
                "protein": {"type": "number"},
                "fat": {"type": "number"},
                "carbs": {"type": "number"},
            },
            "required": ["name", "calories", "protein", "fat", "carbs"],
            "additionalProperties": False,
        },
    },
    "required": [
        "is_food_related",
        "feedback",
        "confirmation_message",
        "target_date",
        "meal_data",
    ],
    "additionalProperties": False,
}


@dataclass(frozen=True)
class MealInput:
    """User input for one turn: text, a normalized photo, or both."""

    text: str = ""
    image: NormalizedImage | None = None

    def content_parts(self) -> list[ContentPart]:
        if self.image is None:
            return [TextPart(self.text)]
        parts: list[ContentPart] = [
            ImagePart(data=self.image.data, media_type=self.image.media_type)
        ]
        if self.text.strip():
            parts.append(TextPart(f"(Supplementary text from the user: {self.text})"))
        return parts


@dataclass
class MealIntakeService:
    """Decides whether a turn is a food report and extracts a meal proposal."""

    client: GenerationClient
    context_turns: int = 5
    history_limit: int = DEFAULT_HISTORY_LIMIT
    backdate_limit_days: int = DEFAULT_BACKDATE_LIMIT_DAYS

    async def analyze(
        self,
        meal_input: MealInput,
        profile: UserProfile,
        history: Sequence[Turn],
        now: datetime,
    ) -> IntakeResult:
        """Classify the input and build an unconfirmed proposal when it is food."""
        recent = format_recent_context(
            sanitize_history(history, self.history_limit), self.context_turns
        )
        parts = meal_input.content_parts()
        parts.append(TextPart(build_intake_prompt(profile, now, recent)))
        try:
            raw = await self.client.generate_structured(
                system_instruction=build_system_instruction(profile),
                parts=parts,
                schema=INTAKE_SCHEMA,
                schema_name="meal_intake",
            )
        except Exception:
            logger.exception("Meal intake generation failed")
            return IntakeResult(
                IntakeOutcome.TRANSPORT_FAILED, TRANSPORT_FAILURE_MESSAGE
            )

        try:
            decision = parse_structured(raw, IntakeDecision)
        except ResponseParseError:
            logger.warning("Meal intake response could not be parsed", exc_info=True)
            return IntakeResult(IntakeOutcome.PARSE_FAILED, PARSE_FAILURE_MESSAGE)

        feedback = decision.feedback.strip() or DEFAULT_FEEDBACK
        if not decision.is_food_related or decision.meal_data is None:
            _log_stray_nutrition(decision)
            return IntakeResult(
                IntakeOutcome.NOT_FOOD, feedback, nutrition=ZERO_NUTRITION
            )

        return IntakeResult(
            IntakeOutcome.PROPOSED,
            feedback,
            build_proposal(
                decision,
                now,
                image_url=meal_input.image.data_url if meal_input.image else None,
                backdate_limit_days=self.backdate_limit_days,
            ),
        )


def build_proposal(
    decision: IntakeDecision,
    now: datetime,
    *,
    image_url: str | None = None,
    backdate_limit_days: int = DEFAULT_BACKDATE_LIMIT_DAYS,
) -> MealLog:
    """Turn a food decision into a normalized meal proposal."""
    meal_data = decision.meal_data
    if meal_data is None:
        raise ValueError("A proposal needs meal data")
    name = (meal_data.name or "").strip() or DEFAULT_MEAL_NAME
    confirmation = (decision.confirmation_message or "").strip() or DEFAULT_CONFIRMATION
    return MealLog.create(
        logged_at=resolve_logged_at(decision.target_date, now, backdate_limit_days),
        name=name,
        calories=meal_data.calories,
        protein=meal_data.protein,
        fat=meal_data.fat,
        carbs=meal_data.carbs,
        image_url=image_url,
        confirmation_message=confirmation,
    )


def resolve_logged_at(
    target_date: str | None,
    now: datetime,
    backdate_limit_days: int = DEFAULT_BACKDATE_LIMIT_DAYS,
) -> datetime:
    """Combine the target day with the current time of day.

    Unparseable dates, future dates and dates older than
    ``backdate_limit_days`` resolve to today.
    """
    today = now.date()
    day = _parse_day(target_date)
    if day is None:
        day = today
    elif day > today or day < today - timedelta(days=backdate_limit_days):
        logger.warning(
            "Target date out of range, using today",
            extra={"target_date": target_date},
        )
        day = today
    return now.replace(year=day.year, month=day.month, day=day.day, microsecond=0)


def _parse_day(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def _log_stray_nutrition(decision: IntakeDecision) -> None:
    meal_data = decision.meal_data
    if meal_data is None:
        return
    reported = normalize_nutrition(
        meal_data.calories, meal_data.protein, meal_data.fat, meal_data.carbs
    )
    if reported != ZERO_NUTRITION:
        logger.debug("Discarding nutrition reported for a non-food turn")
