"""Models for structured generation results."""

from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, Field

from calorie_coach.domain.meals import MealLog, Nutrition


class MealData(BaseModel):
    """Nutrition payload extracted from a food report."""

    name: str | None = None
    calories: float | None = None
    protein: float | None = None
    fat: float | None = None
    carbs: float | None = None


class IntakeDecision(BaseModel):
    """Structured output of the meal intake classifier."""

    is_food_related: bool
    feedback: str
    target_date: str | None = None
    confirmation_message: str | None = None
    meal_data: MealData | None = None


class CoachPersona(BaseModel):
    """Structured output of the coach persona generator."""

    name: str = Field(min_length=1)
    personality: str = Field(min_length=1)
    background: str = Field(min_length=1)
    tone: str = Field(min_length=1)
    greeting: str = Field(min_length=1)
    image_prompt: str = Field(min_length=1)


class IntakeOutcome(StrEnum):
    """How a user turn was resolved."""

    PROPOSED = "proposed"
    NOT_FOOD = "not_food"
    PARSE_FAILED = "parse_failed"
    TRANSPORT_FAILED = "transport_failed"
    IMAGE_REJECTED = "image_rejected"


@dataclass(frozen=True)
class IntakeResult:
    """Reply text plus an optional unconfirmed meal proposal.

    Non-food turns carry all-zero ``nutrition``.
    """

    outcome: IntakeOutcome
    text: str
    meal: MealLog | None = None
    nutrition: Nutrition | None = None
