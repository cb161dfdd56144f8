"""Domain models for meal logging."""

import math
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID, uuid4


@dataclass(frozen=True)
class Nutrition:
    """Normalized calories and macros for a meal."""

    calories: int
    protein: float
    fat: float
    carbs: float


ZERO_NUTRITION = Nutrition(calories=0, protein=0.0, fat=0.0, carbs=0.0)


def normalize_nutrition(
    calories: object, protein: object, fat: object, carbs: object
) -> Nutrition:
    """Clamp and round raw nutrition values.

    Missing, non-numeric or negative values become zero. Calories round to
    whole kcal and macros to one decimal place, with ties rounding up.
    """
    return Nutrition(
        calories=int(round_half_up(_non_negative(calories))),
        protein=round_half_up(_non_negative(protein), 1),
        fat=round_half_up(_non_negative(fat), 1),
        carbs=round_half_up(_non_negative(carbs), 1),
    )


@dataclass(frozen=True)
class MealLog:
    """One recorded (or proposed) eating event."""

    id: UUID
    logged_at: datetime
    name: str
    calories: int
    protein: float
    fat: float
    carbs: float
    image_url: str | None = None
    confirmation_message: str | None = None

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        *,
        logged_at: datetime,
        name: str,
        calories: object,
        protein: object,
        fat: object,
        carbs: object,
        image_url: str | None = None,
        confirmation_message: str | None = None,
        meal_id: UUID | None = None,
    ) -> "MealLog":
        """Build a meal log with normalized nutrition values."""
        nutrition = normalize_nutrition(calories, protein, fat, carbs)
        return cls(
            id=meal_id or uuid4(),
            logged_at=logged_at,
            name=name,
            calories=nutrition.calories,
            protein=nutrition.protein,
            fat=nutrition.fat,
            carbs=nutrition.carbs,
            image_url=image_url,
            confirmation_message=confirmation_message,
        )

    @property
    def timestamp(self) -> int:
        """Epoch milliseconds of ``logged_at``."""
        return int(self.logged_at.timestamp() * 1000)


@dataclass(frozen=True)
class DailySummary:
    """Totals for one calendar day against the calorie target."""

    day: date
    calories: int
    protein: float
    fat: float
    carbs: float
    target: int

    @property
    def remaining(self) -> int:
        return self.target - self.calories


def _non_negative(value: object) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return 0.0
    else:
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def round_half_up(value: float, places: int = 0) -> float:
    """Round to ``places`` decimals with exact ties going away from zero."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
