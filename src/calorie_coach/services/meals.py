"""Meal logging service."""

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date, datetime, tzinfo
from typing import Protocol
from uuid import UUID

from calorie_coach.domain.meals import (
    DailySummary,
    MealLog,
    normalize_nutrition,
    round_half_up,
)


class MealLogRepository(Protocol):
    """Persistence interface for meal logs."""

    def create_meal(self, user_id: UUID, meal: MealLog) -> MealLog:
        """Persist a meal and return it with its stored id."""

    def get_meal(self, user_id: UUID, meal_id: UUID) -> MealLog | None:
        """Return a meal by id, if present."""

    def list_meals(self, user_id: UUID) -> list[MealLog]:
        """Return all meals for a user ordered by time eaten."""

    def update_meal(self, user_id: UUID, meal: MealLog) -> None:
        """Replace a stored meal."""

    def delete_meal(self, user_id: UUID, meal_id: UUID) -> None:
        """Delete a meal by id."""


@dataclass
class MealLogService:
    """Service for confirmed meal logs."""

    repository: MealLogRepository

    def record(self, user_id: UUID, proposal: MealLog) -> MealLog:
        """Persist a confirmed proposal."""
        return self.repository.create_meal(user_id, proposal)

    def list_meals(self, user_id: UUID) -> list[MealLog]:
        """Return every meal logged by the user."""
        return self.repository.list_meals(user_id)

    def update_meal(
        self, user_id: UUID, meal_id: UUID, changes: dict[str, object]
    ) -> MealLog | None:
        """Apply edits to a meal, re-normalizing its nutrition values."""
        meal = self.repository.get_meal(user_id, meal_id)
        if meal is None:
            return None
        nutrition = normalize_nutrition(
            changes.get("calories", meal.calories),
            changes.get("protein", meal.protein),
            changes.get("fat", meal.fat),
            changes.get("carbs", meal.carbs),
        )
        name = str(changes.get("name") or meal.name)
        logged_at = changes.get("logged_at")
        updated = replace(
            meal,
            name=name,
            calories=nutrition.calories,
            protein=nutrition.protein,
            fat=nutrition.fat,
            carbs=nutrition.carbs,
            logged_at=logged_at if isinstance(logged_at, datetime) else meal.logged_at,
        )
        self.repository.update_meal(user_id, updated)
        return updated

    def delete_meal(self, user_id: UUID, meal_id: UUID) -> bool:
        """Delete a meal; return False when it does not exist."""
        if self.repository.get_meal(user_id, meal_id) is None:
            return False
        self.repository.delete_meal(user_id, meal_id)
        return True

    def daily_summary(
        self, user_id: UUID, day: date, target: int, tz: tzinfo
    ) -> DailySummary:
        """Return totals for ``day`` in the given timezone."""
        return summarize_day(self.repository.list_meals(user_id), day, target, tz)


def summarize_day(
    meals: Iterable[MealLog], day: date, target: int, tz: tzinfo | None
) -> DailySummary:
    """Aggregate the meals eaten on ``day``."""
    calories = 0
    protein = fat = carbs = 0.0
    for meal in meals:
        if meal.logged_at.astimezone(tz).date() != day:
            continue
        calories += meal.calories
        protein += meal.protein
        fat += meal.fat
        carbs += meal.carbs
    return DailySummary(
        day=day,
        calories=calories,
        protein=round_half_up(protein, 1),
        fat=round_half_up(fat, 1),
        carbs=round_half_up(carbs, 1),
        target=target,
    )
