"""Supabase repository for meal logs."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from calorie_coach.domain.meals import MealLog
from calorie_coach.services.meals import MealLogRepository

_COLUMNS = "id, name, calories, protein, fat, carbs, consumed_at, image_path"


@dataclass
class SupabaseMealLogRepository(MealLogRepository):
    """Supabase implementation for meal logs."""

    client: Client

    def create_meal(self, user_id: UUID, meal: MealLog) -> MealLog:
        """Insert a meal row and return the stored meal."""
        response = (
            self.client.table("meals")
            .insert({"id": str(meal.id), "user_id": str(user_id), **_meal_row(meal)})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create meal log")
        return _parse_meal(response.data[0])

    def get_meal(self, user_id: UUID, meal_id: UUID) -> MealLog | None:
        """Return a meal row by id."""
        response = (
            self.client.table("meals")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .eq("id", str(meal_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_meal(response.data[0])

    def list_meals(self, user_id: UUID) -> list[MealLog]:
        """Return a user's meals ordered by consumption time."""
        response = (
            self.client.table("meals")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .order("consumed_at", desc=False)
            .execute()
        )
        return [_parse_meal(row) for row in response.data or []]

    def update_meal(self, user_id: UUID, meal: MealLog) -> None:
        """Update a meal row."""
        self.client.table("meals").update(_meal_row(meal)).eq(
            "user_id", str(user_id)
        ).eq("id", str(meal.id)).execute()

    def delete_meal(self, user_id: UUID, meal_id: UUID) -> None:
        """Delete a meal row."""
        self.client.table("meals").delete().eq("user_id", str(user_id)).eq(
            "id", str(meal_id)
        ).execute()


def _meal_row(meal: MealLog) -> dict[str, object]:
    return {
        "name": meal.name,
        "calories": meal.calories,
        "protein": meal.protein,
        "fat": meal.fat,
        "carbs": meal.carbs,
        "consumed_at": meal.logged_at.isoformat(),
        "image_path": meal.image_url,
    }


def _parse_meal(row: dict[str, object]) -> MealLog:
    return MealLog.create(
        meal_id=UUID(str(row["id"])),
        logged_at=datetime.fromisoformat(str(row["consumed_at"])),
        name=str(row.get("name") or ""),
        calories=row.get("calories"),
        protein=row.get("protein"),
        fat=row.get("fat"),
        carbs=row.get("carbs"),
        image_url=row.get("image_path") or None,
    )
