"""Tests for meal logs and daily summaries."""

from datetime import UTC, date, datetime
from uuid import uuid4

from calorie_coach.domain.meals import MealLog, normalize_nutrition, round_half_up
from calorie_coach.services.meals import summarize_day
from tests.conftest import NOW, TOKYO


def _meal(logged_at: datetime, calories: int = 100) -> MealLog:
    return MealLog.create(
        logged_at=logged_at, name="味噌汁", calories=calories, protein=2, fat=1, carbs=3
    )


def test_normalize_nutrition_handles_bad_values() -> None:
    nutrition = normalize_nutrition("120.4", float("nan"), True, None)

    assert nutrition.calories == 120
    assert nutrition.protein == 0.0
    assert nutrition.fat == 0.0
    assert nutrition.carbs == 0.0


def test_normalize_nutrition_rounds_ties_up() -> None:
    nutrition = normalize_nutrition(86.5, 0.25, 2.45, 0.35)

    assert nutrition.calories == 87
    assert nutrition.protein == 0.3
    assert nutrition.fat == 2.5
    assert nutrition.carbs == 0.4


def test_round_half_up() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(1545.5) == 1546
    assert round_half_up(1545.49) == 1545
    assert round_half_up(0.05, 1) == 0.1


def test_record_and_list_meals(meal_service) -> None:
    user_id = uuid4()
    later = _meal(NOW)
    earlier = _meal(NOW.replace(hour=8))

    meal_service.record(user_id, later)
    meal_service.record(user_id, earlier)

    assert meal_service.list_meals(user_id) == [earlier, later]
    assert meal_service.list_meals(uuid4()) == []


def test_update_meal_renormalizes_values(meal_service) -> None:
    user_id = uuid4()
    meal = meal_service.record(user_id, _meal(NOW))

    updated = meal_service.update_meal(
        user_id, meal.id, {"calories": -50, "protein": 12.34, "name": "豚汁"}
    )

    assert updated is not None
    assert updated.calories == 0
    assert updated.protein == 12.3
    assert updated.name == "豚汁"
    assert meal_service.list_meals(user_id) == [updated]


def test_update_and_delete_missing_meal(meal_service) -> None:
    user_id = uuid4()

    assert meal_service.update_meal(user_id, uuid4(), {"calories": 10}) is None
    assert meal_service.delete_meal(user_id, uuid4()) is False


def test_delete_meal(meal_service) -> None:
    user_id = uuid4()
    meal = meal_service.record(user_id, _meal(NOW))

    assert meal_service.delete_meal(user_id, meal.id) is True
    assert meal_service.list_meals(user_id) == []


def test_daily_summary_uses_local_day() -> None:
    meals = [
        _meal(datetime(2025, 3, 13, 23, 30, tzinfo=UTC), calories=300),
        _meal(datetime(2025, 3, 14, 10, 0, tzinfo=TOKYO), calories=200),
        _meal(datetime(2025, 3, 14, 16, 0, tzinfo=UTC), calories=500),
    ]

    summary = summarize_day(meals, date(2025, 3, 14), 1800, TOKYO)

    assert summary.calories == 500
    assert summary.protein == 4.0
    assert summary.remaining == 1300
