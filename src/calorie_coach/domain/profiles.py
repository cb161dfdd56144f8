"""Domain models for user profiles and coach personas."""

from dataclasses import dataclass, field
from enum import StrEnum
from uuid import UUID

from calorie_coach.domain.meals import round_half_up


class Gender(StrEnum):
    """Gender used for the BMR formula."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ActivityLevel(StrEnum):
    """Everyday activity level."""

    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"


class Goal(StrEnum):
    """Diet goal that adjusts the calorie target."""

    WEIGHT_LOSS = "weight_loss"
    MUSCLE_GAIN = "muscle_gain"
    MAINTENANCE = "maintenance"


@dataclass(frozen=True)
class CoachProfile:
    """Persona that drives every AI-authored message.

    All text fields are non-empty. ``avatar_url`` may be empty, in which case
    clients render a placeholder glyph.
    """

    name: str
    personality: str
    background: str
    tone: str
    greeting: str
    avatar_url: str = ""

    def __post_init__(self) -> None:
        for name in ("name", "personality", "background", "tone", "greeting"):
            if not str(getattr(self, name)).strip():
                raise ValueError(f"Coach field {name!r} must not be empty")


DEFAULT_COACH = CoachProfile(
    name="ルミ",
    personality=(
        "親しみやすく、知的で、ポジティブ。否定はせず、常に"
        "「どうすればもっと良くなるか」を一緒に考える伴走者。"
    ),
    background=(
        "最新の栄養学データセットから生まれたAI。"
        "数千人のダイエット成功データを学習済み。"
    ),
    tone=(
        "丁寧ながらも、親しいコーチのような温かみのある言葉遣い"
        "（例：「お疲れ様！」「今日のランチ、彩りが良くて最高だね！」）。"
    ),
    greeting="こんにちは！これから一緒に頑張っていこうね！",
    avatar_url="",
)


@dataclass(frozen=True)
class UserProfile:
    """User identity, physiology and goal."""

    id: UUID
    name: str
    age: int
    gender: Gender
    height_cm: float
    weight_kg: float
    activity_level: ActivityLevel
    goal: Goal
    tdee: int
    coach: CoachProfile = field(default=DEFAULT_COACH)
    onboarding_complete: bool = False


_ACTIVITY_MULTIPLIERS = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
}

_GOAL_FACTORS = {
    Goal.WEIGHT_LOSS: 0.85,
    Goal.MUSCLE_GAIN: 1.15,
}


def calculate_tdee(  # noqa: PLR0913
    *,
    gender: Gender,
    age: int,
    height_cm: float,
    weight_kg: float,
    activity_level: ActivityLevel,
    goal: Goal,
) -> int:
    """Return the goal-adjusted daily calorie target.

    Uses the revised Harris-Benedict BMR; ``other`` shares the female formula.
    """
    if gender == Gender.MALE:
        bmr = 88.362 + 13.397 * weight_kg + 4.799 * height_cm - 5.677 * age
    else:
        bmr = 447.593 + 9.247 * weight_kg + 3.098 * height_cm - 4.330 * age
    tdee = int(round_half_up(bmr * _ACTIVITY_MULTIPLIERS[activity_level]))
    factor = _GOAL_FACTORS.get(goal)
    if factor is None:
        return tdee
    return int(round_half_up(tdee * factor))


def profile_tdee(profile: UserProfile) -> int:
    """Recompute the calorie target from a profile's own fields."""
    return calculate_tdee(
        gender=profile.gender,
        age=profile.age,
        height_cm=profile.height_cm,
        weight_kg=profile.weight_kg,
        activity_level=profile.activity_level,
        goal=profile.goal,
    )
