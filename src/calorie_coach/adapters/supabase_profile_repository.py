"""Supabase repository for user profiles."""

from dataclasses import asdict, dataclass
from uuid import UUID

from supabase import Client

from calorie_coach.domain.profiles import (
    DEFAULT_COACH,
    ActivityLevel,
    CoachProfile,
    Gender,
    Goal,
    UserProfile,
)
from calorie_coach.services.profiles import ProfileRepository

_COLUMNS = (
    "id, display_name, age, gender, height, weight, activity_level, goal, tdee, "
    "coach_config, onboarding_complete"
)


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for profiles."""

    client: Client

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the profile row for a user, if present."""
        response = (
            self.client.table("profiles")
            .select(_COLUMNS)
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_profile(response.data[0])

    def upsert_profile(self, profile: UserProfile) -> None:
        """Create or replace the profile row."""
        self.client.table("profiles").upsert(
            {
                "id": str(profile.id),
                "display_name": profile.name,
                "age": profile.age,
                "gender": profile.gender.value,
                "height": profile.height_cm,
                "weight": profile.weight_kg,
                "activity_level": profile.activity_level.value,
                "goal": profile.goal.value,
                "tdee": profile.tdee,
                "coach_config": asdict(profile.coach),
                "onboarding_complete": profile.onboarding_complete,
            },
            on_conflict="id",
        ).execute()


def _parse_profile(row: dict[str, object]) -> UserProfile:
    return UserProfile(
        id=UUID(str(row["id"])),
        name=str(row.get("display_name") or ""),
        age=int(row.get("age") or 0),
        gender=Gender(row.get("gender") or Gender.OTHER),
        height_cm=float(row.get("height") or 0.0),
        weight_kg=float(row.get("weight") or 0.0),
        activity_level=ActivityLevel(
            row.get("activity_level") or ActivityLevel.SEDENTARY
        ),
        goal=Goal(row.get("goal") or Goal.MAINTENANCE),
        tdee=int(row.get("tdee") or 0),
        coach=_parse_coach(row.get("coach_config")),
        onboarding_complete=bool(row.get("onboarding_complete")),
    )


def _parse_coach(config: object) -> CoachProfile:
    if not isinstance(config, dict):
        return DEFAULT_COACH
    try:
        return CoachProfile(
            name=str(config.get("name") or ""),
            personality=str(config.get("personality") or ""),
            background=str(config.get("background") or ""),
            tone=str(config.get("tone") or ""),
            greeting=str(config.get("greeting") or ""),
            avatar_url=str(config.get("avatar_url") or config.get("avatarUrl") or ""),
        )
    except ValueError:
        return DEFAULT_COACH
