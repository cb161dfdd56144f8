"""Profile lifecycle: onboarding, edits and coach replacement."""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Protocol
from uuid import UUID

from calorie_coach.domain.profiles import (
    ActivityLevel,
    CoachProfile,
    Gender,
    Goal,
    UserProfile,
    calculate_tdee,
    profile_tdee,
)
from calorie_coach.services.coaches import CoachService
from calorie_coach.services.messages import ChatRepository, coach_message

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = {
    "name",
    "age",
    "gender",
    "height_cm",
    "weight_kg",
    "activity_level",
    "goal",
}


class ProfileNotFoundError(LookupError):
    """Raised when a user has not completed onboarding."""


class ProfileRepository(Protocol):
    """Persistence interface for user profiles."""

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the profile for a user, if present."""

    def upsert_profile(self, profile: UserProfile) -> None:
        """Create or replace a profile."""


@dataclass(frozen=True)
class ProfileDraft:
    """Answers collected by the onboarding wizard."""

    user_id: UUID
    name: str
    age: int
    gender: Gender
    height_cm: float
    weight_kg: float
    activity_level: ActivityLevel
    goal: Goal


@dataclass
class ProfileService:
    """Application service for profiles and their coach."""

    repository: ProfileRepository
    chat_repository: ChatRepository
    coach_service: CoachService

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        return self.repository.get_profile(user_id)

    def require_profile(self, user_id: UUID) -> UserProfile:
        """Return the profile or raise ``ProfileNotFoundError``."""
        profile = self.repository.get_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError(str(user_id))
        return profile

    async def complete_onboarding(
        self, draft: ProfileDraft, coach_style: str | None, now: datetime
    ) -> UserProfile:
        """Generate a coach, compute the calorie target and save the profile."""
        coach = await self.coach_service.create_new_coach(coach_style)
        profile = UserProfile(
            id=draft.user_id,
            name=draft.name,
            age=draft.age,
            gender=draft.gender,
            height_cm=draft.height_cm,
            weight_kg=draft.weight_kg,
            activity_level=draft.activity_level,
            goal=draft.goal,
            tdee=calculate_tdee(
                gender=draft.gender,
                age=draft.age,
                height_cm=draft.height_cm,
                weight_kg=draft.weight_kg,
                activity_level=draft.activity_level,
                goal=draft.goal,
            ),
            coach=coach,
            onboarding_complete=True,
        )
        self.repository.upsert_profile(profile)
        greeting = (
            coach.greeting
            or f"{profile.name}さん！担当の{coach.name}だ。これからよろしく頼むぞ！"
        )
        self.chat_repository.create_message(
            coach_message(profile.id, coach, greeting, now)
        )
        logger.info("Onboarding completed", extra={"user_id": str(profile.id)})
        return profile

    def update_profile(self, user_id: UUID, changes: dict[str, object]) -> UserProfile:
        """Apply profile edits and recompute the calorie target."""
        profile = self.require_profile(user_id)
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
        coerced = dict(changes)
        for key, enum in (
            ("gender", Gender),
            ("activity_level", ActivityLevel),
            ("goal", Goal),
        ):
            if key in coerced:
                coerced[key] = enum(coerced[key])
        edited = replace(profile, **coerced)
        updated = replace(edited, tdee=profile_tdee(edited))
        self.repository.upsert_profile(updated)
        return updated

    async def regenerate_coach(
        self, user_id: UUID, style_hint: str | None, now: datetime
    ) -> CoachProfile:
        """Replace the user's coach wholesale and post the new greeting."""
        profile = self.require_profile(user_id)
        coach = await self.coach_service.create_new_coach(style_hint)
        self.repository.upsert_profile(replace(profile, coach=coach))
        greeting = coach.greeting or (
            f"はじめまして！新しく担当になった「{coach.name}」だ。"
            "前のコーチから引き継ぎは受けている。これからよろしく頼む！"
        )
        self.chat_repository.create_message(
            coach_message(user_id, coach, greeting, now)
        )
        logger.info("Coach replaced", extra={"user_id": str(user_id)})
        return coach
