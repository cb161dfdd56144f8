"""User-facing API endpoints."""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from calorie_coach.api.schemas import (
    CoachRequest,
    CoachResponse,
    MealResponse,
    MealUpdateRequest,
    MessageRequest,
    MessageResponse,
    OnboardingRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    SubmitResponse,
    SummaryResponse,
)
from calorie_coach.api.security import require_api_token
from calorie_coach.services.profiles import ProfileDraft

if TYPE_CHECKING:
    from calorie_coach.containers import AppContainer

router = APIRouter(prefix="/users", dependencies=[Depends(require_api_token)])


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def _now(container: AppContainer) -> datetime:
    return datetime.now(ZoneInfo(container.settings.timezone))


@router.post("/{user_id}/onboarding", status_code=status.HTTP_201_CREATED)
async def complete_onboarding(
    user_id: UUID, payload: OnboardingRequest, request: Request
) -> ProfileResponse:
    """Create the profile, its coach and the first greeting."""
    container = _container(request)
    draft = ProfileDraft(
        user_id=user_id,
        name=payload.name.strip(),
        age=payload.age,
        gender=payload.gender,
        height_cm=payload.height_cm,
        weight_kg=payload.weight_kg,
        activity_level=payload.activity_level,
        goal=payload.goal,
    )
    profile = await container.profile_service.complete_onboarding(
        draft, payload.coach_style, _now(container)
    )
    return ProfileResponse.from_domain(profile)


@router.get("/{user_id}/profile")
async def get_profile(user_id: UUID, request: Request) -> ProfileResponse:
    profile = _container(request).profile_service.require_profile(user_id)
    return ProfileResponse.from_domain(profile)


@router.patch("/{user_id}/profile")
async def update_profile(
    user_id: UUID, payload: ProfileUpdateRequest, request: Request
) -> ProfileResponse:
    """Edit profile fields; the calorie target is recomputed."""
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    profile = _container(request).profile_service.update_profile(user_id, changes)
    return ProfileResponse.from_domain(profile)


@router.post("/{user_id}/coach")
async def regenerate_coach(
    user_id: UUID, payload: CoachRequest, request: Request
) -> CoachResponse:
    """Replace the coach and post the new coach's greeting."""
    container = _container(request)
    coach = await container.profile_service.regenerate_coach(
        user_id, payload.style_hint, _now(container)
    )
    return CoachResponse.from_domain(coach)


@router.post("/{user_id}/messages")
async def submit_message(
    user_id: UUID,
    payload: MessageRequest,
    request: Request,
    idempotency_key: str | None = Header(default=None),
) -> SubmitResponse:
    """Submit a user turn and return it together with the coach's reply."""
    container = _container(request)
    result = await container.chat_service.submit(
        user_id,
        payload.text,
        payload.image,
        _now(container),
        submission_id=idempotency_key,
    )
    return SubmitResponse.from_domain(result)


@router.get("/{user_id}/messages")
async def list_messages(user_id: UUID, request: Request) -> list[MessageResponse]:
    container = _container(request)
    container.profile_service.require_profile(user_id)
    return [
        MessageResponse.from_domain(message)
        for message in container.chat_service.list_messages(user_id)
    ]


@router.post("/{user_id}/messages/{message_id}/confirm")
async def confirm_proposal(
    user_id: UUID, message_id: UUID, request: Request
) -> MealResponse:
    """Record the proposed meal attached to a message."""
    meal = _container(request).chat_service.confirm_proposal(user_id, message_id)
    if meal is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="No pending meal proposal"
        )
    return MealResponse.from_domain(meal)


@router.post("/{user_id}/messages/{message_id}/discard")
async def discard_proposal(
    user_id: UUID, message_id: UUID, request: Request
) -> MessageResponse:
    message = _container(request).chat_service.discard_proposal(user_id, message_id)
    if message is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="No pending meal proposal"
        )
    return MessageResponse.from_domain(message)


@router.get("/{user_id}/meals")
async def list_meals(user_id: UUID, request: Request) -> list[MealResponse]:
    container = _container(request)
    container.profile_service.require_profile(user_id)
    return [
        MealResponse.from_domain(meal)
        for meal in container.meal_service.list_meals(user_id)
    ]


@router.patch("/{user_id}/meals/{meal_id}")
async def update_meal(
    user_id: UUID, meal_id: UUID, payload: MealUpdateRequest, request: Request
) -> MealResponse:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    meal = _container(request).meal_service.update_meal(user_id, meal_id, changes)
    if meal is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return MealResponse.from_domain(meal)


@router.delete("/{user_id}/meals/{meal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_meal(user_id: UUID, meal_id: UUID, request: Request) -> None:
    if not _container(request).meal_service.delete_meal(user_id, meal_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)


@router.get("/{user_id}/summary")
async def daily_summary(
    user_id: UUID, request: Request, day: date | None = None
) -> SummaryResponse:
    """Totals for one day (default today) against the calorie target."""
    container = _container(request)
    profile = container.profile_service.require_profile(user_id)
    tz = ZoneInfo(container.settings.timezone)
    summary = container.meal_service.daily_summary(
        user_id, day or _now(container).date(), profile.tdee, tz
    )
    return SummaryResponse.from_domain(summary)
