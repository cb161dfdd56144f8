"""Request and response models for the HTTP API."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from calorie_coach.domain.chat import ChatMessage, ChatRole, ProposalStatus
from calorie_coach.domain.meals import DailySummary, MealLog
from calorie_coach.domain.profiles import (
    ActivityLevel,
    CoachProfile,
    Gender,
    Goal,
    UserProfile,
)
from calorie_coach.services.chat import SubmitResult


class OnboardingRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    age: int = Field(gt=0, le=130)
    gender: Gender
    height_cm: float = Field(gt=0, le=300)
    weight_kg: float = Field(gt=0, le=500)
    activity_level: ActivityLevel
    goal: Goal
    coach_style: str | None = None


class ProfileUpdateRequest(BaseModel):
    """Partial profile edit; omitted fields stay unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    age: int | None = Field(default=None, gt=0, le=130)
    gender: Gender | None = None
    height_cm: float | None = Field(default=None, gt=0, le=300)
    weight_kg: float | None = Field(default=None, gt=0, le=500)
    activity_level: ActivityLevel | None = None
    goal: Goal | None = None


class CoachRequest(BaseModel):
    style_hint: str | None = None


class MessageRequest(BaseModel):
    """A user turn: text, an image (data URL or bare base64), or both."""

    text: str = ""
    image: str | None = None


class MealUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    calories: float | None = None
    protein: float | None = None
    fat: float | None = None
    carbs: float | None = None
    logged_at: datetime | None = None


class CoachResponse(BaseModel):
    name: str
    personality: str
    background: str
    tone: str
    greeting: str
    avatar_url: str

    @classmethod
    def from_domain(cls, coach: CoachProfile) -> "CoachResponse":
        return cls(
            name=coach.name,
            personality=coach.personality,
            background=coach.background,
            tone=coach.tone,
            greeting=coach.greeting,
            avatar_url=coach.avatar_url,
        )


class ProfileResponse(BaseModel):
    id: UUID
    name: str
    age: int
    gender: Gender
    height_cm: float
    weight_kg: float
    activity_level: ActivityLevel
    goal: Goal
    tdee: int
    coach: CoachResponse
    onboarding_complete: bool

    @classmethod
    def from_domain(cls, profile: UserProfile) -> "ProfileResponse":
        return cls(
            id=profile.id,
            name=profile.name,
            age=profile.age,
            gender=profile.gender,
            height_cm=profile.height_cm,
            weight_kg=profile.weight_kg,
            activity_level=profile.activity_level,
            goal=profile.goal,
            tdee=profile.tdee,
            coach=CoachResponse.from_domain(profile.coach),
            onboarding_complete=profile.onboarding_complete,
        )


class MealResponse(BaseModel):
    id: UUID
    name: str
    calories: int
    protein: float
    fat: float
    carbs: float
    logged_at: datetime
    timestamp: int
    image_url: str | None = None
    confirmation_message: str | None = None

    @classmethod
    def from_domain(cls, meal: MealLog) -> "MealResponse":
        return cls(
            id=meal.id,
            name=meal.name,
            calories=meal.calories,
            protein=meal.protein,
            fat=meal.fat,
            carbs=meal.carbs,
            logged_at=meal.logged_at,
            timestamp=meal.timestamp,
            image_url=meal.image_url,
            confirmation_message=meal.confirmation_message,
        )


class MessageResponse(BaseModel):
    id: UUID
    role: ChatRole
    text: str
    created_at: datetime
    proposal: MealResponse | None = None
    proposal_status: ProposalStatus | None = None
    is_log_confirmation: bool
    coach_name: str | None = None
    coach_avatar_url: str | None = None

    @classmethod
    def from_domain(cls, message: ChatMessage) -> "MessageResponse":
        return cls(
            id=message.id,
            role=message.role,
            text=message.text,
            created_at=message.created_at,
            proposal=(
                MealResponse.from_domain(message.proposal)
                if message.proposal
                else None
            ),
            proposal_status=message.proposal_status,
            is_log_confirmation=message.is_log_confirmation,
            coach_name=message.coach_name,
            coach_avatar_url=message.coach_avatar_url,
        )


class SubmitResponse(BaseModel):
    outcome: str
    user_message: MessageResponse
    reply: MessageResponse

    @classmethod
    def from_domain(cls, result: SubmitResult) -> "SubmitResponse":
        return cls(
            outcome=result.outcome.value,
            user_message=MessageResponse.from_domain(result.user_message),
            reply=MessageResponse.from_domain(result.reply),
        )


class SummaryResponse(BaseModel):
    day: date
    calories: int
    protein: float
    fat: float
    carbs: float
    target: int
    remaining: int

    @classmethod
    def from_domain(cls, summary: DailySummary) -> "SummaryResponse":
        return cls(
            day=summary.day,
            calories=summary.calories,
            protein=summary.protein,
            fat=summary.fat,
            carbs=summary.carbs,
            target=summary.target,
            remaining=summary.remaining,
        )
