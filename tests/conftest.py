"""Shared test fixtures."""

import asyncio
import io
import json
from dataclasses import dataclass, field, replace
from datetime import datetime
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

import pytest
from PIL import Image

from calorie_coach.config import Settings
from calorie_coach.containers import AppContainer
from calorie_coach.domain.chat import ChatMessage, HistoryTurn
from calorie_coach.domain.meals import MealLog
from calorie_coach.domain.profiles import (
    DEFAULT_COACH,
    ActivityLevel,
    Gender,
    Goal,
    UserProfile,
)
from calorie_coach.services.cache import InMemoryCache
from calorie_coach.services.chat import ChatService
from calorie_coach.services.coaches import CoachService
from calorie_coach.services.generation import ContentPart, GenerationClient
from calorie_coach.services.intake import MealIntakeService
from calorie_coach.services.meals import MealLogRepository, MealLogService
from calorie_coach.services.messages import ChatRepository
from calorie_coach.services.profiles import ProfileRepository, ProfileService
from calorie_coach.services.responder import CoachingResponder

TOKYO = ZoneInfo("Asia/Tokyo")
NOW = datetime(2025, 3, 14, 12, 30, 15, 123000, tzinfo=TOKYO)
API_TOKEN = "api-token"


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile repository for tests."""

    profiles: dict[UUID, UserProfile] = field(default_factory=dict)

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        return self.profiles.get(user_id)

    def upsert_profile(self, profile: UserProfile) -> None:
        self.profiles[profile.id] = profile


@dataclass
class InMemoryMealLogRepository(MealLogRepository):
    """In-memory meal log repository for tests."""

    meals: dict[UUID, dict[UUID, MealLog]] = field(default_factory=dict)

    def create_meal(self, user_id: UUID, meal: MealLog) -> MealLog:
        self.meals.setdefault(user_id, {})[meal.id] = meal
        return meal

    def get_meal(self, user_id: UUID, meal_id: UUID) -> MealLog | None:
        return self.meals.get(user_id, {}).get(meal_id)

    def list_meals(self, user_id: UUID) -> list[MealLog]:
        return sorted(self.meals.get(user_id, {}).values(), key=lambda m: m.logged_at)

    def update_meal(self, user_id: UUID, meal: MealLog) -> None:
        self.meals.setdefault(user_id, {})[meal.id] = meal

    def delete_meal(self, user_id: UUID, meal_id: UUID) -> None:
        self.meals.get(user_id, {}).pop(meal_id, None)


@dataclass
class InMemoryChatRepository(ChatRepository):
    """In-memory chat repository that keeps insertion order."""

    messages: list[ChatMessage] = field(default_factory=list)

    def create_message(self, message: ChatMessage) -> ChatMessage:
        self.messages.append(message)
        return message

    def get_message(self, user_id: UUID, message_id: UUID) -> ChatMessage | None:
        for message in self.messages:
            if message.id == message_id and message.user_id == user_id:
                return message
        return None

    def list_messages(self, user_id: UUID) -> list[ChatMessage]:
        return [message for message in self.messages if message.user_id == user_id]

    def update_message(self, message: ChatMessage) -> None:
        for index, stored in enumerate(self.messages):
            if stored.id == message.id:
                self.messages[index] = message
                return


@dataclass
class FakeGenerationClient(GenerationClient):
    """Fake generation client returning queued responses.

    A queued exception is raised instead of returned. ``delay_seconds`` holds
    structured calls open so overlapping requests can be exercised.
    """

    structured: list[str | Exception] = field(default_factory=list)
    texts: list[str | Exception] = field(default_factory=list)
    images: list[str | None | Exception] = field(default_factory=list)
    structured_calls: list[dict[str, object]] = field(default_factory=list)
    text_calls: list[dict[str, object]] = field(default_factory=list)
    image_calls: list[str] = field(default_factory=list)
    delay_seconds: float = 0.0

    async def generate_structured(
        self,
        *,
        system_instruction: str | None,
        parts: list[ContentPart],
        schema: dict[str, object],
        schema_name: str,
    ) -> str:
        self.structured_calls.append(
            {
                "system_instruction": system_instruction,
                "parts": parts,
                "schema": schema,
                "schema_name": schema_name,
            }
        )
        await asyncio.sleep(self.delay_seconds)
        return _next(self.structured, not_food_json())

    async def generate_text(
        self,
        *,
        system_instruction: str,
        history: list[HistoryTurn],
        message: str,
    ) -> str:
        self.text_calls.append(
            {
                "system_instruction": system_instruction,
                "history": history,
                "message": message,
            }
        )
        return _next(self.texts, "いい調子だね！")

    async def generate_image(self, *, prompt: str) -> str | None:
        self.image_calls.append(prompt)
        return _next(self.images, None)


def _next(queue: list, default):  # type: ignore[no-untyped-def]
    value = queue.pop(0) if queue else default
    if isinstance(value, Exception):
        raise value
    return value


def food_json(  # noqa: PLR0913
    *,
    name: str = "バナナ",
    calories: object = 86,
    protein: object = 1.1,
    fat: object = 0.2,
    carbs: object = 22.5,
    target_date: str = "2025-03-14",
    feedback: str = "バナナ、いい選択だね！",
    confirmation_message: str = "バナナを記録したよ！",
) -> str:
    return json.dumps(
        {
            "is_food_related": True,
            "feedback": feedback,
            "confirmation_message": confirmation_message,
            "target_date": target_date,
            "meal_data": {
                "name": name,
                "calories": calories,
                "protein": protein,
                "fat": fat,
                "carbs": carbs,
            },
        },
        ensure_ascii=False,
    )


def not_food_json(feedback: str = "こんにちは！") -> str:
    return json.dumps(
        {
            "is_food_related": False,
            "feedback": feedback,
            "confirmation_message": "",
            "target_date": "",
            "meal_data": {
                "name": "",
                "calories": 0,
                "protein": 0,
                "fat": 0,
                "carbs": 0,
            },
        },
        ensure_ascii=False,
    )


def persona_json(**overrides: object) -> str:
    payload = {
        "name": "タケル",
        "personality": "熱血で面倒見がいい",
        "background": "元陸上選手の栄養士",
        "tone": "体育会系で明るい",
        "greeting": "押忍！今日から一緒に走り抜けよう！",
        "image_prompt": "A cheerful athletic coach, anime style",
    }
    payload.update(overrides)
    return json.dumps(payload, ensure_ascii=False)


def make_image_bytes(
    width: int, height: int, mode: str = "RGB", image_format: str = "PNG"
) -> bytes:
    color = (200, 120, 40, 128) if mode == "RGBA" else (200, 120, 40)
    image = Image.new(mode, (width, height), color)
    buffer = io.BytesIO()
    image.save(buffer, format=image_format)
    return buffer.getvalue()


def make_profile(user_id: UUID | None = None, **overrides: object) -> UserProfile:
    profile = UserProfile(
        id=user_id or uuid4(),
        name="花子",
        age=30,
        gender=Gender.FEMALE,
        height_cm=160.0,
        weight_kg=55.0,
        activity_level=ActivityLevel.LIGHT,
        goal=Goal.WEIGHT_LOSS,
        tdee=1600,
        coach=DEFAULT_COACH,
        onboarding_complete=True,
    )
    return replace(profile, **overrides)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        api_token=API_TOKEN,
        openai_api_key="openai-key",
    )


@pytest.fixture
def generation_client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def meal_repository() -> InMemoryMealLogRepository:
    return InMemoryMealLogRepository()


@pytest.fixture
def chat_repository() -> InMemoryChatRepository:
    return InMemoryChatRepository()


@pytest.fixture
def profile(profile_repository: InMemoryProfileRepository) -> UserProfile:
    stored = make_profile()
    profile_repository.upsert_profile(stored)
    return stored


@pytest.fixture
def profile_service(
    profile_repository: InMemoryProfileRepository,
    chat_repository: InMemoryChatRepository,
    generation_client: FakeGenerationClient,
) -> ProfileService:
    return ProfileService(
        repository=profile_repository,
        chat_repository=chat_repository,
        coach_service=CoachService(generation_client),
    )


@pytest.fixture
def meal_service(meal_repository: InMemoryMealLogRepository) -> MealLogService:
    return MealLogService(meal_repository)


@pytest.fixture
def chat_service(
    settings: Settings,
    profile_service: ProfileService,
    chat_repository: InMemoryChatRepository,
    meal_service: MealLogService,
    generation_client: FakeGenerationClient,
) -> ChatService:
    return ChatService(
        profile_service=profile_service,
        chat_repository=chat_repository,
        meal_service=meal_service,
        intake_service=MealIntakeService(
            generation_client,
            context_turns=settings.context_turns,
            history_limit=settings.history_limit,
            backdate_limit_days=settings.backdate_limit_days,
        ),
        responder=CoachingResponder(
            generation_client, history_limit=settings.history_limit
        ),
        cache=InMemoryCache(),
        image_max_edge=settings.image_max_edge,
        image_quality=settings.image_quality,
        idempotency_ttl_seconds=settings.idempotency_ttl_seconds,
    )


@pytest.fixture
def container(
    settings: Settings,
    generation_client: FakeGenerationClient,
    profile_service: ProfileService,
    meal_service: MealLogService,
    chat_service: ChatService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        generation_client=generation_client,
        profile_service=profile_service,
        meal_service=meal_service,
        chat_service=chat_service,
        close_resources=close_resources,
    )
