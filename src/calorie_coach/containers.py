"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from calorie_coach.adapters.openai_generation_client import OpenAIGenerationClient
from calorie_coach.adapters.supabase_chat_repository import SupabaseChatRepository
from calorie_coach.adapters.supabase_meal_log_repository import (
    SupabaseMealLogRepository,
)
from calorie_coach.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from calorie_coach.config import Settings
from calorie_coach.services.cache import InMemoryCache
from calorie_coach.services.chat import ChatService
from calorie_coach.services.coaches import CoachService
from calorie_coach.services.generation import GenerationClient
from calorie_coach.services.intake import MealIntakeService
from calorie_coach.services.meals import MealLogService
from calorie_coach.services.profiles import ProfileService
from calorie_coach.services.responder import CoachingResponder


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    generation_client: GenerationClient
    profile_service: ProfileService
    meal_service: MealLogService
    chat_service: ChatService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    profile_repository = SupabaseProfileRepository(supabase_client)
    meal_log_repository = SupabaseMealLogRepository(supabase_client)
    chat_repository = SupabaseChatRepository(supabase_client)
    generation_client = OpenAIGenerationClient.create(
        resolved_settings.openai_api_key,
        model=resolved_settings.openai_model,
        image_model=resolved_settings.openai_image_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    meal_service = MealLogService(meal_log_repository)
    profile_service = ProfileService(
        repository=profile_repository,
        chat_repository=chat_repository,
        coach_service=CoachService(generation_client),
    )
    chat_service = ChatService(
        profile_service=profile_service,
        chat_repository=chat_repository,
        meal_service=meal_service,
        intake_service=MealIntakeService(
            generation_client,
            context_turns=resolved_settings.context_turns,
            history_limit=resolved_settings.history_limit,
            backdate_limit_days=resolved_settings.backdate_limit_days,
        ),
        responder=CoachingResponder(
            generation_client, history_limit=resolved_settings.history_limit
        ),
        cache=InMemoryCache(),
        image_max_edge=resolved_settings.image_max_edge,
        image_quality=resolved_settings.image_quality,
        idempotency_ttl_seconds=resolved_settings.idempotency_ttl_seconds,
    )

    async def close_resources() -> None:
        await generation_client.close()

    return AppContainer(
        settings=resolved_settings,
        generation_client=generation_client,
        profile_service=profile_service,
        meal_service=meal_service,
        chat_service=chat_service,
        close_resources=close_resources,
    )
