"""Conversational meal-intake pipeline."""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from uuid import UUID

from calorie_coach.domain.chat import ChatMessage, ProposalStatus
from calorie_coach.domain.intake import IntakeOutcome
from calorie_coach.domain.meals import MealLog
from calorie_coach.domain.profiles import UserProfile
from calorie_coach.services.cache import Cache
from calorie_coach.services.images import (
    DEFAULT_MAX_EDGE,
    DEFAULT_QUALITY,
    ImageDecodeError,
    decode_image_payload,
    normalize_image,
)
from calorie_coach.services.intake import MealInput, MealIntakeService
from calorie_coach.services.meals import MealLogService
from calorie_coach.services.messages import (
    ChatRepository,
    coach_message,
    user_message,
)
from calorie_coach.services.profiles import ProfileService
from calorie_coach.services.responder import CoachingResponder

logger = logging.getLogger(__name__)

IMAGE_DECODE_MESSAGE = (
    "ごめんね、その画像はうまく読み込めなかったみたい。別の写真で送ってくれる？"
)
CONFIRMATION_FALLBACK = "登録しました！"


class EmptySubmissionError(ValueError):
    """Raised when a submission has neither text nor an image."""


@dataclass(frozen=True)
class SubmitResult:
    """The stored user turn and the coach's reply to it."""

    outcome: IntakeOutcome
    user_message: ChatMessage
    reply: ChatMessage


@dataclass
class ChatService:
    """Runs one user turn through normalization, intake and the responder."""

    profile_service: ProfileService
    chat_repository: ChatRepository
    meal_service: MealLogService
    intake_service: MealIntakeService
    responder: CoachingResponder
    cache: Cache
    image_max_edge: int = DEFAULT_MAX_EDGE
    image_quality: int = DEFAULT_QUALITY
    idempotency_ttl_seconds: int = 600
    _in_flight: dict[str, asyncio.Future[SubmitResult]] = field(
        default_factory=dict, init=False, repr=False
    )

    async def submit(  # noqa: PLR0913
        self,
        user_id: UUID,
        text: str,
        image_payload: str | None,
        now: datetime,
        submission_id: str | None = None,
    ) -> SubmitResult:
        """Handle a user turn and persist it together with the reply.

        ``image_payload`` is a data URL or bare base64 string. A repeated
        ``submission_id`` returns the earlier result unchanged; a repeat that
        arrives while the first attempt is running waits for its result.
        """
        if not submission_id:
            return await self._submit(user_id, text, image_payload, now)

        cache_key = f"submit:{user_id}:{submission_id}"
        log_extra = {"user_id": str(user_id), "submission_id": submission_id}
        cached = self.cache.get(cache_key)
        if isinstance(cached, SubmitResult):
            logger.info("Duplicate submission ignored", extra=log_extra)
            return cached
        pending = self._in_flight.get(cache_key)
        if pending is not None:
            logger.info("Duplicate submission awaiting first attempt", extra=log_extra)
            return await asyncio.shield(pending)

        future: asyncio.Future[SubmitResult] = (
            asyncio.get_running_loop().create_future()
        )
        self._in_flight[cache_key] = future
        try:
            result = await self._submit(user_id, text, image_payload, now)
        except Exception as exc:
            future.set_exception(exc)
            # Marks the exception retrieved when no duplicate is waiting.
            future.exception()
            raise
        except BaseException:
            future.cancel()
            raise
        finally:
            self._in_flight.pop(cache_key, None)
        self.cache.set(cache_key, result, self.idempotency_ttl_seconds)
        future.set_result(result)
        return result

    async def _submit(
        self, user_id: UUID, text: str, image_payload: str | None, now: datetime
    ) -> SubmitResult:
        if not text.strip() and not image_payload:
            raise EmptySubmissionError("Nothing to submit")

        profile = self.profile_service.require_profile(user_id)
        history = self.chat_repository.list_messages(user_id)

        outcome, reply_text, proposal = await self._decide(
            profile=profile,
            text=text,
            image_payload=image_payload,
            history=history,
            now=now,
        )

        sent = self.chat_repository.create_message(user_message(user_id, text, now))
        reply = self.chat_repository.create_message(
            coach_message(user_id, profile.coach, reply_text, now, proposal)
        )
        return SubmitResult(outcome=outcome, user_message=sent, reply=reply)

    async def _decide(
        self,
        *,
        profile: UserProfile,
        text: str,
        image_payload: str | None,
        history: list[ChatMessage],
        now: datetime,
    ) -> tuple[IntakeOutcome, str, MealLog | None]:
        image = None
        if image_payload:
            try:
                image = normalize_image(
                    decode_image_payload(image_payload),
                    max_edge=self.image_max_edge,
                    quality=self.image_quality,
                )
            except ImageDecodeError:
                logger.warning(
                    "Rejected undecodable image", extra={"user_id": str(profile.id)}
                )
                return IntakeOutcome.IMAGE_REJECTED, IMAGE_DECODE_MESSAGE, None

        result = await self.intake_service.analyze(
            MealInput(text=text, image=image), profile, history, now
        )
        if image is None and result.outcome == IntakeOutcome.NOT_FOOD:
            reply = await self.responder.reply(
                history,
                text,
                profile,
                self.meal_service.list_meals(profile.id),
                now,
            )
            return result.outcome, reply, None
        return result.outcome, result.text, result.meal

    def list_messages(self, user_id: UUID) -> list[ChatMessage]:
        return self.chat_repository.list_messages(user_id)

    def confirm_proposal(self, user_id: UUID, message_id: UUID) -> MealLog | None:
        """Persist a pending proposal and annotate its message.

        Returns None when the message has no pending proposal.
        """
        message = self.chat_repository.get_message(user_id, message_id)
        if message is None or not message.is_log_confirmation:
            return None
        proposal = message.proposal
        if proposal is None:
            return None
        meal = self.meal_service.record(user_id, proposal)
        note = proposal.confirmation_message or CONFIRMATION_FALLBACK
        self.chat_repository.update_message(
            replace(
                message,
                text=f"{message.text}\n\n✅ {note}",
                proposal_status=ProposalStatus.CONFIRMED,
            )
        )
        logger.info(
            "Meal proposal confirmed",
            extra={"user_id": str(user_id), "meal_id": str(meal.id)},
        )
        return meal

    def discard_proposal(self, user_id: UUID, message_id: UUID) -> ChatMessage | None:
        """Mark a pending proposal as discarded; the message itself stays."""
        message = self.chat_repository.get_message(user_id, message_id)
        if message is None or not message.is_log_confirmation:
            return None
        discarded = replace(message, proposal_status=ProposalStatus.DISCARDED)
        self.chat_repository.update_message(discarded)
        return discarded
