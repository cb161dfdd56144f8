"""Chat message persistence interface and constructors."""

from datetime import datetime
from typing import Protocol
from uuid import UUID, uuid4

from calorie_coach.domain.chat import ChatMessage, ChatRole, ProposalStatus
from calorie_coach.domain.meals import MealLog
from calorie_coach.domain.profiles import CoachProfile


class ChatRepository(Protocol):
    """Persistence interface for chat messages."""

    def create_message(self, message: ChatMessage) -> ChatMessage:
        """Persist a message and return it."""

    def get_message(self, user_id: UUID, message_id: UUID) -> ChatMessage | None:
        """Return a message by id, if present."""

    def list_messages(self, user_id: UUID) -> list[ChatMessage]:
        """Return a user's messages, oldest first."""

    def update_message(self, message: ChatMessage) -> None:
        """Replace a stored message."""


def user_message(user_id: UUID, text: str, now: datetime) -> ChatMessage:
    return ChatMessage(
        id=uuid4(),
        user_id=user_id,
        role=ChatRole.USER,
        text=text,
        created_at=now,
    )


def coach_message(
    user_id: UUID,
    coach: CoachProfile,
    text: str,
    now: datetime,
    proposal: MealLog | None = None,
) -> ChatMessage:
    """Build a model message carrying a snapshot of the active coach."""
    return ChatMessage(
        id=uuid4(),
        user_id=user_id,
        role=ChatRole.MODEL,
        text=text,
        created_at=now,
        proposal=proposal,
        proposal_status=ProposalStatus.PROPOSED if proposal else None,
        coach_name=coach.name,
        coach_avatar_url=coach.avatar_url,
    )
