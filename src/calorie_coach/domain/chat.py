"""Domain models for the coaching chat."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from calorie_coach.domain.meals import MealLog


class ChatRole(StrEnum):
    """Author of a chat turn."""

    USER = "user"
    MODEL = "model"


class ProposalStatus(StrEnum):
    """Lifecycle of a meal proposal attached to a message."""

    PROPOSED = "proposed"
    CONFIRMED = "confirmed"
    DISCARDED = "discarded"


@dataclass(frozen=True)
class HistoryTurn:
    """Role and text of a prior turn, as sent to the chat model."""

    role: ChatRole
    text: str


@dataclass(frozen=True)
class ChatMessage:
    """One turn of the conversation.

    Coach attribution and the meal proposal are copies taken when the message
    was created, so later coach changes or meal edits leave it untouched.
    """

    id: UUID
    user_id: UUID
    role: ChatRole
    text: str
    created_at: datetime
    proposal: MealLog | None = None
    proposal_status: ProposalStatus | None = None
    coach_name: str | None = None
    coach_avatar_url: str | None = None

    def __post_init__(self) -> None:
        if self.proposal_status is not None and self.proposal is None:
            raise ValueError("A proposal status requires an attached meal proposal")

    @property
    def is_log_confirmation(self) -> bool:
        """True while the attached proposal awaits the user's decision."""
        return self.proposal_status == ProposalStatus.PROPOSED
