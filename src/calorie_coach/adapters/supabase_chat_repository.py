"""Supabase repository for chat logs."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from calorie_coach.domain.chat import ChatMessage, ChatRole, ProposalStatus
from calorie_coach.domain.meals import MealLog
from calorie_coach.services.messages import ChatRepository

_COLUMNS = "id, user_id, role, content, metadata, created_at"
_ROLE_TO_ROW = {ChatRole.USER: "user", ChatRole.MODEL: "assistant"}


@dataclass
class SupabaseChatRepository(ChatRepository):
    """Supabase implementation for chat messages.

    ``created_at`` is left to the database default on insert so that rows
    written within the same request keep their insertion order.
    """

    client: Client

    def create_message(self, message: ChatMessage) -> ChatMessage:
        """Insert a chat row and return the stored message."""
        response = (
            self.client.table("chat_logs")
            .insert(
                {
                    "id": str(message.id),
                    "user_id": str(message.user_id),
                    "role": _ROLE_TO_ROW[message.role],
                    "content": message.text,
                    "metadata": _metadata(message),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create chat message")
        return _parse_message(response.data[0])

    def get_message(self, user_id: UUID, message_id: UUID) -> ChatMessage | None:
        """Return a chat row by id."""
        response = (
            self.client.table("chat_logs")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .eq("id", str(message_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_message(response.data[0])

    def list_messages(self, user_id: UUID) -> list[ChatMessage]:
        """Return the conversation, oldest first."""
        response = (
            self.client.table("chat_logs")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .order("created_at", desc=False)
            .execute()
        )
        return [_parse_message(row) for row in response.data or []]

    def update_message(self, message: ChatMessage) -> None:
        """Update the text and metadata of a chat row."""
        self.client.table("chat_logs").update(
            {"content": message.text, "metadata": _metadata(message)}
        ).eq("user_id", str(message.user_id)).eq("id", str(message.id)).execute()


def _metadata(message: ChatMessage) -> dict[str, object]:
    metadata: dict[str, object] = {}
    if message.coach_name is not None:
        metadata["coachName"] = message.coach_name
    if message.coach_avatar_url is not None:
        metadata["coachAvatarUrl"] = message.coach_avatar_url
    if message.proposal is not None:
        proposal = message.proposal
        if message.proposal_status is not None:
            metadata["proposalStatus"] = message.proposal_status.value
        metadata["mealData"] = {
            "id": str(proposal.id),
            "name": proposal.name,
            "calories": proposal.calories,
            "protein": proposal.protein,
            "fat": proposal.fat,
            "carbs": proposal.carbs,
            "timestamp": proposal.timestamp,
            "loggedAt": proposal.logged_at.isoformat(),
            "imageUrl": proposal.image_url,
            "confirmationMessage": proposal.confirmation_message,
        }
    return metadata


def _parse_message(row: dict[str, object]) -> ChatMessage:
    metadata = row.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}
    proposal = _parse_proposal(metadata.get("mealData"))
    status = metadata.get("proposalStatus")
    return ChatMessage(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        role=ChatRole.MODEL if row.get("role") == "assistant" else ChatRole.USER,
        text=str(row.get("content") or ""),
        created_at=datetime.fromisoformat(str(row["created_at"])),
        proposal=proposal,
        proposal_status=ProposalStatus(status) if proposal and status else None,
        coach_name=metadata.get("coachName"),
        coach_avatar_url=metadata.get("coachAvatarUrl"),
    )


def _parse_proposal(data: object) -> MealLog | None:
    if not isinstance(data, dict):
        return None
    return MealLog.create(
        meal_id=UUID(str(data["id"])),
        logged_at=datetime.fromisoformat(str(data["loggedAt"])),
        name=str(data.get("name") or ""),
        calories=data.get("calories"),
        protein=data.get("protein"),
        fat=data.get("fat"),
        carbs=data.get("carbs"),
        image_url=data.get("imageUrl"),
        confirmation_message=data.get("confirmationMessage"),
    )
