"""Chat history sanitization for turn-based chat models."""

from collections.abc import Iterable, Sequence
from typing import Protocol

from calorie_coach.domain.chat import ChatRole, HistoryTurn

DEFAULT_HISTORY_LIMIT = 30
CONTEXT_TEXT_LIMIT = 100
_EMPTY_TURN_PLACEHOLDER = "(画像またはアクション)"


class Turn(Protocol):
    """Anything with a role and a text body, such as a stored chat message."""

    role: str
    text: object


def sanitize_history(
    turns: Sequence[Turn], limit: int = DEFAULT_HISTORY_LIMIT
) -> list[HistoryTurn]:
    """Return a strictly alternating transcript of the most recent turns.

    Only the last ``limit`` turns are considered. Turns without usable text are
    dropped, a turn repeating the previous kept role is dropped, and a trailing
    user turn is removed because the caller appends the next user message.
    """
    if limit <= 0:
        return []
    sanitized: list[HistoryTurn] = []
    last_role: ChatRole | None = None
    for turn in list(turns)[-limit:]:
        text = getattr(turn, "text", None)
        if not isinstance(text, str) or not text.strip():
            continue
        role = _coerce_role(getattr(turn, "role", None))
        if role is None or role == last_role:
            continue
        sanitized.append(HistoryTurn(role=role, text=text))
        last_role = role

    if sanitized and sanitized[-1].role == ChatRole.USER:
        sanitized.pop()
    return sanitized


def format_recent_context(turns: Iterable[HistoryTurn], count: int) -> str:
    """Render the last ``count`` turns as ``User:``/``Model:`` lines."""
    recent = list(turns)[-count:] if count > 0 else []
    lines = []
    for turn in recent:
        speaker = "User" if turn.role == ChatRole.USER else "Model"
        text = turn.text[:CONTEXT_TEXT_LIMIT] if turn.text else _EMPTY_TURN_PLACEHOLDER
        lines.append(f"{speaker}: {text}")
    return "\n".join(lines)


def _coerce_role(value: object) -> ChatRole | None:
    try:
        return ChatRole(value)
    except ValueError:
        return None
