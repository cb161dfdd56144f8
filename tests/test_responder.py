"""Tests for the free-form coaching responder."""

import asyncio
from datetime import timedelta

from calorie_coach.domain.chat import ChatRole, HistoryTurn
from calorie_coach.domain.meals import MealLog
from calorie_coach.services.generation import GenerationError
from calorie_coach.services.responder import (
    EMPTY_REPLY_MESSAGE,
    REPLY_FAILURE_MESSAGE,
    CoachingResponder,
)
from tests.conftest import NOW, FakeGenerationClient, make_profile


def _reply(  # type: ignore[no-untyped-def]
    client: FakeGenerationClient, history=None, meals=None
) -> str:
    responder = CoachingResponder(client)
    return asyncio.run(
        responder.reply(history or [], "疲れた", make_profile(), meals or [], NOW)
    )


def test_reply_returns_model_text() -> None:
    client = FakeGenerationClient(texts=["```\nお疲れ様！\n```"])

    assert _reply(client) == "お疲れ様！"
    assert client.text_calls[0]["message"] == "疲れた"


def test_empty_reply_uses_placeholder() -> None:
    client = FakeGenerationClient(texts=["   "])

    assert _reply(client) == EMPTY_REPLY_MESSAGE


def test_failure_uses_apology() -> None:
    client = FakeGenerationClient(texts=[GenerationError("offline")])

    assert _reply(client) == REPLY_FAILURE_MESSAGE


def test_history_is_sanitized_before_sending() -> None:
    client = FakeGenerationClient()
    history = [
        HistoryTurn(ChatRole.USER, "a"),
        HistoryTurn(ChatRole.USER, "b"),
        HistoryTurn(ChatRole.MODEL, "c"),
        HistoryTurn(ChatRole.USER, "d"),
    ]

    _reply(client, history)

    assert client.text_calls[0]["history"] == [
        HistoryTurn(ChatRole.USER, "a"),
        HistoryTurn(ChatRole.MODEL, "c"),
    ]


def test_instruction_mentions_today_totals_only() -> None:
    client = FakeGenerationClient()
    meals = [
        MealLog.create(
            logged_at=NOW, name="おにぎり", calories=180, protein=3, fat=1, carbs=39
        ),
        MealLog.create(
            logged_at=NOW - timedelta(days=1),
            name="ケーキ",
            calories=400,
            protein=5,
            fat=20,
            carbs=50,
        ),
    ]

    _reply(client, meals=meals)

    instruction = client.text_calls[0]["system_instruction"]
    assert "180 / 1600 kcal" in instruction
    assert "Never output JSON" in instruction
