"""Chat orchestration tests with a fake LLM provider."""

from datetime import datetime, timezone

import pytest

from budget_couple.schemas.ai import HistoryMessage
from budget_couple.services.chat_service import RETRY_MESSAGE, ChatService, fallback_answer, trim_history

from conftest import FakeLLMProvider

NOW = datetime.now(timezone.utc)


@pytest.mark.asyncio
async def test_chat_sends_financial_context(store):
    provider = FakeLLMProvider(answer="Cut down on rent.")
    response = await ChatService(store, provider).chat(1, "Where does my money go?", now=NOW)

    assert response.message == "Cut down on rent."
    assert response.error is None
    assert response.context.has_data
    assert response.context.provider == "fake"

    [(system_prompt, messages)] = provider.calls
    assert "User: Alice" in system_prompt
    assert "Rent" in system_prompt
    assert messages == [{"role": "user", "content": "Where does my money go?"}]


@pytest.mark.asyncio
async def test_chat_prompt_includes_year_and_recent_transactions(store):
    provider = FakeLLMProvider()
    await ChatService(store, provider).chat(1, "How is our year going?", now=NOW)

    [(system_prompt, _)] = provider.calls
    assert "Income this year: 3,000.00 EUR" in system_prompt
    assert "Average transaction: 1,466.67 EUR" in system_prompt
    assert "=== RECENT TRANSACTIONS ===" in system_prompt
    assert "txn 3 (Groceries)" in system_prompt


@pytest.mark.asyncio
async def test_chat_trims_history(store):
    provider = FakeLLMProvider()
    history = [
        HistoryMessage(role="user" if i % 2 == 0 else "assistant", content=f"msg {i}")
        for i in range(15)
    ]
    await ChatService(store, provider).chat(1, "latest", conversation_history=history, now=NOW)

    [(_, messages)] = provider.calls
    assert len(messages) == 11
    assert messages[0]["content"] == "msg 5"
    assert messages[-1] == {"role": "user", "content": "latest"}


@pytest.mark.asyncio
async def test_provider_failure_falls_back_to_insights(store):
    provider = FakeLLMProvider(error="connection refused")
    response = await ChatService(store, provider).chat(1, "Hello", now=NOW)

    assert response.message.startswith(RETRY_MESSAGE)
    assert "Meanwhile" in response.message
    assert "connection refused" in response.error
    assert response.context is not None


@pytest.mark.asyncio
async def test_chat_for_user_without_couple(store):
    provider = FakeLLMProvider()
    response = await ChatService(store, provider).chat(7, "Hi", now=NOW)

    assert not response.context.has_data
    [(system_prompt, _)] = provider.calls
    assert "NO FINANCIAL DATA YET" in system_prompt


def test_trim_history_limits():
    history = [HistoryMessage(role="user", content=str(i)) for i in range(3)]
    assert [m["content"] for m in trim_history(history, 2)] == ["1", "2"]
    assert trim_history(history, 0) == []


def test_fallback_answer_without_insights():
    assert fallback_answer([]) == RETRY_MESSAGE
