"""Tests for LLMClient timeouts and error mapping."""

import asyncio
from types import SimpleNamespace

import pytest

from research_agent.utils.llm_client import (
    LLMCallError,
    LLMClient,
    LLMConfigurationError,
    LLMTimeoutError,
)
from research_agent.utils.models import get_openrouter_chat_llm


class FakeChatModel:
    def __init__(self, reply=None, delay: float = 0.0, error: Exception = None):
        self.reply = reply
        self.delay = delay
        self.error = error
        self.messages = None

    async def ainvoke(self, messages):
        self.messages = messages
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=self.reply)


def _client(model: FakeChatModel, calls=None) -> LLMClient:
    def factory(**kwargs):
        if calls is not None:
            calls.append(kwargs)
        return model

    return LLMClient(api_key="sk-test", llm_factory=factory)


@pytest.mark.asyncio
async def test_missing_key_fails_before_any_call():
    calls = []

    def factory(**kwargs):
        calls.append(kwargs)

    client = LLMClient(api_key="", llm_factory=factory)
    assert client.is_configured is False
    with pytest.raises(LLMConfigurationError, match=r"\[parse\]"):
        await client.complete("hi", "openai/gpt-4o", timeout=1, step="parse")
    assert calls == []


@pytest.mark.asyncio
async def test_returns_text_and_passes_model_settings():
    calls = []
    model = FakeChatModel(reply="hello")

    text = await _client(model, calls).complete("prompt", "openai/gpt-4o", timeout=5, temperature=0.2, max_tokens=50)

    assert text == "hello"
    assert calls == [{"model_name": "openai/gpt-4o", "temperature": 0.2, "max_tokens": 50, "api_key": "sk-test"}]
    assert model.messages[0].content == "prompt"


@pytest.mark.asyncio
async def test_content_parts_are_joined():
    model = FakeChatModel(reply=[{"type": "text", "text": "a"}, {"type": "text", "text": "b"}])
    assert await _client(model).complete("p", "m", timeout=5) == "ab"


@pytest.mark.asyncio
async def test_timeout_raises_timeout_error():
    model = FakeChatModel(reply="late", delay=1.0)
    with pytest.raises(LLMTimeoutError, match="Timed out after 10ms"):
        await _client(model).complete("p", "m", timeout=0.01, step="research")


@pytest.mark.asyncio
async def test_provider_error_and_empty_reply_raise_call_error():
    with pytest.raises(LLMCallError, match="boom"):
        await _client(FakeChatModel(error=RuntimeError("boom"))).complete("p", "m", timeout=5)
    with pytest.raises(LLMCallError, match="empty response"):
        await _client(FakeChatModel(reply="   ")).complete("p", "m", timeout=5)


def test_openrouter_chat_llm_configuration():
    llm = get_openrouter_chat_llm("openai/gpt-4o", temperature=0.3, max_tokens=100, api_key="sk-test")
    assert llm.model_name == "openai/gpt-4o"
    assert llm.max_retries == 0
    assert "openrouter.ai" in str(llm.openai_api_base)
