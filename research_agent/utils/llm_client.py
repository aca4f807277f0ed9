"""Chat-completion client with a per-call timeout.

Every pipeline stage goes through ``LLMClient.complete``. The call is raced
against a timer with ``asyncio.wait_for``; when the timer wins the pending
request is cancelled and ``LLMTimeoutError`` is raised. A missing API key
fails before any network I/O.
"""

import asyncio
from typing import Callable, Optional

from langchain_core.messages import HumanMessage

from api.config.settings import LLM_MAX_TOKENS, LLM_TEMPERATURE, OPENROUTER_API_KEY
from api.utils.debug import print__llm_debug
from research_agent.utils.models import get_openrouter_chat_llm


class LLMError(Exception):
    """Base class for chat-completion failures."""


class LLMConfigurationError(LLMError):
    """No API key is configured."""


class LLMTimeoutError(LLMError):
    """The call did not finish within its timeout."""


class LLMCallError(LLMError):
    """The provider returned an error or an empty completion."""


def _message_text(content) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            part.get("text", "") if isinstance(part, dict) else str(part) for part in content
        )
    return ""


class LLMClient:
    """OpenRouter chat client used by the research pipeline.

    ``llm_factory`` builds a chat model per call; tests inject a fake one.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        llm_factory: Optional[Callable] = None,
    ):
        self.api_key = OPENROUTER_API_KEY if api_key is None else api_key
        self._llm_factory = llm_factory or get_openrouter_chat_llm

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def complete(
        self,
        prompt: str,
        model: str,
        *,
        timeout: float,
        temperature: float = LLM_TEMPERATURE,
        max_tokens: int = LLM_MAX_TOKENS,
        step: str = "llm",
    ) -> str:
        """Send one user message to ``model`` and return the reply text."""
        if not self.is_configured:
            raise LLMConfigurationError(f"[{step}] No OpenRouter API key set")

        print__llm_debug(f"🤖 [{step}] Calling {model} (timeout {timeout}s)")
        try:
            llm = self._llm_factory(
                model_name=model,
                temperature=temperature,
                max_tokens=max_tokens,
                api_key=self.api_key,
            )
            result = await asyncio.wait_for(
                llm.ainvoke([HumanMessage(content=prompt)]), timeout=timeout
            )
        except asyncio.TimeoutError as exc:
            raise LLMTimeoutError(
                f"[{step}] Timed out after {int(timeout * 1000)}ms"
            ) from exc
        except Exception as exc:
            raise LLMCallError(f"[{step}] {model} call failed: {exc}") from exc

        text = _message_text(getattr(result, "content", None))
        if not text.strip():
            raise LLMCallError(f"[{step}] {model} returned an empty response")
        print__llm_debug(f"✅ [{step}] {model} returned {len(text)} characters")
        return text
