"""LLM model configuration and initialization.

All stages talk to OpenRouter through its OpenAI-compatible
``/chat/completions`` endpoint, so a single ``ChatOpenAI`` factory covers every
model id (``anthropic/claude-3.5-sonnet``, ``perplexity/sonar`` ...).
"""

import os
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from langchain_openai import ChatOpenAI

from api.config.settings import APP_NAME, OPENROUTER_BASE_URL, OPENROUTER_REFERER


# ===============================================================================
# OpenRouter Chat Models
# ===============================================================================
def get_openrouter_chat_llm(
    model_name: str,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
    api_key: Optional[str] = None,
) -> ChatOpenAI:
    """Get a ChatOpenAI instance pointed at OpenRouter.

    Library-level retries are disabled; timeouts are enforced by the caller.

    Args:
        model_name (str): OpenRouter model id (e.g., "openai/gpt-4o")
        temperature (float): Temperature setting for generation randomness
        max_tokens (int): Upper bound on completion tokens
        api_key (str): Bearer key, defaults to OPENROUTER_API_KEY from the env

    Returns:
        ChatOpenAI: Configured LLM instance with async support
    """
    return ChatOpenAI(
        model=model_name,
        temperature=temperature,
        max_tokens=max_tokens,
        api_key=api_key or os.getenv("OPENROUTER_API_KEY"),
        base_url=OPENROUTER_BASE_URL,
        max_retries=0,
        streaming=False,
        default_headers={"HTTP-Referer": OPENROUTER_REFERER, "X-Title": APP_NAME},
    )
