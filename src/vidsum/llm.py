"""
OpenAI chat completion boundary.

The summarisation pipeline only ever sees an ``async (prompt) -> str``
callable (LLMClient.caller). Token usage is reported through an optional
on_usage hook so the caller decides how to account for it.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Dict, Optional

import openai
import tiktoken
from openai import AsyncOpenAI

from vidsum.config import DEFAULT_MODEL, OPENAI_BASE_URL, load_api_key
from vidsum.token_monitor import UsageRecord, preview_prompt

# USD per 1,000 tokens
TOKEN_PRICING: Dict[str, Dict[str, float]] = {
    "gpt-4o": {"input": 0.00250, "output": 0.01000},
    "gpt-4o-mini": {"input": 0.000150, "output": 0.000600},
    "gpt-4": {"input": 0.03000, "output": 0.06000},
    "gpt-3.5-turbo": {"input": 0.001000, "output": 0.002000},
}


class LLMRateLimitError(RuntimeError):
    """Provider rejected the request with HTTP 429."""


def calculate_cost(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    pricing = TOKEN_PRICING.get(model)
    if pricing is None:
        print(f"    Warning: no pricing for model {model}, cost recorded as 0")
        return 0.0
    return (prompt_tokens / 1000) * pricing["input"] + (completion_tokens / 1000) * pricing["output"]


def count_tokens(text: str, model: str) -> int:
    """Count tokens with the model's tiktoken encoding (cl100k_base if unknown)."""
    try:
        encoding = tiktoken.encoding_for_model(model)
    except KeyError:
        encoding = tiktoken.get_encoding("cl100k_base")
    return len(encoding.encode(text))


class LLMClient:
    """Single-shot chat completions over openai.AsyncOpenAI."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        on_usage: Optional[Callable[[UsageRecord], None]] = None,
        client: Optional[AsyncOpenAI] = None,
        verbose: bool = False,
    ):
        """
        Args:
            api_key: OpenAI API key (falls back to env var / global config)
            model: Default model for complete()
            on_usage: Called with a UsageRecord after every successful call
            client: Pre-built AsyncOpenAI client (tests inject a double here)
            verbose: Print per-call details
        """
        if client is None:
            # Retries are handled by rate_limiter.call_llm_with_retry
            client = AsyncOpenAI(api_key=api_key or load_api_key(), base_url=OPENAI_BASE_URL, max_retries=0)
        self.client = client
        self.model = model or DEFAULT_MODEL
        self.on_usage = on_usage
        self.verbose = verbose

    async def complete(self, prompt: str, model: Optional[str] = None) -> str:
        model = model or self.model
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
            )
        except openai.RateLimitError as e:
            raise LLMRateLimitError(f"rate limit exceeded for {model}: {e}") from e

        content = response.choices[0].message.content or ""

        usage = getattr(response, "usage", None)
        if usage is not None:
            prompt_tokens = usage.prompt_tokens
            completion_tokens = usage.completion_tokens
        else:
            prompt_tokens = count_tokens(prompt, model)
            completion_tokens = count_tokens(content, model)

        if self.on_usage is not None:
            self.on_usage(
                UsageRecord(
                    model=model,
                    prompt_tokens=prompt_tokens,
                    completion_tokens=completion_tokens,
                    cost=calculate_cost(model, prompt_tokens, completion_tokens),
                    prompt_preview=preview_prompt(prompt),
                )
            )

        return content

    def caller(self, model: Optional[str] = None) -> Callable[[str], Awaitable[str]]:
        """Bind a model and return an ``async (prompt) -> str`` callable."""

        async def call(prompt: str) -> str:
            return await self.complete(prompt, model)

        return call
