"""
Concurrency-capped, delay-enforcing scheduler for async work units.

RateLimiter knows nothing about LLMs: it takes zero-argument callables that
return awaitables, runs at most max_concurrent of them at once (FIFO), and
keeps a freed slot closed for delay_ms after each completion.

call_llm_with_retry adds exponential backoff for rate-limit failures on top
of a single LLM call.

All state is touched only from the event loop thread, so no locking.
"""

from __future__ import annotations

import asyncio
import random
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, Set, Tuple, TypeVar

T = TypeVar("T")

# Recommended presets per provider
RATE_LIMIT_CONFIGS: Dict[str, Dict[str, int]] = {
    "openai": {"max_concurrent": 3, "delay_ms": 1000},
    "claude": {"max_concurrent": 2, "delay_ms": 1500},
    "gemini": {"max_concurrent": 5, "delay_ms": 500},
    "default": {"max_concurrent": 3, "delay_ms": 1000},
}

DEFAULT_MAX_RETRIES = 3
RATE_LIMIT_MARKER = "rate limit"


class MaxRetriesExceededError(RuntimeError):
    """Raised when every attempt of call_llm_with_retry hit a rate limit."""


class RateLimiter:
    """Run async work units with bounded concurrency and a post-completion delay."""

    def __init__(self, max_concurrent: int = 3, delay_ms: int = 1000):
        if max_concurrent <= 0:
            raise ValueError("max_concurrent must be a positive integer")
        if delay_ms < 0:
            raise ValueError("delay_ms must be non-negative")
        self.max_concurrent = max_concurrent
        self.delay_ms = delay_ms
        self._queue: Deque[Tuple[Callable[[], Awaitable[Any]], asyncio.Future]] = deque()
        self._active = 0
        self._tasks: Set[asyncio.Task] = set()

    @classmethod
    def from_preset(cls, name: str) -> "RateLimiter":
        config = RATE_LIMIT_CONFIGS.get(name, RATE_LIMIT_CONFIGS["default"])
        return cls(config["max_concurrent"], config["delay_ms"])

    async def execute(self, fn: Callable[[], Awaitable[T]]) -> T:
        """
        Queue a work unit and wait for its result.

        The unit's own return value or exception comes back unchanged.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        self._queue.append((fn, future))
        self._process_queue()
        return await future

    def _process_queue(self) -> None:
        while self._queue and self._active < self.max_concurrent:
            fn, future = self._queue.popleft()
            self._active += 1
            task = asyncio.ensure_future(self._run(fn, future))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _run(self, fn: Callable[[], Awaitable[Any]], future: asyncio.Future) -> None:
        try:
            result = await fn()
        except Exception as e:
            if not future.done():
                future.set_exception(e)
        else:
            if not future.done():
                future.set_result(result)
        finally:
            # The slot stays taken until delay_ms after completion
            asyncio.get_running_loop().call_later(self.delay_ms / 1000, self._release_slot)

    def _release_slot(self) -> None:
        self._active -= 1
        self._process_queue()

    def get_status(self) -> Dict[str, int]:
        """
        Snapshot for observability; not meant for control decisions.

        active_requests includes slots still cooling down after a completion.
        """
        return {
            "queue_length": len(self._queue),
            "active_requests": self._active,
            "max_concurrent": self.max_concurrent,
        }


def is_rate_limit_error(error: BaseException) -> bool:
    return RATE_LIMIT_MARKER in str(error).lower()


def _backoff_delay(attempt: int) -> float:
    """Seconds to wait after the given (0-based) failed attempt."""
    return (2 ** attempt * 1000 + random.uniform(0, 1000)) / 1000


async def call_llm_with_retry(
    llm_fn: Callable[[str], Awaitable[str]],
    prompt: str,
    max_retries: int = DEFAULT_MAX_RETRIES,
    verbose: bool = False,
) -> str:
    """
    Call llm_fn(prompt), retrying rate-limit failures with exponential backoff.

    Args:
        llm_fn: Async single-shot completion function
        prompt: Prompt passed to llm_fn unchanged
        max_retries: Total number of attempts
        verbose: Print retry notices

    Returns:
        The completion text from the first successful attempt

    Raises:
        MaxRetriesExceededError: every attempt failed with a rate-limit error
        Exception: any non-rate-limit error, propagated immediately
    """
    last_error: Optional[BaseException] = None
    for attempt in range(max_retries):
        try:
            return await llm_fn(prompt)
        except Exception as e:
            if not is_rate_limit_error(e):
                raise
            last_error = e
            if attempt < max_retries - 1:
                delay = _backoff_delay(attempt)
                if verbose:
                    print(f"    Rate limit hit, retrying in {delay:.1f}s... (attempt {attempt + 1}/{max_retries})")
                await asyncio.sleep(delay)

    raise MaxRetriesExceededError(f"Max retries exceeded ({max_retries} attempts)") from last_error
