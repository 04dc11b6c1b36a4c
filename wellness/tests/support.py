"""Helpers shared by the test modules."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, TypeVar

T = TypeVar("T")


def run(coro: Awaitable[T]) -> T:
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class FakeClock:
    """Monotonic clock that only moves when the fake sleep is awaited."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class ScriptedClient:
    """Stand-in for ``GeminiClient`` replaying canned answers or errors.

    The last response is repeated once the script runs out.
    """

    def __init__(self, *responses: str | Exception) -> None:
        if not responses:
            raise ValueError("ScriptedClient needs at least one response")
        self._responses = list(responses)
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        response = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def response_body(text: str) -> dict[str, Any]:
    """Build a Gemini ``generateContent`` success payload."""
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}
