"""
Test helpers for pagemachine.

This module provides scripted data providers and a state recorder, so tests
can decide what every page fetch answers and when it answers.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any

from pagemachine import FetchResult, PublicState


def make_page(start: int, size: int, has_next_page: bool = True) -> FetchResult[str]:
    """Builds a page of elements named e<start> .. e<start + size - 1>."""
    return FetchResult(
        has_next_page=has_next_page, results=[f"e{i}" for i in range(start, start + size)]
    )


class ScriptedProvider:
    """
    Async data provider answering from a script.

    `responses` maps a page number to a FetchResult, an exception to raise, or
    a list of those consumed one call at a time.
    """

    def __init__(self, responses: dict[int, Any] | None = None):
        self.responses = dict(responses or {})
        self.calls: list[tuple[int, Any]] = []

    async def __call__(self, page: int, query: Any) -> FetchResult[Any]:
        self.calls.append((page, query))
        answer = self.responses[page]
        if isinstance(answer, list):
            answer = answer.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    @property
    def pages(self) -> list[int]:
        return [page for page, _ in self.calls]


@dataclass
class PendingFetch:
    """A fetch held by a GatedProvider until the test resolves it."""

    page: int
    query: Any
    future: "asyncio.Future[Any]" = field(repr=False)

    def resolve(self, result: FetchResult[Any]) -> None:
        self.future.set_result(result)

    def fail(self, error: Exception) -> None:
        self.future.set_exception(error)


class GatedProvider:
    """
    Async data provider whose fetches stay pending until the test answers them.

    Usage:
        pending = await provider.next_fetch()
        pending.resolve(make_page(1, 20))
    """

    def __init__(self) -> None:
        self.calls: list[tuple[int, Any]] = []
        self._arrivals: asyncio.Queue[PendingFetch] = asyncio.Queue()

    async def __call__(self, page: int, query: Any) -> FetchResult[Any]:
        self.calls.append((page, query))
        pending = PendingFetch(page, query, asyncio.get_running_loop().create_future())
        self._arrivals.put_nowait(pending)
        return await pending.future

    async def next_fetch(self, timeout: float = 1.0) -> PendingFetch:
        return await asyncio.wait_for(self._arrivals.get(), timeout)

    def has_waiting_fetch(self) -> bool:
        return not self._arrivals.empty()


class StateRecorder:
    """Subscription callback collecting every published state."""

    def __init__(self) -> None:
        self.states: list[PublicState] = []
        self._changed = asyncio.Event()

    def __call__(self, state: PublicState) -> None:
        self.states.append(state)
        self._changed.set()

    async def wait_for(self, count: int, timeout: float = 1.0) -> list[PublicState]:
        """Waits until at least `count` states were recorded and returns them."""

        async def _wait() -> None:
            while len(self.states) < count:
                self._changed.clear()
                await self._changed.wait()

        await asyncio.wait_for(_wait(), timeout)
        return list(self.states)

    @property
    def kinds(self) -> list[str]:
        return [type(state).__name__ for state in self.states]
