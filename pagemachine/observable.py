"""
Latest-value broadcasting for pagemachine.

A StateBroadcaster remembers the last published value. Every new observer
receives that value first and then every later one, in publishing order.
Observers come in two flavours: StateStream, an async iterator, and
Subscription, a plain callback.

The broadcaster is not thread-safe on its own; the PaginationMachine only
touches it from its event loop.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from ._logging import logger as default_logger

S = TypeVar("S")

# Marks the end of a stream inside its queue
_END = object()


class StateStream(Generic[S]):
    """
    Async iterator over published values.

    Usage:
        async with machine.observe() as states:
            async for state in states:
                ...

    The stream only ends when it is closed or its broadcaster is closed.
    """

    def __init__(self, broadcaster: "StateBroadcaster[S]") -> None:
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._finished = False

    @property
    def closed(self) -> bool:
        return self._finished

    def _deliver(self, value: S) -> None:
        if not self._finished:
            self._queue.put_nowait(value)

    def _finish(self) -> None:
        if not self._finished:
            self._finished = True
            self._queue.put_nowait(_END)

    def close(self) -> None:
        """Stops receiving values. Values already queued can still be read."""
        self._broadcaster._detach(self)
        self._finish()

    async def aclose(self) -> None:
        self.close()

    def __aiter__(self) -> "StateStream[S]":
        return self

    async def __anext__(self) -> S:
        item = await self._queue.get()
        if item is _END:
            # Keep the marker so later reads stop as well
            self._queue.put_nowait(_END)
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> "StateStream[S]":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()


class Subscription(Generic[S]):
    """A callback registered on a StateBroadcaster. Call cancel() to stop it."""

    def __init__(self, broadcaster: "StateBroadcaster[S]", callback: Callable[[S], Any]) -> None:
        self._broadcaster = broadcaster
        self._callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def _deliver(self, value: S) -> None:
        if self._active:
            self._callback(value)

    def _finish(self) -> None:
        self._active = False

    def cancel(self) -> None:
        self._broadcaster._detach(self)
        self._active = False


class StateBroadcaster(Generic[S]):
    """
    Holds the current value and fans it out to observers.

    Args:
        initial: The value new observers get until something is published
        logger: Where failing callbacks are reported
    """

    def __init__(self, initial: S, logger: logging.Logger | None = None) -> None:
        self._value = initial
        self._observers: list[StateStream[S] | Subscription[S]] = []
        self._closed = False
        self._log = logger or default_logger

    @property
    def value(self) -> S:
        return self._value

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def publish(self, value: S) -> None:
        """Stores `value` and hands it to every observer, in subscription order."""
        if self._closed:
            return
        self._value = value
        for observer in list(self._observers):
            try:
                observer._deliver(value)
            except Exception:
                # One broken observer must not starve the others
                self._log.exception(
                    "State observer failed",
                    extra={"operation": "publish", "state": type(value).__name__},
                )

    def stream(self) -> StateStream[S]:
        """Opens an async stream that starts with the current value."""
        stream: StateStream[S] = StateStream(self)
        stream._deliver(self._value)
        self._observers.append(stream)
        return stream

    def subscribe(self, callback: Callable[[S], Any]) -> Subscription[S]:
        """
        Registers `callback` and calls it right away with the current value.

        An exception raised by that first call propagates to the caller;
        later failures are logged.
        """
        subscription: Subscription[S] = Subscription(self, callback)
        subscription._deliver(self._value)
        self._observers.append(subscription)
        return subscription

    def close(self) -> None:
        """Ends every stream and deactivates every subscription."""
        self._closed = True
        observers, self._observers = self._observers, []
        for observer in observers:
            observer._finish()

    def _detach(self, observer: StateStream[S] | Subscription[S]) -> None:
        try:
            self._observers.remove(observer)
        except ValueError:
            pass
