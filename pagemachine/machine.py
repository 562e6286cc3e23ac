import asyncio
import logging
from collections.abc import Callable
from functools import partial
from typing import Any, Generic, TypeVar

from ._logging import logger as default_logger
from ._logging import redact_query
from .actions import Action, Preload, Refresh, Retry
from .config import MachineOptions
from .exceptions import EventLoopRequiredError, MachineClosedError
from .internal import InitialState, InternalState
from .observable import StateBroadcaster, StateStream, Subscription
from .pagination import DataProvider
from .provider import fetch_page
from .states import PublicState, Uninitialized
from .transitions import Transition, on_action, on_fetch_failure, on_fetch_success

T = TypeVar("T")


class PaginationMachine(Generic[T]):
    """
    Receives actions and publishes states for a paginated list.

    The caller supplies the data provider; the machine decides when to call
    it and tells observers what is going on through PublicState values.

    Usage:
        async def load_users(page: int, query: UserQuery | None) -> FetchResult[User]:
            return await user_service.read(page=page, query=query)

        machine = PaginationMachine(load_users, name="users")
        machine.send(Refresh())

        async for state in machine.observe():
            if isinstance(state, Data):
                view.append(state.elements)

    Concurrency:
    ------------
    All actions and all state changes run one at a time on a single worker
    task (the lane) that reads a FIFO queue. send() may be called from any
    thread; it only schedules the enqueue. Fetches run as separate tasks and
    come back to the lane with their result, tagged with the generation they
    were started under. A result whose generation is no longer current is
    stale and never changes the internal state.
    """

    def __init__(
        self,
        data_provider: DataProvider,
        name: str = "PaginationMachine",
        *,
        lane_name: str | None = None,
        logger: logging.Logger | None = None,
        publish_stale_completions: bool = True,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._options = MachineOptions(
            name=name,
            lane_name=lane_name,
            logger=logger,
            publish_stale_completions=publish_stale_completions,
        )
        self._log = self._options.logger or default_logger
        self._provider = data_provider

        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError as e:
                raise EventLoopRequiredError(name, original_error=e) from e
        self._loop = loop

        # Lane-owned; only the worker writes these
        self._current: InternalState = InitialState()
        self._generation = 0

        self._broadcaster: StateBroadcaster[PublicState] = StateBroadcaster(
            Uninitialized(), logger=self._log
        )
        self._queue: asyncio.Queue[Callable[[], None]] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None
        self._fetches: set[asyncio.Task[None]] = set()
        self._closed = False

        self._loop.call_soon_threadsafe(self._start_worker)

    # --- Properties ---

    @property
    def name(self) -> str:
        return self._options.name

    @property
    def options(self) -> MachineOptions:
        return self._options

    @property
    def state(self) -> PublicState:
        """The last published state."""
        return self._broadcaster.value

    @property
    def internal_state(self) -> InternalState:
        """The current internal state. Records are immutable, so reading is safe."""
        return self._current

    @property
    def closed(self) -> bool:
        return self._closed

    # --- Actions ---

    def send(self, action: Action) -> None:
        """
        Sends an action to be executed if the current state accepts it.

        Returns immediately. Safe to call from any thread.
        """
        if not isinstance(action, Action):
            raise TypeError(f"Expected an Action, got {type(action).__name__}")
        operation = type(action).__name__.lower()
        if self._closed:
            self._log.warning(
                "Action sent to a closed machine, ignoring",
                extra={"machine": self.name, "operation": operation},
            )
            return
        if not self._enqueue(partial(self._dispatch, action)):
            self._log.warning(
                "Action sent to a machine whose event loop is closed, ignoring",
                extra={"machine": self.name, "operation": operation},
            )

    def refresh(self, query: Any = None) -> None:
        self.send(Refresh(query))

    def preload(self, index: int) -> None:
        self.send(Preload(index))

    def retry(self) -> None:
        self.send(Retry())

    # --- Observation ---

    def observe(self) -> StateStream[PublicState]:
        """
        Opens a stream of public states, starting with the current one.

        Must be called from the machine's event loop.

        Raises:
            MachineClosedError: If the machine is closed
        """
        if self._closed:
            raise MachineClosedError(self.name)
        return self._broadcaster.stream()

    def subscribe(self, callback: Callable[[PublicState], Any]) -> Subscription[PublicState]:
        """
        Calls `callback` with the current public state, then with every change.

        Must be called from the machine's event loop; later calls happen on
        the lane.

        Raises:
            MachineClosedError: If the machine is closed
        """
        if self._closed:
            raise MachineClosedError(self.name)
        return self._broadcaster.subscribe(callback)

    # --- Synchronisation & lifecycle ---

    async def join(self) -> None:
        """Waits until every action sent so far has gone through the lane."""
        # Let enqueues scheduled by send() land in the queue first
        await asyncio.sleep(0)
        await self._queue.join()

    async def wait_idle(self) -> None:
        """
        Waits until the lane is empty and no fetch is in flight.

        Never returns while a data provider call hangs; wrap it in
        asyncio.wait_for() if that matters.
        """
        while True:
            await self.join()
            if not self._fetches:
                await asyncio.sleep(0)
                if self._queue.empty() and not self._fetches:
                    return
                continue
            await asyncio.wait(set(self._fetches))

    def close(self) -> None:
        """Stops the machine. Safe to call from any thread; does not wait."""
        if self._closed:
            return
        self._closed = True
        if not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._shutdown)

    async def aclose(self) -> None:
        """Stops the machine and waits for its tasks to finish."""
        self._closed = True
        tasks = self._shutdown()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def __aenter__(self) -> "PaginationMachine[T]":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"<PaginationMachine {self.name!r} state={type(self._current).__name__}>"

    # --- Lane internals ---

    def _start_worker(self) -> None:
        if self._closed or self._worker is not None:
            return
        self._worker = self._loop.create_task(self._run_lane(), name=self._options.worker_name)

    def _shutdown(self) -> list["asyncio.Task[None]"]:
        tasks: list[asyncio.Task[None]] = list(self._fetches)
        if self._worker is not None:
            tasks.append(self._worker)
        for task in tasks:
            task.cancel()
        self._fetches.clear()
        # Drop queued jobs so join() does not wait on a stopped lane
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
        self._broadcaster.close()
        self._log.debug("Machine closed", extra={"machine": self.name, "operation": "close"})
        return tasks

    def _enqueue(self, job: Callable[[], None]) -> bool:
        """Schedules `job` on the lane. Returns False if the event loop is closed."""
        # Always hop through the loop so jobs keep the order of their enqueue calls
        try:
            self._loop.call_soon_threadsafe(self._put, job)
        except RuntimeError:
            if not self._loop.is_closed():
                raise
            return False
        return True

    def _put(self, job: Callable[[], None]) -> None:
        if not self._closed:
            self._queue.put_nowait(job)

    async def _run_lane(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                job()
            except Exception:
                self._log.exception(
                    "Lane job failed", extra={"machine": self.name, "operation": "lane"}
                )
            finally:
                self._queue.task_done()

    def _dispatch(self, action: Action) -> None:
        operation = type(action).__name__.lower()
        self._log.debug(
            f"Going to try to {operation}",
            extra={
                "machine": self.name,
                "operation": operation,
                "index": getattr(action, "index", None),
                "query_hash": redact_query(getattr(action, "query", None)),
            },
        )

        transition = on_action(self._current, action)
        if transition is None:
            self._log.debug(
                "Action ignored",
                extra={
                    "machine": self.name,
                    "operation": operation,
                    "state": type(self._current).__name__,
                },
            )
            return

        self._commit(self._generation, transition)

    def _commit(self, generation: int, transition: Transition) -> None:
        """
        Applies `transition` if nothing has changed since `generation`.

        A stale transition leaves the internal state alone. Its public state
        is still published unless publish_stale_completions is off.
        """
        if generation == self._generation:
            previous = self._current
            self._current = transition.state
            self._generation += 1
            self._log.debug(
                "Changing state",
                extra={
                    "machine": self.name,
                    "from_state": type(previous).__name__,
                    "to_state": type(transition.state).__name__,
                },
            )
            self._broadcaster.publish(transition.public_state)
            if transition.fetch_page is not None:
                self._start_fetch(transition.state, self._generation, transition.fetch_page)
            return

        self._log.debug(
            "Discarding stale transition",
            extra={
                "machine": self.name,
                "to_state": type(transition.state).__name__,
                "generation": generation,
                "current_generation": self._generation,
            },
        )
        if self._options.publish_stale_completions:
            self._broadcaster.publish(transition.public_state)

    def _start_fetch(self, origin: InternalState, generation: int, page: int) -> None:
        task = self._loop.create_task(self._fetch(origin, generation, page))
        self._fetches.add(task)
        task.add_done_callback(self._fetches.discard)

    async def _fetch(self, origin: InternalState, generation: int, page: int) -> None:
        query = getattr(origin, "query", None)
        self._log.debug(
            "Going to fetch page",
            extra={
                "machine": self.name,
                "operation": "fetch",
                "state": type(origin).__name__,
                "page": page,
                "query_hash": redact_query(query),
            },
        )

        try:
            result = await fetch_page(self._provider, page, query)
        except Exception as e:
            self._log.error(
                "Received error",
                extra={
                    "machine": self.name,
                    "operation": "fetch",
                    "page": page,
                    "error": repr(e),
                },
            )
            self._complete(generation, partial(on_fetch_failure, origin, e))
            return

        self._log.info(
            "Received page",
            extra={
                "machine": self.name,
                "operation": "fetch",
                "page": page,
                "count": result.count,
                "has_next_page": result.has_next_page,
            },
        )
        self._complete(generation, partial(on_fetch_success, origin, result))

    def _complete(self, generation: int, outcome: Callable[[], Transition]) -> None:
        if self._closed:
            return
        self._enqueue(lambda: self._commit(generation, outcome()))

