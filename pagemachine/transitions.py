"""
Transition rules of the pagination state machine.

Every function here is pure: it looks at an internal state and an event and
answers with the Transition to apply, without touching the machine. The
PaginationMachine decides whether a transition is still current and carries
out its fetch effect.
"""

from dataclasses import dataclass
from typing import Any

from .actions import Action, Preload, Refresh, Retry
from .internal import (
    DataLoadedState,
    InternalState,
    LoadingMoreErrorState,
    LoadingMoreState,
    NoDataState,
    RefreshErrorState,
    RefreshingState,
)
from .pagination import FIRST_PAGE, FetchResult
from .states import (
    Data,
    LoadingMore,
    LoadingMoreError,
    NoData,
    PublicState,
    RefreshError,
    Refreshing,
)

# A preload fetches the next page once the observer is this close to the end
PRELOAD_MARGIN = 5


@dataclass(frozen=True)
class Transition:
    """
    The outcome of an event.

    Attributes:
        state: The internal state to move to
        public_state: What observers are told
        fetch_page: Page to fetch once the state is entered, None for no fetch
    """

    state: InternalState
    public_state: PublicState
    fetch_page: int | None = None


def on_action(state: InternalState, action: Action) -> Transition | None:
    """
    Decides how `state` reacts to `action`.

    Returns:
        The Transition to apply, or None when the action is ignored
    """
    if isinstance(action, Refresh):
        return _on_refresh(state, action.query)
    if isinstance(action, Preload):
        return _on_preload(state, action.index)
    if isinstance(action, Retry):
        return _on_retry(state)
    raise TypeError(f"Unknown action {action!r}")


def _on_refresh(state: InternalState, query: Any) -> Transition | None:
    # A refresh already in flight is never restarted
    if isinstance(state, RefreshingState):
        return None
    return Transition(RefreshingState(query=query), Refreshing(), fetch_page=FIRST_PAGE)


def _on_preload(state: InternalState, index: int) -> Transition | None:
    if not isinstance(state, DataLoadedState):
        return None
    if not state.has_next_page:
        return None
    if index <= state.current_element_count - PRELOAD_MARGIN:
        return None

    new_state = LoadingMoreState(
        query=state.query,
        current_page_index=state.current_page_index,
        current_element_count=state.current_element_count,
    )
    return Transition(new_state, LoadingMore(), fetch_page=new_state.next_page_index)


def _on_retry(state: InternalState) -> Transition | None:
    if not isinstance(state, LoadingMoreErrorState):
        return None

    # Same page again: the failed fetch never advanced the index
    new_state = LoadingMoreState(
        query=state.query,
        current_page_index=state.current_page_index,
        current_element_count=state.current_element_count,
    )
    return Transition(new_state, LoadingMore(), fetch_page=new_state.next_page_index)


def on_fetch_success(origin: InternalState, result: FetchResult[Any]) -> Transition:
    """
    Computes where a successful fetch leads, from the state that started it.

    Raises:
        TypeError: If `origin` never starts a fetch
    """
    if isinstance(origin, RefreshingState):
        if result.is_empty:
            return Transition(NoDataState(query=origin.query), NoData(query=origin.query))
        loaded = DataLoadedState(
            query=origin.query,
            has_next_page=result.has_next_page,
            current_page_index=FIRST_PAGE,
            current_element_count=result.count,
        )
        return Transition(loaded, Data(list(result.results)))

    if isinstance(origin, LoadingMoreState):
        # An empty follow-up page still counts as loaded; NoData only comes from a refresh
        loaded = DataLoadedState(
            query=origin.query,
            has_next_page=result.has_next_page,
            current_page_index=origin.next_page_index,
            current_element_count=origin.current_element_count + result.count,
        )
        return Transition(loaded, Data(list(result.results)))

    raise TypeError(f"{type(origin).__name__} does not fetch pages")


def on_fetch_failure(origin: InternalState, error: Exception) -> Transition:
    """
    Computes where a failed fetch leads, from the state that started it.

    Raises:
        TypeError: If `origin` never starts a fetch
    """
    if isinstance(origin, RefreshingState):
        return Transition(RefreshErrorState(error=error), RefreshError(error))

    if isinstance(origin, LoadingMoreState):
        failed = LoadingMoreErrorState(
            query=origin.query,
            current_page_index=origin.current_page_index,
            current_element_count=origin.current_element_count,
            error=error,
        )
        return Transition(failed, LoadingMoreError(error))

    raise TypeError(f"{type(origin).__name__} does not fetch pages")
