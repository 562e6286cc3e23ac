"""
Internal states of a PaginationMachine.

Each record carries only what its node needs to react to further actions.
Records are immutable; a transition always builds a new one.

Possible transitions:
    * InitialState -> RefreshingState
    * RefreshingState -> RefreshErrorState | NoDataState | DataLoadedState
    * RefreshErrorState -> RefreshingState
    * NoDataState -> RefreshingState
    * DataLoadedState -> RefreshingState | LoadingMoreState
    * LoadingMoreState -> LoadingMoreErrorState | DataLoadedState | RefreshingState
    * LoadingMoreErrorState -> LoadingMoreState | RefreshingState
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class InternalState:
    """Base class of the machine's internal states."""


@dataclass(frozen=True)
class InitialState(InternalState):
    """No action has been processed yet."""


@dataclass(frozen=True)
class RefreshingState(InternalState):
    """The first page for `query` is being fetched."""

    query: Any = None


@dataclass(frozen=True)
class RefreshErrorState(InternalState):
    error: Exception


@dataclass(frozen=True)
class NoDataState(InternalState):
    query: Any = None


@dataclass(frozen=True)
class DataLoadedState(InternalState):
    """
    At least one page is loaded.

    Attributes:
        query: The query the pages were fetched with
        has_next_page: Whether the last page announced a successor
        current_page_index: Index of the last loaded page
        current_element_count: Elements loaded across all pages
    """

    query: Any
    has_next_page: bool
    current_page_index: int
    current_element_count: int


@dataclass(frozen=True)
class LoadingMoreState(InternalState):
    """
    The page after `current_page_index` is being fetched.

    Index and count are the values from before the fetch started.
    """

    query: Any
    current_page_index: int
    current_element_count: int

    @property
    def next_page_index(self) -> int:
        return self.current_page_index + 1


@dataclass(frozen=True)
class LoadingMoreErrorState(InternalState):
    """Loading the page after `current_page_index` failed with `error`."""

    query: Any
    current_page_index: int
    current_element_count: int
    error: Exception
