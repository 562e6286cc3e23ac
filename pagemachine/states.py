"""
Public states published by a PaginationMachine.

These are the only thing observers see; adapt the UI according to the
current one.

Possible transitions:
    * Uninitialized -> Refreshing
    * Refreshing -> RefreshError | NoData | Data
    * RefreshError -> Refreshing
    * NoData -> Refreshing
    * Data -> Refreshing | LoadingMore
    * LoadingMore -> Refreshing | LoadingMoreError | Data
    * LoadingMoreError -> Refreshing | LoadingMore
"""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class PublicState:
    """Base class of every published state."""


@dataclass(frozen=True)
class Uninitialized(PublicState):
    """The machine has not processed any action yet."""


@dataclass(frozen=True)
class Refreshing(PublicState):
    """The first page is being fetched."""


@dataclass(frozen=True)
class RefreshError(PublicState):
    """Fetching the first page failed."""

    error: Exception


@dataclass(frozen=True)
class LoadingMore(PublicState):
    """Another page is being fetched."""


@dataclass(frozen=True)
class LoadingMoreError(PublicState):
    """Fetching another page failed; a Retry fetches it again."""

    error: Exception


@dataclass(frozen=True)
class NoData(PublicState):
    """The first page came back empty for this query."""

    query: Any = None


@dataclass(frozen=True)
class Data(PublicState, Generic[T]):
    """
    A page arrived.

    Only the elements of the new page are carried, not everything loaded so
    far. Observers append them to what they already show.
    """

    elements: list[T] = field(default_factory=list)
