"""
Page results for pagemachine.

This module defines the contract between a PaginationMachine and the caller's
data provider: the provider receives a page number and the current query, and
answers with a FetchResult.
"""

from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeAlias, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

# Pages are 1-indexed; a refresh always starts here
FIRST_PAGE = 1


class FetchResult(BaseModel, Generic[T]):
    """
    Represents a single page returned by a data provider.

    Attributes:
        has_next_page: True if another page can be requested after this one
        results: Elements of this page, in display order

    An empty page without a next page is the canonical "no data" answer.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    has_next_page: bool
    results: list[T] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "FetchResult[T]":
        """Makes a result with no elements and no next page."""
        return cls(has_next_page=False, results=[])

    @property
    def count(self) -> int:
        """Number of elements in this page."""
        return len(self.results)

    @property
    def is_empty(self) -> bool:
        """Returns True if the page carries no elements."""
        return not self.results


# (page, query) -> FetchResult, either as a coroutine function or a plain callable
DataProvider: TypeAlias = Callable[[int, Any], Awaitable[FetchResult[Any]] | FetchResult[Any]]
