from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Action:
    """Base class of the commands a caller can send to a PaginationMachine."""


@dataclass(frozen=True)
class Refresh(Action):
    """
    Restarts pagination from the first page with the given query.

    The query is opaque to the machine and forwarded unchanged to the
    data provider.
    """

    query: Any = None


@dataclass(frozen=True)
class Preload(Action):
    """
    Asks for the next page using the index the observer is currently showing.

    Examples, for a page size of 20 elements:
        * showing element 16 starts loading the next page
        * showing element 10 does nothing yet
    """

    index: int


@dataclass(frozen=True)
class Retry(Action):
    """Retries the page whose loading failed."""
