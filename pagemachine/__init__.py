from .actions import Action, Preload, Refresh, Retry
from .config import MachineOptions
from .exceptions import (
    EventLoopRequiredError,
    InvalidFetchResultError,
    MachineClosedError,
    PaginationError,
)
from .machine import PaginationMachine
from .observable import StateStream, Subscription
from .pagination import DataProvider, FetchResult
from .states import (
    Data,
    LoadingMore,
    LoadingMoreError,
    NoData,
    PublicState,
    RefreshError,
    Refreshing,
    Uninitialized,
)

__all__ = [
    "PaginationMachine",
    "MachineOptions",
    "FetchResult",
    "DataProvider",
    # Actions
    "Action",
    "Refresh",
    "Preload",
    "Retry",
    # Public states
    "PublicState",
    "Uninitialized",
    "Refreshing",
    "RefreshError",
    "LoadingMore",
    "LoadingMoreError",
    "NoData",
    "Data",
    # Observation
    "StateStream",
    "Subscription",
    # Exceptions
    "PaginationError",
    "InvalidFetchResultError",
    "MachineClosedError",
    "EventLoopRequiredError",
]
