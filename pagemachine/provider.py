import asyncio
import inspect
from collections.abc import Mapping
from typing import Any

from .exceptions import InvalidFetchResultError, handle_fetch_result_errors
from .pagination import DataProvider, FetchResult


def coerce_fetch_result(value: Any, page: int) -> FetchResult[Any]:
    """
    Turns whatever the data provider answered into a FetchResult.

    Args:
        value: The provider's answer
        page: The requested page, used in error messages

    Returns:
        The value itself when it already is a FetchResult, otherwise the
        FetchResult validated from a mapping such as
        {"hasNextPage": True, "results": [...]}

    Raises:
        InvalidFetchResultError: If the value cannot be read as a page
    """
    if isinstance(value, FetchResult):
        return value
    if not isinstance(value, Mapping):
        raise InvalidFetchResultError(page=page, value=value)

    with handle_fetch_result_errors(page=page, value=value):
        return FetchResult.model_validate(dict(value))


async def fetch_page(provider: DataProvider, page: int, query: Any) -> FetchResult[Any]:
    """
    Calls the data provider for one page.

    Coroutine functions, and objects with an async __call__, are awaited on
    the running loop. Plain callables run in a worker thread so a blocking
    database or HTTP call never stalls the event loop; if they hand back an
    awaitable it is awaited afterwards.

    Any exception raised by the provider propagates to the caller untouched.
    """
    if inspect.iscoroutinefunction(provider) or inspect.iscoroutinefunction(
        getattr(provider, "__call__", None)
    ):
        value = await provider(page, query)
    else:
        value = await asyncio.to_thread(provider, page, query)
        if inspect.isawaitable(value):
            value = await value

    return coerce_fetch_result(value, page)
