from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from pydantic import ValidationError


class PaginationError(Exception):
    """Base exception for all pagemachine errors."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class InvalidFetchResultError(PaginationError):
    """Raised when a data provider returns something that is not a page result."""

    def __init__(
        self, page: int, value: Any = None, original_error: Exception | None = None
    ) -> None:
        super().__init__(
            f"Data provider returned an invalid result for page {page}: "
            f"{type(value).__name__}",
            original_error,
        )
        self.page = page
        self.value = value


class MachineClosedError(PaginationError):
    """Raised when observing a machine that has been closed."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Pagination machine '{name}' is closed")
        self.name = name


class EventLoopRequiredError(PaginationError):
    """Raised when a machine is built outside a running event loop without one given."""

    def __init__(self, name: str, original_error: Exception | None = None) -> None:
        super().__init__(
            f"Pagination machine '{name}' must be created inside a running event loop "
            "or be given one with loop=",
            original_error,
        )
        self.name = name


@contextmanager
def handle_fetch_result_errors(page: int, value: Any = None) -> Generator[None, None, None]:
    """
    Context manager that catches pydantic ValidationError raised while
    validating a data provider result and raises InvalidFetchResultError.

    Args:
        page: The page being fetched, for the error message
        value: The raw value returned by the provider

    Usage:
        with handle_fetch_result_errors(page=2, value=raw):
            FetchResult.model_validate(raw)
    """
    try:
        yield
    except ValidationError as e:
        raise InvalidFetchResultError(page=page, value=value, original_error=e) from e
