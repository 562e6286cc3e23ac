"""
Paged search feed example

A fake search service answers 12 results per page for three pages. The
"screen" appends every Data page it receives and asks for more when it
shows the last rows, the way a list view would on scroll.
"""

import asyncio
import random

from pagemachine import (
    Data,
    FetchResult,
    LoadingMoreError,
    NoData,
    PaginationMachine,
    RefreshError,
)

PAGE_SIZE = 12
LAST_PAGE = 3


async def search_movies(page: int, query: str | None) -> FetchResult[str]:
    """Pretend network call with some latency and the occasional failure."""
    await asyncio.sleep(0.05)
    if random.random() < 0.2:
        raise ConnectionError(f"timeout loading page {page}")
    if query == "nothing":
        return FetchResult.empty()

    start = (page - 1) * PAGE_SIZE
    titles = [f"{query or 'movie'} #{i}" for i in range(start, start + PAGE_SIZE)]
    return FetchResult(has_next_page=page < LAST_PAGE, results=titles)


async def main() -> None:
    async with PaginationMachine(search_movies, name="movies") as machine:
        shown: list[str] = []
        machine.refresh("rush")

        async for state in machine.observe():
            print(f"state: {type(state).__name__}")

            if isinstance(state, Data):
                shown.extend(state.elements)
                # User scrolled to the last row
                machine.preload(len(shown) - 1)
            elif isinstance(state, LoadingMoreError):
                machine.retry()
            elif isinstance(state, RefreshError):
                machine.refresh("rush")
            elif isinstance(state, NoData):
                break

            if len(shown) == PAGE_SIZE * LAST_PAGE:
                break

        print(f"\nLoaded {len(shown)} titles")
        for title in shown[:5]:
            print(f"  - {title}")


if __name__ == "__main__":
    asyncio.run(main())
