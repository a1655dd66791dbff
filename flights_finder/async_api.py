"""
Async API for flights-finder.

Provides async wrappers for search operations, enabling:
- Non-blocking searches from an event loop
- Concurrent searches across routes and providers
- Integration with async frameworks (FastAPI, aiohttp, etc.)

Each search is still sequential internally (bootstrap, then poll); the
wrappers run whole searches in a thread pool.

Example:
    import asyncio
    from flights_finder import search_async, search_many

    async def main():
        result = await search_async({
            "origin": "BER",
            "destination": "MAD",
            "departure_date": "2026-02-01"
        }, provider="kiwi")

        results = await search_many([
            ({"origin": "BER", "destination": "MAD", "departure_date": "2026-02-01"}, "skyscanner"),
            ({"origin": "BER", "destination": "MAD", "departure_date": "2026-02-01"}, "kiwi"),
        ], max_concurrent=2)

    asyncio.run(main())
"""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar, Union

from .config import FinderConfig
from .schema import SearchInput, SearchResult
from .search import search

# Type variable for generic async wrapper
T = TypeVar("T")

SearchRequest = Union[SearchInput, Dict[str, Any]]

# Default thread pool for running sync operations
_executor: Optional[ThreadPoolExecutor] = None
_max_workers: int = 10


def get_executor(max_workers: Optional[int] = None) -> ThreadPoolExecutor:
    """
    Get or create the thread pool executor for async operations.

    Args:
        max_workers: Maximum number of worker threads. Uses default if not specified.

    Returns:
        ThreadPoolExecutor instance.
    """
    global _executor, _max_workers

    if max_workers is not None:
        _max_workers = max_workers

    if _executor is None or _executor._shutdown:
        _executor = ThreadPoolExecutor(max_workers=_max_workers)

    return _executor


def shutdown_executor(wait: bool = True) -> None:
    """
    Shutdown the thread pool executor.

    Args:
        wait: If True, wait for all pending futures to complete.
    """
    global _executor
    if _executor is not None:
        _executor.shutdown(wait=wait)
        _executor = None


async def run_in_executor(
    func: Callable[..., T],
    *args: Any,
    **kwargs: Any
) -> T:
    """
    Run a synchronous function in the thread pool executor.

    Example:
        result = await run_in_executor(sync_function, arg1, arg2, key=value)
    """
    loop = asyncio.get_event_loop()
    executor = get_executor()

    if kwargs:
        func = partial(func, **kwargs)

    return await loop.run_in_executor(executor, func, *args)


async def search_async(
    search_input: SearchRequest,
    provider: str = "skyscanner",
    *,
    config: Optional[FinderConfig] = None,
) -> SearchResult:
    """
    Async version of search.

    Every search gets its own transport, so concurrent calls share nothing
    but configuration.

    Raises:
        The same exceptions as ``flights_finder.search.search``.
    """
    return await run_in_executor(search, search_input, provider, config=config)


async def search_many(
    requests: Sequence[Tuple[SearchRequest, str]],
    *,
    max_concurrent: Optional[int] = None,
    config: Optional[FinderConfig] = None,
    return_exceptions: bool = False,
) -> List[Union[SearchResult, BaseException]]:
    """
    Run several independent searches concurrently.

    Args:
        requests: (search input, provider) pairs
        max_concurrent: Maximum searches in flight. Unbounded if not given.
        config: Configuration shared by all searches
        return_exceptions: Return failures in place instead of raising the first one

    Returns:
        Results in the same order as ``requests``.

    Example:
        results = await search_many(
            [(route, "skyscanner"), (route, "kiwi")],
            max_concurrent=2,
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, SearchResult):
                print(result.summary())
    """
    if max_concurrent:
        # Use semaphore to limit concurrency
        semaphore = asyncio.Semaphore(max_concurrent)

        async def search_with_semaphore(search_input: SearchRequest, provider: str) -> SearchResult:
            async with semaphore:
                return await search_async(search_input, provider, config=config)

        tasks = [search_with_semaphore(s, p) for s, p in requests]
    else:
        tasks = [search_async(s, p, config=config) for s, p in requests]

    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)


__all__ = [
    "search_async",
    "search_many",
    "run_in_executor",
    "get_executor",
    "shutdown_executor",
]
