"""
Helpers for running blocking store work from async code.

`run_blocking` hands one call to the loop's default executor.
`gather_bounded` fans items out to worker threads with at most
``max_concurrency`` running at once. Results keep the input order and the
first failure propagates.
"""
import asyncio
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Callable, Iterable, List, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def run_blocking(func: Callable[..., R], *args: Any, **kwargs: Any) -> R:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(func, *args, **kwargs))


async def gather_bounded(func: Callable[[T], R], items: Iterable[T], max_concurrency: int) -> List[R]:
    items = list(items)
    if not items:
        return []
    loop = asyncio.get_running_loop()
    with ThreadPoolExecutor(max_workers=max(1, min(max_concurrency, len(items)))) as executor:
        tasks = [loop.run_in_executor(executor, func, item) for item in items]
        return list(await asyncio.gather(*tasks))
