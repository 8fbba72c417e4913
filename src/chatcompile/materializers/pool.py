import asyncio
from collections.abc import Awaitable, Iterable
from typing import TypeVar

T = TypeVar("T")


async def gather_ordered(aws: Iterable[Awaitable[T]], limit: int) -> list[T]:
    """Await all awaitables with at most ``limit`` running at once.

    Results are returned in input order, whatever the completion order.
    """
    semaphore = asyncio.Semaphore(limit)

    async def run(aw: Awaitable[T]) -> T:
        async with semaphore:
            return await aw

    return list(await asyncio.gather(*(run(aw) for aw in aws)))
