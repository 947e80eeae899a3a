"""Bounded concurrent execution.

A fixed-size semaphore admits at most ``limit`` workers at a time. Every
item is run to completion; the pool never cancels siblings when one item
fails. Workers are expected to turn their own expected failures into return
values. An exception escaping a worker is a programming error and
propagates after the batch has drained.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

T = TypeVar("T")
R = TypeVar("R")


async def run_bounded(
    limit: int,
    items: Iterable[T],
    worker: Callable[[T], Awaitable[R]],
) -> list[R]:
    """Run ``worker`` over ``items`` with at most ``limit`` calls in flight.

    Returns results in input order.
    """
    if limit < 1:
        raise ValueError(f"concurrency limit must be >= 1, got {limit}")

    semaphore = asyncio.Semaphore(limit)

    async def _admit(item: T) -> R:
        async with semaphore:
            return await worker(item)

    results = await asyncio.gather(
        *(_admit(item) for item in items),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results  # type: ignore[return-value]
