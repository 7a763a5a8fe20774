"""Bounded concurrency for outbound model calls."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Awaitable, Callable, Sequence, TypeVar


POOL_SCHEDULING = "pool"
BATCH_SCHEDULING = "batches"
SCHEDULING_MODES = (POOL_SCHEDULING, BATCH_SCHEDULING)

T = TypeVar("T")

logger = logging.getLogger(__name__)


def validate_scheduling(scheduling: str) -> None:
    if scheduling not in SCHEDULING_MODES:
        raise ValueError(f"scheduling must be one of {SCHEDULING_MODES}, got {scheduling!r}")


async def run_bounded(
    jobs: Sequence[Callable[[], Awaitable[T]]],
    *,
    limit: int,
    scheduling: str = POOL_SCHEDULING,
) -> list[T]:
    """Run ``jobs`` with at most ``limit`` in flight and return results in job order.

    ``pool`` starts the next job as soon as a slot frees up. ``batches`` runs
    fixed groups of ``limit`` jobs and waits for a whole group to settle before
    starting the next one.
    """

    if limit < 1:
        raise ValueError("limit must be >= 1")
    validate_scheduling(scheduling)
    if not jobs:
        return []

    if scheduling == POOL_SCHEDULING:
        semaphore = asyncio.Semaphore(limit)

        async def _guarded(job: Callable[[], Awaitable[T]]) -> T:
            async with semaphore:
                return await job()

        return list(await asyncio.gather(*(_guarded(job) for job in jobs)))

    results: list[T] = []
    batch_count = math.ceil(len(jobs) / limit)
    for start in range(0, len(jobs), limit):
        batch = jobs[start : start + limit]
        results.extend(await asyncio.gather(*(job() for job in batch)))
        logger.info("Completed batch %d/%d", start // limit + 1, batch_count)
    return results


async def call_in_thread(func: Callable[..., T], /, *, timeout_seconds: float, **kwargs: object) -> T:
    """Run a blocking call in a worker thread and stop waiting after ``timeout_seconds``.

    A thread cannot be cancelled, so on timeout this waits for the worker to
    return before raising ``asyncio.TimeoutError``. The caller's concurrency
    slot stays held until the outbound call has really ended.
    """

    worker = asyncio.ensure_future(asyncio.to_thread(func, **kwargs))
    try:
        return await asyncio.wait_for(asyncio.shield(worker), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        try:
            await worker
        except Exception as exc:
            logger.debug("Abandoned call finished with error after timeout: %s", exc)
        raise
