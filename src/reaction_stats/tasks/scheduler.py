# src/reaction_stats/tasks/scheduler.py

from __future__ import annotations

"""
Bounded-concurrency retry scheduler.

A small wave loop that:
- takes up to `limit` tasks from the front of the queue,
- invokes them concurrently and waits for all of them to settle,
- keeps successful values, re-queues failed tasks at the back,
- sleeps a fixed cooldown after any wave that had a failure.

The scheduler knows nothing about what tasks do (search pages, reaction lookups, ...).
"""

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

from ..core.ports import AsyncTask

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_COOLDOWN_SECONDS = 15.0


class RetryBudgetExhausted(Exception):
    """
    Raised when an opt-in `max_failed_waves` bound is reached.

    Carries what was collected so far and how many tasks were still queued.
    """

    def __init__(self, *, failed_waves: int, results: list[Any], pending: int) -> None:
        super().__init__(
            f"Giving up after {failed_waves} failed waves ({pending} tasks still pending)"
        )
        self.failed_waves = failed_waves
        self.results = results
        self.pending = pending


class _Failure:
    __slots__ = ("exc",)

    def __init__(self, exc: BaseException) -> None:
        self.exc = exc


async def _invoke(task: AsyncTask[Any]) -> Any:
    # Calling the task happens inside the coroutine, so a task that raises before
    # returning an awaitable is treated like any other failure.
    try:
        return await task()
    except Exception as e:
        return _Failure(e)


def _describe(exc: BaseException) -> str:
    text = str(exc).strip()
    return f"{exc.__class__.__name__}: {text}" if text else exc.__class__.__name__


async def run_concurrent(
        tasks: Iterable[AsyncTask[T]],
        limit: int,
        *,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        max_failed_waves: int | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> list[T]:
    """
    Run `tasks` in waves of at most `limit` and return the successful values.

    Per wave:
    - wave size is min(limit, queued tasks)
    - all tasks of the wave are started at once and awaited together
    - values are appended in wave order; failed tasks go to the back of the queue
    - if anything failed, wait `cooldown_seconds` before the next wave

    Task exceptions never leave this function. With the default
    `max_failed_waves=None` failing tasks are retried until they succeed; set it
    to raise RetryBudgetExhausted after that many waves with failures.

    Cancelling the caller cancels the running wave.
    """
    if limit < 1:
        raise ValueError(f"limit must be a positive integer, got {limit!r}")
    if max_failed_waves is not None and max_failed_waves < 1:
        raise ValueError(f"max_failed_waves must be positive or None, got {max_failed_waves!r}")

    queue: deque[AsyncTask[T]] = deque(tasks)
    results: list[T] = []
    wave_no = 0
    failed_waves = 0

    while queue:
        wave_size = min(limit, len(queue))
        wave = [queue.popleft() for _ in range(wave_size)]
        wave_no += 1
        logger.debug("Wave %d: starting %d tasks (%d queued behind)", wave_no, wave_size, len(queue))

        children = [asyncio.ensure_future(_invoke(t)) for t in wave]
        await asyncio.gather(*children, return_exceptions=True)

        failed = 0
        for task, child in zip(wave, children):
            # Only the child's state is checked, never the value the task produced.
            outcome = _Failure(asyncio.CancelledError()) if child.cancelled() else child.result()

            if isinstance(outcome, _Failure):
                failed += 1
                queue.append(task)
                logger.warning("Wave %d: task failed, re-queued (%s)", wave_no, _describe(outcome.exc))
            else:
                results.append(outcome)

        if not failed:
            continue

        failed_waves += 1
        if max_failed_waves is not None and failed_waves >= max_failed_waves:
            raise RetryBudgetExhausted(failed_waves=failed_waves, results=results, pending=len(queue))

        logger.info(
            "Wave %d: %d/%d tasks failed, cooling down %.1fs before retrying",
            wave_no,
            failed,
            wave_size,
            cooldown_seconds,
        )
        await sleep(cooldown_seconds)

    logger.debug("All tasks settled after %d waves (%d results)", wave_no, len(results))
    return results
