"""Bounded worker pool with ordered merge and fail-fast cancellation.

One pool per call: a feeder hands units to `concurrency` workers through a
single-slot queue, results are merged by unit index, and the first failure
cancels everything that has not started yet.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol, TypeVar, cast

from subtide.exceptions import UnitFailedError

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 3


class IndexedUnit(Protocol):
    @property
    def index(self) -> int: ...


U = TypeVar("U", bound=IndexedUnit)
R = TypeVar("R")

_STOP = object()


async def run_concurrent(
    units: Sequence[U],
    process: Callable[[U], Awaitable[Sequence[R]]],
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
    unit_label: str = "unit",
) -> list[R]:
    """Process every unit and return the flattened results in unit-index order.

    Raises:
        UnitFailedError: for the first unit whose `process` call raised. Partial
            results are discarded and no further units are started.
    """
    if not units:
        return []
    if concurrency <= 0:
        concurrency = DEFAULT_CONCURRENCY

    if len(units) == 1:
        unit = units[0]
        try:
            return list(await process(unit))
        except Exception as exc:
            logger.warning("%s %s failed: %s", unit_label, unit.index, exc)
            raise UnitFailedError(unit_label, unit.index, exc) from exc

    num_workers = min(concurrency, len(units))
    logger.debug(
        "run_concurrent start (unit=%s, units=%s, workers=%s)",
        unit_label,
        len(units),
        num_workers,
    )

    queue: asyncio.Queue[object] = asyncio.Queue(maxsize=1)
    cancelled = asyncio.Event()
    lock = asyncio.Lock()
    collected: list[tuple[int, list[R]]] = []
    first_error: tuple[int, Exception] | None = None

    async def _feed() -> None:
        for unit in units:
            if cancelled.is_set():
                logger.debug("feeder stopped after cancellation (unit=%s)", unit_label)
                break
            await queue.put(unit)
        for _ in range(num_workers):
            await queue.put(_STOP)

    async def _work() -> None:
        nonlocal first_error
        while True:
            if cancelled.is_set():
                return
            item = await queue.get()
            if item is _STOP or cancelled.is_set():
                return
            unit = cast(U, item)
            try:
                results = list(await process(unit))
            except Exception as exc:
                async with lock:
                    if first_error is None:
                        first_error = (unit.index, exc)
                cancelled.set()
                return
            async with lock:
                collected.append((unit.index, results))

    feeder = asyncio.create_task(_feed())
    workers = [asyncio.create_task(_work()) for _ in range(num_workers)]
    try:
        await asyncio.gather(*workers)
    finally:
        # Once every worker has exited the feeder may be parked on a full queue.
        for task in (feeder, *workers):
            if not task.done():
                task.cancel()
        await asyncio.gather(feeder, *workers, return_exceptions=True)

    if first_error is not None:
        index, exc = first_error
        logger.warning("%s %s failed: %s", unit_label, index, exc)
        raise UnitFailedError(unit_label, index, exc) from exc

    collected.sort(key=lambda pair: pair[0])
    merged: list[R] = []
    for _index, results in collected:
        merged.extend(results)
    logger.debug("run_concurrent done (unit=%s, results=%s)", unit_label, len(merged))
    return merged
