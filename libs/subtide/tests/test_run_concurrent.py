from __future__ import annotations

import asyncio
from dataclasses import dataclass

import pytest

from subtide.exceptions import UnitFailedError
from subtide.pipeline.concurrent import run_concurrent


@dataclass(frozen=True)
class _Unit:
    index: int


@pytest.mark.asyncio
async def test_results_are_merged_in_unit_order_regardless_of_completion() -> None:
    units = [_Unit(i) for i in range(7)]

    async def _process(unit: _Unit) -> list[int]:
        # Later units finish first.
        await asyncio.sleep(0.001 * (len(units) - unit.index))
        return [unit.index * 10, unit.index * 10 + 1]

    results = await run_concurrent(units, _process, concurrency=3)

    assert results == [v for i in range(7) for v in (i * 10, i * 10 + 1)]


_SWEEP_UNITS = [_Unit(i) for i in range(6)]


async def _staggered(unit: _Unit) -> list[int]:
    # Odd units are slow, even units fast, so completion order interleaves.
    await asyncio.sleep(0.004 if unit.index % 2 else 0.001 * (len(_SWEEP_UNITS) - unit.index))
    return [unit.index, -unit.index]


@pytest.mark.asyncio
@pytest.mark.parametrize("concurrency", range(1, len(_SWEEP_UNITS) + 2))
async def test_merged_output_is_independent_of_concurrency(concurrency: int) -> None:
    sequential = await run_concurrent(_SWEEP_UNITS, _staggered, concurrency=1)

    results = await run_concurrent(_SWEEP_UNITS, _staggered, concurrency=concurrency)

    assert results == sequential
    assert results == [v for i in range(6) for v in (i, -i)]


@pytest.mark.asyncio
async def test_concurrency_bound_is_respected() -> None:
    active = 0
    peak = 0

    async def _process(unit: _Unit) -> list[int]:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.002)
        active -= 1
        return [unit.index]

    results = await run_concurrent([_Unit(i) for i in range(10)], _process, concurrency=3)

    assert results == list(range(10))
    assert peak <= 3


@pytest.mark.asyncio
async def test_empty_input_returns_empty_without_calls() -> None:
    calls: list[int] = []

    async def _process(unit: _Unit) -> list[int]:
        calls.append(unit.index)
        return [unit.index]

    assert await run_concurrent([], _process, concurrency=3) == []
    assert calls == []


@pytest.mark.asyncio
async def test_non_positive_concurrency_falls_back_to_default() -> None:
    async def _process(unit: _Unit) -> list[int]:
        return [unit.index]

    assert await run_concurrent([_Unit(0), _Unit(1)], _process, concurrency=0) == [0, 1]


@pytest.mark.asyncio
async def test_single_unit_failure_is_wrapped() -> None:
    async def _process(unit: _Unit) -> list[int]:
        raise RuntimeError("boom")

    with pytest.raises(UnitFailedError) as exc_info:
        await run_concurrent([_Unit(0)], _process, unit_label="chunk")

    assert exc_info.value.index == 0
    assert str(exc_info.value) == "chunk 0 failed: boom"
    assert isinstance(exc_info.value.cause, RuntimeError)


@pytest.mark.asyncio
async def test_first_failure_stops_scheduling_further_units() -> None:
    calls: list[int] = []

    async def _process(unit: _Unit) -> list[int]:
        calls.append(unit.index)
        if unit.index == 1:
            raise ValueError("bad batch")
        await asyncio.sleep(0.01)
        return [unit.index]

    with pytest.raises(UnitFailedError) as exc_info:
        await run_concurrent([_Unit(i) for i in range(20)], _process, concurrency=2, unit_label="batch")

    assert exc_info.value.index == 1
    assert str(exc_info.value) == "batch 1 failed: bad batch"
    assert len(calls) <= 4


@pytest.mark.asyncio
async def test_failure_discards_partial_results_and_leaves_no_tasks() -> None:
    async def _process(unit: _Unit) -> list[int]:
        if unit.index == 2:
            raise RuntimeError("late failure")
        return [unit.index]

    before = len(asyncio.all_tasks())
    with pytest.raises(UnitFailedError):
        await run_concurrent([_Unit(i) for i in range(6)], _process, concurrency=3)

    assert len(asyncio.all_tasks()) == before
