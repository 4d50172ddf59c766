"""
Tests for WorkerCoordinator: single-flight creation, failure fan-out,
retry after failure and recreation of a dead worker.
"""

from __future__ import annotations

import asyncio

import pytest

from guardnet.agent_worker.coordinator import (
    WorkerCoordinator,
    WorkerState,
    pipeline_worker_factory,
)
from guardnet.agent_worker.worker import InferenceWorker
from guardnet.core.exceptions import WorkerCreationFailed


class _StubPipeline:
    def __init__(self) -> None:
        self.preloads = 0

    async def preload(self) -> None:
        self.preloads += 1

    async def predict(self, url, content=""):
        return 0.1


def _slow_factory(counter: list, fail: bool = False):
    async def create() -> InferenceWorker:
        counter.append(1)
        await asyncio.sleep(0.02)
        if fail:
            raise RuntimeError("context limit reached")
        worker = InferenceWorker(_StubPipeline())
        await worker.start()
        return worker

    return create


def test_concurrent_callers_trigger_one_creation():
    """N simultaneous ensure_ready() calls while uninitialized create exactly one worker."""
    created = []
    coordinator = WorkerCoordinator(_slow_factory(created))

    async def scenario():
        assert coordinator.state is WorkerState.UNINITIALIZED
        tasks = [asyncio.ensure_future(coordinator.ensure_ready()) for _ in range(10)]
        await asyncio.sleep(0)
        assert coordinator.state is WorkerState.CREATING
        workers = await asyncio.gather(*tasks)
        assert coordinator.state is WorkerState.READY
        await coordinator.shutdown()
        return workers

    workers = asyncio.run(scenario())
    assert len(created) == 1
    assert coordinator.creations == 1
    assert all(w is workers[0] for w in workers)


def test_ready_worker_returned_without_new_creation():
    created = []
    coordinator = WorkerCoordinator(_slow_factory(created))

    async def scenario():
        first = await coordinator.ensure_ready()
        second = await coordinator.ensure_ready()
        await coordinator.shutdown()
        return first, second

    first, second = asyncio.run(scenario())
    assert first is second
    assert len(created) == 1


def test_creation_failure_fans_out_to_all_callers():
    created = []
    coordinator = WorkerCoordinator(_slow_factory(created, fail=True))

    async def scenario():
        return await asyncio.gather(
            *(coordinator.ensure_ready() for _ in range(5)),
            return_exceptions=True,
        )

    results = asyncio.run(scenario())
    assert len(created) == 1
    assert all(isinstance(r, WorkerCreationFailed) for r in results)
    assert len({str(r) for r in results}) == 1
    assert "context limit reached" in str(results[0])
    assert coordinator.state is WorkerState.UNINITIALIZED


def test_retry_after_failed_creation():
    attempts = []

    async def flaky() -> InferenceWorker:
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("boom")
        worker = InferenceWorker(_StubPipeline())
        await worker.start()
        return worker

    coordinator = WorkerCoordinator(flaky)

    async def scenario():
        with pytest.raises(WorkerCreationFailed):
            await coordinator.ensure_ready()
        worker = await coordinator.ensure_ready()
        alive = worker.is_alive()
        await coordinator.shutdown()
        return alive

    assert asyncio.run(scenario()) is True
    assert coordinator.creations == 2


def test_dead_worker_is_recreated():
    created = []
    coordinator = WorkerCoordinator(_slow_factory(created))

    async def scenario():
        first = await coordinator.ensure_ready()
        await first.stop()
        assert coordinator.state is WorkerState.UNINITIALIZED
        second = await coordinator.ensure_ready()
        await coordinator.shutdown()
        return first, second

    first, second = asyncio.run(scenario())
    assert first is not second
    assert len(created) == 2


def test_pipeline_worker_factory_preloads():
    pipeline = _StubPipeline()
    coordinator = WorkerCoordinator(pipeline_worker_factory(pipeline))

    async def scenario():
        worker = await coordinator.ensure_ready()
        assert worker.pipeline is pipeline
        await coordinator.shutdown()

    asyncio.run(scenario())
    assert pipeline.preloads == 1


def test_shutdown_during_creation_stops_new_worker():
    """shutdown() mid-creation waits for it, then stops the fresh worker."""
    created = []
    coordinator = WorkerCoordinator(_slow_factory(created))

    async def scenario():
        pending = asyncio.ensure_future(coordinator.ensure_ready())
        await asyncio.sleep(0.005)
        assert coordinator.state is WorkerState.CREATING
        await coordinator.shutdown()
        worker = await pending
        return worker

    worker = asyncio.run(scenario())
    assert len(created) == 1
    assert worker.is_alive() is False
    assert coordinator.state is WorkerState.UNINITIALIZED


def test_shutdown_during_failed_creation():
    created = []
    coordinator = WorkerCoordinator(_slow_factory(created, fail=True))

    async def scenario():
        pending = asyncio.ensure_future(coordinator.ensure_ready())
        await asyncio.sleep(0.005)
        await coordinator.shutdown()
        with pytest.raises(WorkerCreationFailed):
            await pending

    asyncio.run(scenario())
    assert coordinator.state is WorkerState.UNINITIALIZED
