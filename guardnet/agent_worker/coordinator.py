"""
Worker coordinator: at most one inference worker, created lazily.

ensure_ready() returns the live worker, joins a creation already in flight,
or starts one. The in-flight creation is an owned future shared by every
concurrent caller and cleared when it settles, so a failed creation fans out
to all joined callers and the next call retries.
"""

from __future__ import annotations

from enum import Enum
from typing import Awaitable, Callable

from guardnet.agent_worker.worker import InferenceWorker
from guardnet.core.exceptions import WorkerCreationFailed
from guardnet.core.single_flight import SingleFlight
from guardnet.guardnet_logging import get_logger
from guardnet.ml.pipeline import PhishingPipeline

logger = get_logger(__name__)

WorkerFactory = Callable[[], Awaitable[InferenceWorker]]


class WorkerState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CREATING = "creating"
    READY = "ready"


def pipeline_worker_factory(pipeline: PhishingPipeline, *, preload: bool = True) -> WorkerFactory:
    """Factory that starts an InferenceWorker around pipeline."""

    async def create() -> InferenceWorker:
        worker = InferenceWorker(pipeline)
        await worker.start(preload=preload)
        return worker

    return create


class WorkerCoordinator:
    """Owns the inference worker and its creation lifecycle."""

    def __init__(self, factory: WorkerFactory) -> None:
        self._factory = factory
        self._worker: InferenceWorker | None = None
        self._flight: SingleFlight[InferenceWorker] = SingleFlight(self._create)

    @property
    def state(self) -> WorkerState:
        if self._flight.in_flight:
            return WorkerState.CREATING
        if self._worker is not None and self._worker.is_alive():
            return WorkerState.READY
        return WorkerState.UNINITIALIZED

    @property
    def creations(self) -> int:
        """Number of creation operations started so far."""
        return self._flight.started

    async def ensure_ready(self) -> InferenceWorker:
        """Return a live worker. Raises WorkerCreationFailed."""
        worker = self._worker
        if worker is not None:
            if worker.is_alive():
                return worker
            logger.warning("coordinator_worker_gone")
            self._worker = None
        return await self._flight.run()

    async def _create(self) -> InferenceWorker:
        logger.info("coordinator_worker_creating", attempt=self._flight.started)
        try:
            worker = await self._factory()
        except WorkerCreationFailed as e:
            logger.error("coordinator_worker_creation_failed", error=e.message)
            raise
        except Exception as e:
            logger.error("coordinator_worker_creation_failed", error=str(e))
            raise WorkerCreationFailed(f"worker creation failed: {e}") from e
        self._worker = worker
        logger.info("coordinator_worker_ready")
        return worker

    async def shutdown(self) -> None:
        """Stop the worker if one is running, waiting out a creation in flight."""
        if self._flight.in_flight:
            try:
                await self._flight.run()
            except WorkerCreationFailed:
                pass
        worker, self._worker = self._worker, None
        if worker is not None:
            await worker.stop()
