"""
Inference worker context.

The worker is the heavyweight context that owns the model: a long-lived
asyncio task draining an inbox of envelopes. Each message is handled in its
own task, so replies may go out in a different order than requests came in.
PREDICT messages are answered through the envelope's reply callback; other
message types are ignored. The loop never crashes on a bad request.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable

from guardnet.agent_worker.messages import PREDICT, PredictRequest, PredictResponse
from guardnet.core.exceptions import GuardNetError
from guardnet.guardnet_logging import get_logger
from guardnet.ml.pipeline import PhishingPipeline

logger = get_logger(__name__)

ReplyCallback = Callable[[str, dict[str, Any]], None]


@dataclass(frozen=True)
class Envelope:
    """One message posted to the worker, with its correlation id and reply path."""

    request_id: str
    message: dict[str, Any]
    reply_to: ReplyCallback


@dataclass
class WorkerStats:
    """Mutable counters for monitoring."""

    started_at: float | None = None
    processed_count: int = 0
    error_count: int = 0
    last_error: str | None = None


class InferenceWorker:
    """Runs the phishing pipeline behind a message inbox."""

    def __init__(self, pipeline: PhishingPipeline) -> None:
        self.pipeline = pipeline
        self.stats = WorkerStats()
        self._inbox: asyncio.Queue[Envelope | None] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None
        self._handling: set[asyncio.Task[None]] = set()

    async def start(self, *, preload: bool = True) -> None:
        """Start the inbox loop, then warm model and scaler."""
        if self.is_alive():
            return
        self._task = asyncio.create_task(self._run(), name="guardnet-inference-worker")
        self.stats.started_at = time.time()
        logger.info("worker_started", preload=preload)
        if preload:
            await self.pipeline.preload()

    def is_alive(self) -> bool:
        return self._task is not None and not self._task.done()

    def post(self, envelope: Envelope) -> None:
        """Queue a message for the worker. Raises RuntimeError when not running."""
        if not self.is_alive():
            raise RuntimeError("inference worker is not running")
        self._inbox.put_nowait(envelope)

    async def stop(self) -> None:
        """Finish queued messages and stop the loop."""
        if self._task is None:
            return
        if not self._task.done():
            self._inbox.put_nowait(None)
            await self._task
        logger.info(
            "worker_stopped",
            processed_count=self.stats.processed_count,
            error_count=self.stats.error_count,
        )

    async def handle_message(self, message: dict[str, Any]) -> dict[str, Any] | None:
        """Answer one wire message. Returns None for message types the worker ignores."""
        if not isinstance(message, dict) or message.get("type") != PREDICT:
            return None
        request = PredictRequest.from_dict(message)
        try:
            score = await self.pipeline.predict(request.url, request.content)
        except GuardNetError as e:
            self.stats.error_count += 1
            self.stats.last_error = e.message
            logger.warning("worker_predict_failed", url=request.url, error=e.message, error_code=e.code)
            return PredictResponse.failure(e.message, e.code).to_dict()
        self.stats.processed_count += 1
        return PredictResponse.ok(score).to_dict()

    async def _process(self, envelope: Envelope) -> None:
        try:
            reply = await self.handle_message(envelope.message)
        except Exception as e:
            self.stats.error_count += 1
            self.stats.last_error = str(e)
            logger.exception("worker_message_failed", request_id=envelope.request_id, error=str(e))
            reply = PredictResponse.failure(str(e) or "Prediction failed").to_dict()
        if reply is not None:
            envelope.reply_to(envelope.request_id, reply)

    async def _run(self) -> None:
        while True:
            envelope = await self._inbox.get()
            if envelope is None:
                break
            task = asyncio.create_task(self._process(envelope))
            self._handling.add(task)
            task.add_done_callback(self._handling.discard)
        if self._handling:
            await asyncio.gather(*self._handling)
