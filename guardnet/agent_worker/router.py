"""
Request router: correlation-id RPC to the inference worker.

Each send() ensures the worker, registers a one-shot future under a fresh
request id, posts the envelope and waits up to the deadline. The future is
resolved exactly once, by the worker's reply or by the timeout; a reply that
arrives after its request timed out finds no pending entry and is dropped.
Any number of requests may be outstanding at once.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any

from guardnet.agent_worker.coordinator import WorkerCoordinator
from guardnet.agent_worker.messages import PredictRequest, PredictResponse
from guardnet.agent_worker.worker import Envelope
from guardnet.config.env import DEFAULT_POPUP_TIMEOUT_SEC
from guardnet.core.exceptions import RequestTimeout, WorkerCreationFailed
from guardnet.guardnet_logging import get_logger
from guardnet.guardnet_logging.logger import bind_request

logger = get_logger(__name__)


class RequestRouter:
    """Sends PREDICT requests and correlates their replies."""

    def __init__(
        self,
        coordinator: WorkerCoordinator,
        *,
        default_timeout_sec: float = DEFAULT_POPUP_TIMEOUT_SEC,
    ) -> None:
        if default_timeout_sec <= 0:
            raise ValueError("default_timeout_sec must be positive")
        self._coordinator = coordinator
        self._default_timeout = default_timeout_sec
        self._pending: dict[str, asyncio.Future[dict[str, Any]]] = {}
        self.discarded_replies = 0

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def send(
        self,
        request: PredictRequest,
        timeout_sec: float | None = None,
    ) -> PredictResponse:
        """
        Deliver request to the worker and return its response.

        Never raises for worker, model or timeout failures; those come back
        as PredictResponse(success=False, error=..., error_code=...).
        """
        timeout = timeout_sec if timeout_sec is not None else self._default_timeout
        try:
            worker = await self._coordinator.ensure_ready()
        except WorkerCreationFailed as e:
            return PredictResponse.failure(e.message, e.code)

        request_id = uuid.uuid4().hex
        log = bind_request(request_id)
        fut: asyncio.Future[dict[str, Any]] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = fut
        try:
            worker.post(Envelope(request_id, request.to_dict(), self._on_reply))
            log.debug("router_request_sent", url=request.url, timeout_sec=timeout)
            reply = await asyncio.wait_for(fut, timeout)
        except asyncio.TimeoutError:
            err = RequestTimeout(f"Timeout: no response within {timeout:g}s")
            log.warning("router_request_timeout", url=request.url, timeout_sec=timeout)
            return PredictResponse.failure(err.message, err.code)
        finally:
            self._pending.pop(request_id, None)

        return PredictResponse.from_dict(reply)

    def _on_reply(self, request_id: str, reply: dict[str, Any]) -> None:
        fut = self._pending.get(request_id)
        if fut is None or fut.done():
            self.discarded_replies += 1
            logger.info("router_reply_discarded", request_id=request_id)
            return
        fut.set_result(reply)
