"""
Agent worker package: inference worker context and request plumbing.

WorkerCoordinator keeps at most one InferenceWorker alive; RequestRouter
carries PREDICT requests to it and correlates the replies.
"""

from guardnet.agent_worker.coordinator import WorkerCoordinator, WorkerState
from guardnet.agent_worker.messages import PredictRequest, PredictResponse
from guardnet.agent_worker.router import RequestRouter
from guardnet.agent_worker.worker import InferenceWorker

__all__ = [
    "InferenceWorker",
    "PredictRequest",
    "PredictResponse",
    "RequestRouter",
    "WorkerCoordinator",
    "WorkerState",
]
