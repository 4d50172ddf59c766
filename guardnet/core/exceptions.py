"""
Application-level exceptions.

Every failure carries a stable ``code`` so the worker and router can turn it
into a tagged failure response ({"success": false, "error": ..., "error_code": ...}).
"""

from __future__ import annotations


class GuardNetError(Exception):
    """Base class for GuardNet failures."""

    code = "error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class InvalidUrl(GuardNetError):
    """URL could not be parsed. Absorbed by the feature extractor (zero vector)."""

    code = "invalid_url"


class ScalerUnavailable(GuardNetError):
    """Scaler parameters missing or malformed. Degrades to raw features."""

    code = "scaler_unavailable"


class ModelUnavailable(GuardNetError):
    """Model artifact could not be loaded. Fails the current request only."""

    code = "model_unavailable"


class WorkerCreationFailed(GuardNetError):
    """Inference worker could not be created. Fans out to every joined caller."""

    code = "worker_creation_failed"


class RequestTimeout(GuardNetError):
    """No reply within the request deadline. Worker state is left untouched."""

    code = "timeout"
