"""
Phishing classifier: lazy model load and scoring.

The model artifact is a joblib-serialized sklearn-compatible estimator that
accepts a (1, 50) input. Label 1 means legitimate, so the raw output is
P(legitimate) and the exposed score is 1 - raw.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable

import numpy as np

from guardnet.core.exceptions import ModelUnavailable
from guardnet.core.single_flight import SingleFlight
from guardnet.guardnet_logging import get_logger
from guardnet.ml.feature_extractor import N_FEATURES

logger = get_logger(__name__)

# Class label the model uses for legitimate pages
LEGITIMATE_LABEL = 1


def load_model(path: str | Path) -> Any:
    """Load a joblib model from path. Raises ModelUnavailable on any failure."""
    import joblib

    path = Path(path)
    if not path.is_file():
        raise ModelUnavailable(f"model not found: {path}")
    try:
        return joblib.load(path)
    except Exception as e:
        raise ModelUnavailable(f"model load failed: {e}") from e


def legitimate_probability(model: Any, X: np.ndarray) -> float:
    """
    Raw model output for a (1, n) input, read as P(legitimate).

    Uses predict_proba and the column of LEGITIMATE_LABEL when the model has
    one; otherwise the single value returned by predict.
    """
    if hasattr(model, "predict_proba"):
        proba = np.asarray(model.predict_proba(X), dtype=np.float64)[0]
        classes = list(getattr(model, "classes_", range(len(proba))))
        if LEGITIMATE_LABEL in classes:
            return float(proba[classes.index(LEGITIMATE_LABEL)])
        return float(proba[-1])
    raw = np.asarray(model.predict(X), dtype=np.float64).ravel()
    if raw.size == 0:
        raise ValueError("model returned an empty prediction")
    return float(raw[0])


class Classifier:
    """
    Wraps the inference model; loads it on first use and memoizes it.

    Concurrent callers before the first load share one load operation. A
    failed load is not memoized: the next predict() retries from scratch.
    """

    def __init__(
        self,
        model_path: str | Path,
        *,
        loader: Callable[[Path], Any] = load_model,
    ) -> None:
        self._model_path = Path(model_path)
        self._loader = loader
        self._model: Any = None
        self._flight: SingleFlight[Any] = SingleFlight(self._load)

    @property
    def loaded(self) -> bool:
        return self._model is not None

    @property
    def load_attempts(self) -> int:
        return self._flight.started

    async def load(self) -> Any:
        """Return the model, loading it if needed. Raises ModelUnavailable."""
        if self._model is not None:
            return self._model
        return await self._flight.run()

    async def _load(self) -> Any:
        logger.info("predictor_model_loading", path=str(self._model_path))
        loop = asyncio.get_running_loop()
        try:
            model = await loop.run_in_executor(None, self._loader, self._model_path)
        except ModelUnavailable as e:
            logger.error("predictor_model_unavailable", path=str(self._model_path), error=e.message)
            raise
        except Exception as e:
            logger.error("predictor_model_load_failed", path=str(self._model_path), error=str(e))
            raise ModelUnavailable(f"model load failed: {e}") from e
        self._model = model
        logger.info("predictor_model_loaded", path=str(self._model_path))
        return model

    async def predict(self, vector: np.ndarray) -> float:
        """
        Score a standardized feature vector.

        Returns P(phishing) = 1 - P(legitimate), clipped to [0, 1].
        Raises ModelUnavailable if the model cannot be loaded or run.
        """
        model = await self.load()
        X = np.asarray(vector, dtype=np.float64).reshape(1, N_FEATURES)
        try:
            legit = legitimate_probability(model, X)
        except Exception as e:
            logger.warning("predictor_inference_failed", error=str(e))
            raise ModelUnavailable(f"inference failed: {e}") from e
        score = min(max(1.0 - legit, 0.0), 1.0)
        logger.debug("predictor_score", raw_legitimate=legit, score=score)
        return score
