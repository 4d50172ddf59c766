"""
Phishing scoring pipeline run inside the inference worker.

extract_features -> Normalizer.apply -> Classifier.predict.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from guardnet.guardnet_logging import get_logger
from guardnet.ml.feature_extractor import extract_features
from guardnet.ml.normalizer import Normalizer, ScalerStore
from guardnet.ml.predictor import Classifier

logger = get_logger(__name__)


class PhishingPipeline:
    """Owns the classifier and scaler store for one worker context."""

    def __init__(
        self,
        classifier: Classifier,
        scaler_store: ScalerStore,
        normalizer: Normalizer | None = None,
    ) -> None:
        self.classifier = classifier
        self.scaler_store = scaler_store
        self.normalizer = normalizer or Normalizer()

    @classmethod
    def from_paths(cls, model_path: str | Path, scaler_path: str | Path) -> "PhishingPipeline":
        return cls(Classifier(model_path), ScalerStore(scaler_path))

    async def preload(self) -> None:
        """Warm model and scaler. Errors are logged; requests retry the load."""
        results = await asyncio.gather(
            self.classifier.load(),
            self.scaler_store.get(),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                logger.warning("pipeline_preload_failed", error=str(result))

    async def predict(self, url: str, content: str | None = "") -> float:
        """Return P(phishing) for (url, content). Raises ModelUnavailable."""
        # Load first so an unavailable model fails before extraction work
        await self.classifier.load()
        params = await self.scaler_store.get()
        features = extract_features(url, content)
        normalized = self.normalizer.apply(features, params)
        score = await self.classifier.predict(normalized)
        logger.info("pipeline_prediction", url=url, score=round(score, 4))
        return score
