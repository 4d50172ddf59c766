"""
StandardScaler replay for GuardNet feature vectors.

Training fit a per-feature (mean, std) pair; inference applies
(x - mean) / std elementwise. Missing scaler parameters degrade to raw
features instead of failing the request.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

import numpy as np

from guardnet.core.exceptions import ScalerUnavailable
from guardnet.core.single_flight import SingleFlight
from guardnet.guardnet_logging import get_logger
from guardnet.ml.feature_extractor import N_FEATURES

logger = get_logger(__name__)


@dataclass(frozen=True)
class ScalerParameters:
    """Per-feature mean and standard deviation, indexed like FEATURE_NAMES."""

    mean: tuple[float, ...]
    std: tuple[float, ...]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScalerParameters":
        """Build from {"mean": [...], "std": [...]}; raises ScalerUnavailable if malformed."""
        if not isinstance(data, dict):
            raise ScalerUnavailable("scaler params must be a JSON object")
        mean = data.get("mean")
        std = data.get("std")
        if not isinstance(mean, list) or not isinstance(std, list):
            raise ScalerUnavailable("scaler params need 'mean' and 'std' lists")
        try:
            return cls(
                mean=tuple(float(v) for v in mean),
                std=tuple(float(v) for v in std),
            )
        except (TypeError, ValueError) as e:
            raise ScalerUnavailable(f"non-numeric scaler value: {e}") from e

    @classmethod
    def identity(cls, n: int = N_FEATURES) -> "ScalerParameters":
        return cls(mean=(0.0,) * n, std=(1.0,) * n)


def _padded(values: Sequence[float], n: int, fill: float) -> np.ndarray:
    out = np.full(n, fill, dtype=np.float64)
    k = min(n, len(values))
    out[:k] = values[:k]
    return out


class Normalizer:
    """Applies ScalerParameters; logs the degraded identity mode once."""

    def __init__(self) -> None:
        self._warned = False

    def apply(
        self,
        vector: np.ndarray | Sequence[float],
        params: ScalerParameters | None,
    ) -> np.ndarray:
        """
        Standardize vector with params. Absent params return the input unchanged.

        A missing mean is taken as 0; a missing, zero or non-finite std as 1.
        """
        x = np.asarray(vector, dtype=np.float64)
        if params is None:
            if not self._warned:
                logger.warning("normalizer_no_scaler_params", mode="identity")
                self._warned = True
            return x

        n = x.shape[0]
        mean = _padded(params.mean, n, 0.0)
        std = _padded(params.std, n, 1.0)
        mean[~np.isfinite(mean)] = 0.0
        std[(std == 0) | ~np.isfinite(std)] = 1.0
        out = (x - mean) / std
        out.flags.writeable = False
        return out


def load_scaler_params(path: str | Path) -> ScalerParameters:
    """Read scaler JSON from path. Raises ScalerUnavailable when missing or malformed."""
    path = Path(path)
    if not path.is_file():
        raise ScalerUnavailable(f"scaler params not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ScalerUnavailable(f"cannot read scaler params: {e}") from e
    params = ScalerParameters.from_dict(data)
    if len(params.mean) != N_FEATURES or len(params.std) != N_FEATURES:
        logger.warning(
            "normalizer_scaler_length_mismatch",
            path=str(path),
            n_mean=len(params.mean),
            n_std=len(params.std),
            expected=N_FEATURES,
        )
    return params


class ScalerStore:
    """
    Lazily loads scaler parameters once and memoizes the outcome.

    Concurrent first callers share one load. A missing or malformed artifact
    is memoized as None (identity normalization) for the life of the store.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._params: ScalerParameters | None = None
        self._loaded = False
        self._flight: SingleFlight[ScalerParameters | None] = SingleFlight(self._load)

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def get(self) -> ScalerParameters | None:
        if self._loaded:
            return self._params
        return await self._flight.run()

    async def _load(self) -> ScalerParameters | None:
        loop = asyncio.get_running_loop()
        try:
            params = await loop.run_in_executor(None, load_scaler_params, self._path)
            logger.info("normalizer_scaler_loaded", path=str(self._path))
        except ScalerUnavailable as e:
            logger.warning("normalizer_scaler_unavailable", path=str(self._path), error=e.message)
            params = None
        self._params = params
        self._loaded = True
        return params
