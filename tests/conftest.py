"""
Pytest fixtures for GuardNet tests. Builds small real model and scaler
artifacts under tmp_path.
"""

from __future__ import annotations

import json

import joblib
import numpy as np
import pytest
from sklearn.linear_model import LogisticRegression

from guardnet.ml.feature_extractor import N_FEATURES


@pytest.fixture
def model_path(tmp_path):
    """LogisticRegression over 50 features, label 1 = legitimate, saved with joblib."""
    rng = np.random.default_rng(0)
    X = rng.normal(size=(60, N_FEATURES))
    y = (X[:, 0] > 0).astype(int)
    clf = LogisticRegression(max_iter=500).fit(X, y)
    path = tmp_path / "model.joblib"
    joblib.dump(clf, path)
    return path


@pytest.fixture
def scaler_path(tmp_path):
    """Scaler JSON with mean 0 and std 1 for every feature."""
    path = tmp_path / "scaler_params.json"
    path.write_text(
        json.dumps({"mean": [0.0] * N_FEATURES, "std": [1.0] * N_FEATURES}),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def guardnet_env(monkeypatch, model_path, scaler_path):
    """Point GuardNet settings at the tmp artifacts."""
    monkeypatch.setenv("GUARDNET_MODEL_PATH", str(model_path))
    monkeypatch.setenv("GUARDNET_SCALER_PATH", str(scaler_path))
    monkeypatch.delenv("GUARDNET_TRUSTED_DOMAINS", raising=False)
    monkeypatch.delenv("GUARDNET_TRUSTED_TLDS", raising=False)
    return monkeypatch
