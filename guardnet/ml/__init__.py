"""
ML pipeline: feature extraction, standardization, classification, tiers.
"""

from guardnet.ml.feature_extractor import FEATURE_NAMES, extract_features
from guardnet.ml.score_tiers import Tier, score_to_tier

__all__ = ["FEATURE_NAMES", "Tier", "extract_features", "score_to_tier"]
