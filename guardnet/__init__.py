"""
GuardNet: phishing page classifier core.

Derives a fixed 50-value feature vector from a URL (and optionally its HTML),
standardizes it, and scores it with a pretrained binary model. Requests reach
the model through a single lazily-created inference worker and a
correlation-id request router.
"""

__version__ = "0.1.0"
