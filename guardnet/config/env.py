"""
Environment variable loading for GuardNet.

- GUARDNET_MODEL_PATH: joblib model artifact (1x50 in, P(legitimate) out)
- GUARDNET_SCALER_PATH: scaler JSON {"mean": [...], "std": [...]}
- GUARDNET_POPUP_TIMEOUT_SEC / GUARDNET_PAGE_SCAN_TIMEOUT_SEC: request deadlines
- GUARDNET_TRUSTED_DOMAINS / GUARDNET_TRUSTED_TLDS: comma-separated allow-lists
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

# Project root: config is guardnet/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_MODELS_DIR = _PACKAGE_DIR / "ml" / "models"
DEFAULT_MODEL_PATH = DEFAULT_MODELS_DIR / "model.joblib"
DEFAULT_SCALER_PATH = DEFAULT_MODELS_DIR / "scaler_params.json"

DEFAULT_POPUP_TIMEOUT_SEC = 10.0
DEFAULT_PAGE_SCAN_TIMEOUT_SEC = 15.0

DEFAULT_TRUSTED_DOMAINS = (
    "google.com",
    "youtube.com",
    "gmail.com",
    "microsoft.com",
    "live.com",
    "office.com",
    "apple.com",
    "github.com",
    "wikipedia.org",
    "facebook.com",
    "instagram.com",
    "whatsapp.com",
    "linkedin.com",
    "x.com",
    "twitter.com",
    "amazon.com",
    "paypal.com",
    "tokopedia.com",
    "shopee.co.id",
    "bca.co.id",
    "klikbca.com",
    "bankmandiri.co.id",
    "bri.co.id",
    "bni.co.id",
)

DEFAULT_TRUSTED_TLDS = (
    "go.id",
    "ac.id",
    "sch.id",
    "mil.id",
    "gov",
    "edu",
    "mil",
)


def load_guardnet_env() -> None:
    """Load .env from project root. Safe to call multiple times."""
    try:
        from dotenv import load_dotenv
        load_dotenv(_ENV_PATH)
    except Exception:
        pass


def _get_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _get_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return tuple(
        item.strip().lower().lstrip(".")
        for item in raw.split(",")
        if item.strip()
    )


def get_model_path() -> Path:
    """Return GUARDNET_MODEL_PATH or the bundled default."""
    load_guardnet_env()
    raw = (os.getenv("GUARDNET_MODEL_PATH") or "").strip()
    return Path(raw) if raw else DEFAULT_MODEL_PATH


def get_scaler_path() -> Path:
    """Return GUARDNET_SCALER_PATH or the bundled default."""
    load_guardnet_env()
    raw = (os.getenv("GUARDNET_SCALER_PATH") or "").strip()
    return Path(raw) if raw else DEFAULT_SCALER_PATH


def get_popup_timeout_sec() -> float:
    """Deadline for interactive popup scans. Default: 10 s."""
    load_guardnet_env()
    return _get_float("GUARDNET_POPUP_TIMEOUT_SEC", DEFAULT_POPUP_TIMEOUT_SEC)


def get_page_scan_timeout_sec() -> float:
    """Deadline for full-page scans from the interception page. Default: 15 s."""
    load_guardnet_env()
    return _get_float("GUARDNET_PAGE_SCAN_TIMEOUT_SEC", DEFAULT_PAGE_SCAN_TIMEOUT_SEC)


def get_trusted_domains() -> tuple[str, ...]:
    """Hosts exempt from scanning (exact match or any subdomain)."""
    load_guardnet_env()
    return _get_list("GUARDNET_TRUSTED_DOMAINS", DEFAULT_TRUSTED_DOMAINS)


def get_trusted_tlds() -> tuple[str, ...]:
    """Host suffixes exempt from scanning, e.g. go.id."""
    load_guardnet_env()
    return _get_list("GUARDNET_TRUSTED_TLDS", DEFAULT_TRUSTED_TLDS)
