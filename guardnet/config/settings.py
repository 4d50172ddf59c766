"""
Application settings.

Collects the environment getters from config.env into one typed object that
the scanner, worker and CLI are constructed from.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from guardnet.config import env


@dataclass(frozen=True)
class Settings:
    """Resolved GuardNet settings."""

    model_path: Path
    scaler_path: Path
    popup_timeout_sec: float
    page_scan_timeout_sec: float
    trusted_domains: tuple[str, ...]
    trusted_tlds: tuple[str, ...]


def get_settings() -> Settings:
    """
    Return the current application settings.

    Re-reads the environment on every call so tests can monkeypatch variables.
    """
    return Settings(
        model_path=env.get_model_path(),
        scaler_path=env.get_scaler_path(),
        popup_timeout_sec=env.get_popup_timeout_sec(),
        page_scan_timeout_sec=env.get_page_scan_timeout_sec(),
        trusted_domains=env.get_trusted_domains(),
        trusted_tlds=env.get_trusted_tlds(),
    )
