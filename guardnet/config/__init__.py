"""
Configuration management for GuardNet.

Loads settings from environment variables and an optional .env file. Exposes
a single source of truth for artifact paths, request timeouts and the trusted
domain lists.
"""

from guardnet.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
