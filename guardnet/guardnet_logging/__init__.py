"""
Structured logging for GuardNet.

JSON logs with timestamp, level and event_type. Use get_logger(__name__) in
every module.
"""

from guardnet.guardnet_logging.logger import get_logger

__all__ = ["get_logger"]
