"""
Scanner: caller-side facade used by navigation interception and the popup.
"""

from guardnet.scanner.service import ScanMode, ScanResult, ScanService

__all__ = ["ScanMode", "ScanResult", "ScanService"]
