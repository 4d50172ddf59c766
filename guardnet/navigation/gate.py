"""
Navigation gate: skip or intercept a candidate navigation.

Skip when the navigation is not the main frame, the URL is not http(s)
(browser-internal pages included), its fragment carries the one-time verified marker,
or its host is trusted (exact domain, subdomain of a trusted domain, or a
trusted TLD suffix such as go.id). Everything else is intercepted.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable
from urllib.parse import urlsplit

from guardnet.guardnet_logging import get_logger

logger = get_logger(__name__)

VERIFIED_MARKER = "guardnet-verified"

SCANNABLE_SCHEMES = frozenset({"http", "https"})
INTERNAL_SCHEMES = frozenset({
    "about",
    "chrome",
    "chrome-extension",
    "chrome-search",
    "devtools",
    "edge",
    "moz-extension",
    "view-source",
    "data",
    "blob",
    "file",
})


class GateReason(str, Enum):
    SUB_FRAME = "sub_frame"
    INTERNAL_SCHEME = "internal_scheme"
    UNSUPPORTED_SCHEME = "unsupported_scheme"
    VERIFIED = "verified"
    TRUSTED_DOMAIN = "trusted_domain"
    TRUSTED_TLD = "trusted_tld"
    UNTRUSTED = "untrusted"


@dataclass(frozen=True)
class GateDecision:
    intercept: bool
    reason: GateReason
    host: str = ""


def _normalize_entries(entries: Iterable[str]) -> tuple[str, ...]:
    return tuple(e.strip().lower().strip(".") for e in entries if e and e.strip().strip("."))


def mark_verified(url: str) -> str:
    """Append the one-time bypass marker used after a scan-and-proceed decision."""
    separator = "&" if "#" in url else "#"
    return f"{url}{separator}{VERIFIED_MARKER}"


class NavigationGate:
    """Predicate over navigation targets. O(len(trusted entries)) per check."""

    def __init__(
        self,
        trusted_domains: Iterable[str] = (),
        trusted_tlds: Iterable[str] = (),
        *,
        verified_marker: str = VERIFIED_MARKER,
    ) -> None:
        self.trusted_domains = _normalize_entries(trusted_domains)
        self.trusted_tlds = _normalize_entries(trusted_tlds)
        self.verified_marker = verified_marker

    def is_trusted_domain(self, host: str) -> bool:
        return any(host == d or host.endswith("." + d) for d in self.trusted_domains)

    def is_trusted_tld(self, host: str) -> bool:
        return any(host.endswith("." + t) for t in self.trusted_tlds)

    def decide(self, url: str, is_main_frame: bool = True) -> GateDecision:
        if not is_main_frame:
            return GateDecision(False, GateReason.SUB_FRAME)
        try:
            parts = urlsplit((url or "").strip())
            host = (parts.hostname or "").rstrip(".")
        except ValueError:
            return GateDecision(False, GateReason.UNSUPPORTED_SCHEME)
        scheme = parts.scheme.lower()
        if scheme in INTERNAL_SCHEMES:
            return GateDecision(False, GateReason.INTERNAL_SCHEME)
        if scheme not in SCANNABLE_SCHEMES or not host:
            return GateDecision(False, GateReason.UNSUPPORTED_SCHEME)
        if self.verified_marker and self.verified_marker in parts.fragment.split("&"):
            return GateDecision(False, GateReason.VERIFIED, host)
        if self.is_trusted_domain(host):
            return GateDecision(False, GateReason.TRUSTED_DOMAIN, host)
        if self.is_trusted_tld(host):
            return GateDecision(False, GateReason.TRUSTED_TLD, host)
        return GateDecision(True, GateReason.UNTRUSTED, host)

    def should_intercept(self, url: str, is_main_frame: bool = True) -> bool:
        decision = self.decide(url, is_main_frame)
        logger.debug(
            "navigation_gate_decision",
            url=url,
            intercept=decision.intercept,
            reason=decision.reason.value,
        )
        return decision.intercept
