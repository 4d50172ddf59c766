"""
Feature extractor for the GuardNet phishing model.

Builds a fixed-size numeric feature vector (50 values) from a URL and,
optionally, the page HTML. Index assignment is frozen: the model was trained
against this exact order, so FEATURE_NAMES must never be reordered.

Positions 1-22 are derived from the URL string, positions 23-50 from the
parsed document. When the content is missing or too short to be a real page,
the content block is left at 0: no evidence is never read as evidence of
safety.

extract_features() never raises. A URL that cannot be parsed yields the zero
vector and a warning log.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from typing import Any
from urllib.parse import urlsplit

import numpy as np
from bs4 import BeautifulSoup

from guardnet.core.exceptions import InvalidUrl
from guardnet.guardnet_logging import get_logger

logger = get_logger(__name__)

URL_FEATURE_NAMES = [
    "URLLength",
    "DomainLength",
    "IsDomainIP",
    "URLSimilarityIndex",
    "CharContinuationRate",
    "TLDLegitimateProb",
    "URLCharProb",
    "TLDLength",
    "NoOfSubDomain",
    "HasObfuscation",
    "NoOfObfuscatedChar",
    "ObfuscationRatio",
    "NoOfLettersInURL",
    "LetterRatioInURL",
    "NoOfDigitsInURL",
    "DigitRatioInURL",
    "NoOfEqualsInURL",
    "NoOfQMarkInURL",
    "NoOfAmpersandInURL",
    "NoOfOtherSpecialCharsInURL",
    "SpecialCharRatioInURL",
    "IsHTTPS",
]

CONTENT_FEATURE_NAMES = [
    "LineOfCode",
    "LargestLineLength",
    "HasTitle",
    "DomainTitleMatchScore",
    "URLTitleMatchScore",
    "HasFavicon",
    "Robots",
    "IsResponsive",
    "NoOfURLRedirect",
    "NoOfSelfRedirect",
    "HasDescription",
    "NoOfPopup",
    "NoOfiFrame",
    "HasExternalFormSubmit",
    "HasSocialNet",
    "HasSubmitButton",
    "HasHiddenFields",
    "HasPasswordField",
    "Bank",
    "Pay",
    "Crypto",
    "HasCopyrightInfo",
    "NoOfImage",
    "NoOfCSS",
    "NoOfJS",
    "NoOfSelfRef",
    "NoOfEmptyRef",
    "NoOfExternalRef",
]

FEATURE_NAMES = URL_FEATURE_NAMES + CONTENT_FEATURE_NAMES
N_FEATURES = len(FEATURE_NAMES)

# Pages shorter than this carry no usable evidence
MIN_CONTENT_LENGTH = 100

COMMON_TLDS = frozenset({"com", "org", "net", "edu", "gov", "io", "co", "id"})
COMMON_TLD_PROB = 0.9
UNCOMMON_TLD_PROB = 0.3

SHORT_URL_SIMILARITY = 80.0
LONG_URL_SIMILARITY = 50.0

_IPV4_RE = re.compile(r"^(?:\d{1,3}\.){3}\d{1,3}$")
_PERCENT_ESCAPE_RE = re.compile(r"%[0-9A-Fa-f]{2}")
_LETTER_RE = re.compile(r"[a-zA-Z]")
_DIGIT_RE = re.compile(r"[0-9]")
_SPECIAL_RE = re.compile(r"[^a-zA-Z0-9\s]")
_SOCIAL_RE = re.compile(r"facebook|twitter|instagram|linkedin")
_BANK_RE = re.compile(r"bank", re.IGNORECASE)
_PAY_RE = re.compile(r"pay", re.IGNORECASE)
_CRYPTO_RE = re.compile(r"crypto|bitcoin", re.IGNORECASE)
_COPYRIGHT_RE = re.compile("copyright|©", re.IGNORECASE)

_EMPTY_HREFS = frozenset({"", "#", "javascript:void(0)"})


def shannon_entropy(text: str) -> float:
    """Shannon entropy (base 2) of the character distribution; 0 for ''."""
    if not text:
        return 0.0
    length = len(text)
    entropy = 0.0
    for count in Counter(text).values():
        p = count / length
        entropy -= p * math.log2(p)
    return entropy


def longest_char_run(text: str) -> int:
    """Length of the longest run of one repeated character."""
    longest = 0
    run = 0
    prev = None
    for ch in text:
        run = run + 1 if ch == prev else 1
        prev = ch
        longest = max(longest, run)
    return longest


def _parse_host(url: str) -> tuple[str, str]:
    """Return (scheme, hostname) or raise InvalidUrl."""
    if not url or not url.strip():
        raise InvalidUrl("empty url")
    try:
        parts = urlsplit(url.strip())
        host = parts.hostname or ""
    except ValueError as e:
        raise InvalidUrl(str(e)) from e
    if not parts.scheme or not host:
        raise InvalidUrl(f"not an absolute url: {url!r}")
    return parts.scheme.lower(), host.lower()


def _ratio(count: float, length: int) -> float:
    return count / length if length > 0 else 0.0


def url_features(url: str, scheme: str, host: str) -> list[float]:
    """Positions 1-22: lexical features of the URL string and its host."""
    url_length = len(url)
    host_length = len(host)
    labels = host.split(".")
    tld = labels[-1]

    n_escapes = len(_PERCENT_ESCAPE_RE.findall(url))
    n_letters = len(_LETTER_RE.findall(url))
    n_digits = len(_DIGIT_RE.findall(url))
    n_special = len(_SPECIAL_RE.findall(url))

    if url_length < 50 and host_length < 20:
        similarity = SHORT_URL_SIMILARITY
    else:
        similarity = LONG_URL_SIMILARITY

    return [
        float(url_length),
        float(host_length),
        1.0 if _IPV4_RE.match(host) else 0.0,
        similarity,
        _ratio(longest_char_run(url), url_length),
        COMMON_TLD_PROB if tld in COMMON_TLDS else UNCOMMON_TLD_PROB,
        1.0 / (shannon_entropy(url) + 1.0),
        float(len(tld)),
        float(max(len(labels) - 2, 0)),
        1.0 if n_escapes else 0.0,
        float(n_escapes),
        _ratio(n_escapes, url_length),
        float(n_letters),
        _ratio(n_letters, url_length),
        float(n_digits),
        _ratio(n_digits, url_length),
        float(url.count("=")),
        float(url.count("?")),
        float(url.count("&")),
        float(n_special),
        _ratio(n_special, url_length),
        1.0 if scheme == "https" else 0.0,
    ]


def has_usable_content(content: str | None) -> bool:
    """True when the page HTML is long enough to be read as evidence."""
    return bool(content) and len(content) >= MIN_CONTENT_LENGTH


def _attr(tag: Any, name: str) -> str:
    """Attribute as a lowercase string; BeautifulSoup returns lists for rel/class."""
    value = tag.get(name)
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        value = " ".join(value)
    return str(value).strip().lower()


def _raw_attr(tag: Any, name: str) -> str:
    """Attribute exactly as written in the document; '' when absent."""
    value = tag.get(name)
    return "" if value is None else str(value)


def _count_inputs(soup: BeautifulSoup, input_type: str) -> int:
    return sum(1 for tag in soup.find_all("input") if _attr(tag, "type") == input_type)


def content_features(url: str, host: str, content: str | None) -> list[float]:
    """Positions 23-50: document features. All zero without usable content."""
    if not has_usable_content(content):
        return [0.0] * len(CONTENT_FEATURE_NAMES)

    lines = content.split("\n")
    lowered = content.lower()
    soup = BeautifulSoup(content, "html.parser")

    title = soup.title.get_text(" ", strip=True).lower() if soup.title else ""
    domain = host.replace("www.", "", 1)
    domain_word = domain.split(".")[0]
    title_tokens = title.split()
    domain_title_match = bool(title) and (
        domain_word in title or (bool(title_tokens) and title_tokens[0] in domain_word)
    )

    has_favicon = any("icon" in _attr(tag, "rel") for tag in soup.find_all("link"))
    has_viewport = any(_attr(tag, "name") == "viewport" for tag in soup.find_all("meta"))
    has_description = any(_attr(tag, "name") == "description" for tag in soup.find_all("meta"))

    has_external_form = any(
        action.startswith("http") and host not in action
        for action in (_raw_attr(form, "action") for form in soup.find_all("form"))
    )
    has_submit = any(
        _attr(tag, "type") == "submit" for tag in soup.find_all(["input", "button"])
    )

    n_stylesheets = sum(
        1 for tag in soup.find_all("link") if _attr(tag, "rel") == "stylesheet"
    ) + len(soup.find_all("style"))

    hrefs = [_raw_attr(a, "href") for a in soup.find_all("a")]
    n_self_ref = sum(
        1 for href in hrefs
        if host in href or href.startswith("/") or href.startswith("#")
    )
    n_empty_ref = sum(1 for href in hrefs if href in _EMPTY_HREFS)
    n_external_ref = sum(
        1 for href in hrefs
        if href.startswith("http") and host not in href
    )

    return [
        float(len(lines)),
        float(max((len(line) for line in lines), default=0)),
        1.0 if title else 0.0,
        100.0 if domain_title_match else 0.0,
        100.0 if title and url in title else 0.0,
        1.0 if has_favicon else 0.0,
        1.0 if "robots" in lowered else 0.0,
        1.0 if has_viewport or "@media" in content else 0.0,
        0.0,  # NoOfURLRedirect: no redirect history available
        0.0,  # NoOfSelfRedirect: no redirect history available
        1.0 if has_description else 0.0,
        float(lowered.count("window.open")),
        float(len(soup.find_all("iframe"))),
        1.0 if has_external_form else 0.0,
        1.0 if _SOCIAL_RE.search(lowered) else 0.0,
        1.0 if has_submit else 0.0,
        1.0 if _count_inputs(soup, "hidden") else 0.0,
        1.0 if _count_inputs(soup, "password") else 0.0,
        1.0 if _BANK_RE.search(content) else 0.0,
        1.0 if _PAY_RE.search(content) else 0.0,
        1.0 if _CRYPTO_RE.search(content) else 0.0,
        1.0 if _COPYRIGHT_RE.search(content) else 0.0,
        float(len(soup.find_all("img"))),
        float(n_stylesheets),
        float(len(soup.find_all("script"))),
        float(n_self_ref),
        float(n_empty_ref),
        float(n_external_ref),
    ]


def _freeze(values: list[float]) -> np.ndarray:
    vec = np.asarray(values, dtype=np.float64)
    vec.flags.writeable = False
    return vec


def zero_vector() -> np.ndarray:
    """Read-only vector of N_FEATURES zeros (extraction fallback)."""
    return _freeze([0.0] * N_FEATURES)


def extract_features(url: str, content: str | None = "") -> np.ndarray:
    """
    Build the 50-value feature vector for (url, content).

    Deterministic: the same inputs always give the same vector. Returns a
    read-only 1D float64 array of shape (N_FEATURES,). Never raises; an
    unparsable URL or an unexpected parsing error yields the zero vector.
    """
    try:
        scheme, host = _parse_host(url)
    except InvalidUrl as e:
        logger.warning("feature_extractor_invalid_url", url=url, error=e.message)
        return zero_vector()

    try:
        values = url_features(url, scheme, host) + content_features(url, host, content)
    except Exception as e:
        logger.warning("feature_extractor_failed", url=url, error=str(e), exc_info=True)
        return zero_vector()

    logger.debug("feature_extractor_features", url=url, n_features=len(values))
    return _freeze(values[:N_FEATURES])


def get_feature_names() -> list[str]:
    """Return ordered feature names (for inspection and persistence)."""
    return list(FEATURE_NAMES)
