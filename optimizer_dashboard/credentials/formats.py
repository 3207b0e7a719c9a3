"""
Format detection for raw credential strings.

Operators paste service account keys into hosting dashboards in whatever
form they have at hand: raw JSON, base64, URL-encoded JSON, or a file path.
classify() makes a best guess so the decoder chain knows which
transformations are worth attempting.
"""

import re
from dataclasses import dataclass

from optimizer_dashboard.credentials.models import FormatKind

# Binary-decode is only attempted above this confidence
BINARY_CONFIDENCE_THRESHOLD = 0.3

_BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/]+=*$")
_PADDING_PATTERN = re.compile(r"=*$")
_URL_ESCAPES = ("%22", "%7b", "%7d")
_PATH_PREFIXES = ("./", "../", "~/", "~\\")


@dataclass(frozen=True)
class FormatGuess:
    kind: FormatKind
    cleaned: str
    binary_confidence: float = 0.0


def starts_structured(value: str) -> bool:
    return value.startswith(("{", "["))


def clean_value(value: str) -> str:
    """
    Trim and drop copy/paste line breaks.

    Newlines inside raw JSON are left alone; they are valid whitespace there.
    """
    cleaned = value.strip()
    if not starts_structured(cleaned) and ("\n" in cleaned or "\r" in cleaned):
        cleaned = cleaned.replace("\r", "").replace("\n", "")
    return cleaned


def binary_likelihood(value: str) -> float:
    """
    Estimate how likely ``value`` is base64, from 0.0 to 1.0.

    A heuristic to skip pointless decode attempts, not a validity check:
    - JSON-looking or non-base64 alphabet (including interior spaces) -> 0.0
    - Shorter than 100 chars -> 0.3 (real key files encode to ~3000 chars)
    - More than two padding chars -> 0.2
    - Length a multiple of 4 -> 0.9, one or two off -> 0.7, else 0.5
    """
    cleaned = clean_value(value)

    if starts_structured(cleaned):
        return 0.0
    if not _BASE64_PATTERN.match(cleaned):
        return 0.0
    if len(cleaned) < 100:
        return 0.3

    padding = len(_PADDING_PATTERN.search(cleaned).group(0))
    if padding > 2:
        return 0.2

    remainder = len(cleaned) % 4
    if remainder == 0:
        return 0.9
    if remainder <= 2:
        return 0.7
    return 0.5


def has_url_escapes(value: str) -> bool:
    lowered = value.lower()
    return any(escape in lowered for escape in _URL_ESCAPES)


def looks_like_path(value: str, binary_confidence: float) -> bool:
    if " " in value and not value.lower().endswith(".json"):
        return False
    if value.lower().endswith(".json") or value.startswith(_PATH_PREFIXES):
        return True
    if re.match(r"^[A-Za-z]:[\\/]", value):
        return True
    # base64 output can start with '/', so only trust it when decoding is unlikely
    return value.startswith("/") and binary_confidence <= BINARY_CONFIDENCE_THRESHOLD


def classify(value: str) -> FormatGuess:
    """Classify a raw credential string; rules are applied in priority order."""
    cleaned = clean_value(value)

    if starts_structured(cleaned):
        return FormatGuess(FormatKind.RAW_STRUCTURED, cleaned, 0.0)

    confidence = binary_likelihood(cleaned)

    if has_url_escapes(cleaned):
        return FormatGuess(FormatKind.URL_ENCODED, cleaned, confidence)
    if looks_like_path(cleaned, confidence):
        return FormatGuess(FormatKind.FILE_PATH, cleaned, confidence)
    if confidence > BINARY_CONFIDENCE_THRESHOLD:
        return FormatGuess(FormatKind.BINARY_ENCODED, cleaned, confidence)
    return FormatGuess(FormatKind.PLAIN_TEXT, cleaned, confidence)
