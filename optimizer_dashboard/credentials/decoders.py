"""
Decoder chain for service account credential strings.

Attempts, in order, stopping at the first success:
1. Direct JSON parse
2. Percent-decode, then parse (only when escapes like %22 or %7B are present)
3. Base64-decode, then parse (only when binary_likelihood() > 0.3)

Every attempt is recorded so a failure can say exactly which
transformations were tried and why each one failed.
"""

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote

import structlog

from optimizer_dashboard.credentials.formats import (
    BINARY_CONFIDENCE_THRESHOLD,
    FormatGuess,
    classify,
    has_url_escapes,
)
from optimizer_dashboard.credentials.models import (
    CredentialErrorKind,
    CredentialFailure,
    DecodeAttempt,
    DecodeKind,
    FormatKind,
)

logger = structlog.get_logger(__name__)

PREVIEW_LENGTH = 100

REDEPLOY_STEP = "After correcting the value, redeploy the application"


@dataclass(frozen=True)
class DecodedForm:
    """Parsed payload plus which transformation produced it."""

    kind: DecodeKind
    payload: Any
    confidence: float = 0.0
    attempts: tuple[DecodeAttempt, ...] = field(default_factory=tuple)


def _json_error(exc: Exception) -> str:
    """Describe a json.loads failure, including the non-syntax ones."""
    if isinstance(exc, json.JSONDecodeError):
        return f"{exc.msg} at line {exc.lineno} column {exc.colno}"
    if isinstance(exc, RecursionError):
        return "JSON is nested too deeply to parse"
    # e.g. integers longer than sys.get_int_max_str_digits()
    return str(exc)


def _restore_padding(value: str) -> str:
    # A remainder of 1 can never be valid base64; let the decoder report it
    if value.endswith("=") or len(value) % 4 == 1:
        return value
    return value + "=" * (-len(value) % 4)


def _try_direct(cleaned: str, attempts: list[DecodeAttempt]) -> Any:
    try:
        parsed = json.loads(cleaned)
    except (ValueError, RecursionError) as exc:
        attempts.append(DecodeAttempt(path=DecodeKind.RAW_STRUCTURED, succeeded=False, error=_json_error(exc)))
        return None
    attempts.append(DecodeAttempt(path=DecodeKind.RAW_STRUCTURED, succeeded=True))
    return parsed


def _try_url_decoded(cleaned: str, attempts: list[DecodeAttempt]) -> tuple[bool, Any]:
    try:
        decoded = unquote(cleaned, errors="strict")
    except UnicodeDecodeError as exc:
        attempts.append(
            DecodeAttempt(
                path=DecodeKind.URL_DECODED,
                succeeded=False,
                error=f"percent-decoding produced invalid UTF-8: {exc.reason}",
            )
        )
        return False, None

    try:
        parsed = json.loads(decoded)
    except (ValueError, RecursionError) as exc:
        attempts.append(
            DecodeAttempt(
                path=DecodeKind.URL_DECODED,
                succeeded=False,
                error=f"percent-decoded text is not valid JSON: {_json_error(exc)}",
                decoded_length=len(decoded),
                preview=decoded[:PREVIEW_LENGTH],
            )
        )
        return False, None

    attempts.append(DecodeAttempt(path=DecodeKind.URL_DECODED, succeeded=True, decoded_length=len(decoded)))
    return True, parsed


def decode(
    value: str,
    guess: FormatGuess | None = None,
    source: str = "credential value",
) -> DecodedForm | CredentialFailure:
    """
    Run the decoder chain over ``value``.

    Args:
        value: Raw (trimmed) environment value
        guess: Result of classify(); computed when omitted
        source: Variable name used in messages

    Returns:
        DecodedForm on the first successful parse, otherwise a
        CredentialFailure of kind INVALID_ENCODING or INVALID_STRUCTURED_DATA
    """
    guess = guess or classify(value)
    cleaned = guess.cleaned
    attempts: list[DecodeAttempt] = []

    logger.debug("credential_decode_started", source=source, format=guess.kind.value)

    parsed = _try_direct(cleaned, attempts)
    if attempts[-1].succeeded:
        logger.info("credential_decoded", source=source, path=DecodeKind.RAW_STRUCTURED.value)
        return DecodedForm(DecodeKind.RAW_STRUCTURED, parsed, 0.0, tuple(attempts))

    if has_url_escapes(cleaned):
        ok, parsed = _try_url_decoded(cleaned, attempts)
        if ok:
            logger.info("credential_decoded", source=source, path=DecodeKind.URL_DECODED.value)
            return DecodedForm(DecodeKind.URL_DECODED, parsed, 0.0, tuple(attempts))

    logger.debug(
        "credential_binary_likelihood",
        source=source,
        confidence=round(guess.binary_confidence, 2),
    )

    if guess.binary_confidence > BINARY_CONFIDENCE_THRESHOLD:
        try:
            raw = base64.b64decode(_restore_padding(cleaned), validate=True)
            decoded = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            attempts.append(
                DecodeAttempt(
                    path=DecodeKind.BINARY_DECODED,
                    succeeded=False,
                    error=f"base64 decoded to bytes that are not UTF-8 text: {exc.reason}",
                )
            )
            logger.warning("credential_base64_not_text", source=source)
            return _encoding_failure(source, attempts)
        except (binascii.Error, ValueError) as exc:
            attempts.append(
                DecodeAttempt(path=DecodeKind.BINARY_DECODED, succeeded=False, error=f"base64 decode failed: {exc}")
            )
            logger.warning("credential_base64_decode_failed", source=source, error=str(exc))
            return _encoding_failure(source, attempts)

        try:
            parsed = json.loads(decoded)
        except (ValueError, RecursionError) as exc:
            attempts.append(
                DecodeAttempt(
                    path=DecodeKind.BINARY_DECODED,
                    succeeded=False,
                    error=f"decoded text is not valid JSON: {_json_error(exc)}",
                    decoded_length=len(decoded),
                    preview=decoded[:PREVIEW_LENGTH],
                )
            )
            logger.warning(
                "credential_base64_not_json",
                source=source,
                decoded_length=len(decoded),
                error=_json_error(exc),
            )
            return _decoded_not_json_failure(source, decoded, exc, attempts)

        attempts.append(DecodeAttempt(path=DecodeKind.BINARY_DECODED, succeeded=True, decoded_length=len(decoded)))
        logger.info(
            "credential_decoded",
            source=source,
            path=DecodeKind.BINARY_DECODED.value,
            decoded_length=len(decoded),
        )
        return DecodedForm(DecodeKind.BINARY_DECODED, parsed, guess.binary_confidence, tuple(attempts))

    logger.warning("credential_decode_failed", source=source, format=guess.kind.value)
    return _unparseable_failure(source, guess, attempts)


# ===== Failure builders =====


def _attempt_summary(attempts: list[DecodeAttempt]) -> str:
    return "Tried: " + "; ".join(attempt.describe() for attempt in attempts) + "."


def _encoding_failure(source: str, attempts: list[DecodeAttempt]) -> CredentialFailure:
    return CredentialFailure(
        kind=CredentialErrorKind.INVALID_ENCODING,
        message=f"{source} looks base64 encoded but could not be decoded",
        details=f"Could not decode {source} as base64-encoded JSON. {_attempt_summary(attempts)}",
        remediation=(
            f"Option 1 (Raw JSON - Recommended): Set {source} to the entire contents of your service account key file",
            f"Option 2 (Base64): Run 'cat service-account.json | base64 | tr -d \"\\n\"' and set {source} to the output",
            "Ensure the base64 value was copied completely, without truncation or extra characters",
            f"Test the value locally: 'echo \"${source}\" | base64 -d | jq .'",
            REDEPLOY_STEP,
        ),
        source=source,
        attempts=tuple(attempts),
    )


def _decoded_not_json_failure(
    source: str,
    decoded: str,
    exc: Exception,
    attempts: list[DecodeAttempt],
) -> CredentialFailure:
    guidance: list[str] = []
    if decoded.startswith("data:") or "base64," in decoded:
        guidance.append(
            "The decoded content appears to contain a data URL. Use only the service account JSON, not a data URL."
        )
    elif "\\n" in decoded and "\n" not in decoded:
        guidance.append(
            "The decoded content contains escaped newlines (\\n). These should be actual newlines in the JSON."
        )
    elif not decoded.strip():
        guidance.append("The decoded content is empty. The base64 string may be invalid or incomplete.")

    return CredentialFailure(
        kind=CredentialErrorKind.INVALID_STRUCTURED_DATA,
        message=f"{source} was successfully base64 decoded but does not contain valid JSON",
        details=(
            f"The base64-decoded content could not be parsed as JSON. JSON error: {_json_error(exc)}. "
            f"Decoded length: {len(decoded)} characters. "
            f"First {PREVIEW_LENGTH} characters: {decoded[:PREVIEW_LENGTH]!r}. "
            f"{_attempt_summary(attempts)}"
        ),
        remediation=(
            "Ensure you are encoding valid JSON content when creating the base64 value",
            "Example: 'cat service-account.json | base64 | tr -d \"\\n\"' should produce valid base64 encoding",
            "Verify your service-account.json file is valid JSON before encoding: 'cat service-account.json | jq .'",
            f"Test the encoding/decoding locally: 'echo \"${source}\" | base64 -d | jq .'",
            *guidance,
            REDEPLOY_STEP,
        ),
        source=source,
        attempts=tuple(attempts),
    )


def _unparseable_failure(source: str, guess: FormatGuess, attempts: list[DecodeAttempt]) -> CredentialFailure:
    if guess.kind == FormatKind.RAW_STRUCTURED:
        return CredentialFailure(
            kind=CredentialErrorKind.INVALID_STRUCTURED_DATA,
            message=f"{source} appears to be JSON but contains syntax errors",
            details=f"{source} starts like JSON but could not be parsed. {_attempt_summary(attempts)}",
            remediation=(
                "The value looks like JSON but has syntax errors",
                "Ensure the entire JSON is copied, including opening { and closing }",
                "Check for missing commas, quotes, or brackets",
                "Validate your JSON: 'cat service-account.json | jq .'",
                "Ensure no characters were corrupted during copy/paste",
                REDEPLOY_STEP,
            ),
            source=source,
            attempts=tuple(attempts),
        )

    if guess.kind == FormatKind.FILE_PATH:
        return CredentialFailure(
            kind=CredentialErrorKind.INVALID_STRUCTURED_DATA,
            message=f"{source} looks like a file path, not credential content",
            details=(
                f"{source} appears to reference a file. Credential files are not read from disk here, "
                f"and serverless platforms usually do not ship them. {_attempt_summary(attempts)}"
            ),
            remediation=(
                f"Set {source} to the contents of the key file instead of its path",
                "Or, set GOOGLE_APPLICATION_CREDENTIALS to the path and let the Google client library load it",
                REDEPLOY_STEP,
            ),
            source=source,
            attempts=tuple(attempts),
        )

    return CredentialFailure(
        kind=CredentialErrorKind.INVALID_STRUCTURED_DATA,
        message=f"{source} is not valid JSON or base64 encoded JSON",
        details=f"Could not parse {source} as JSON or base64-encoded JSON. {_attempt_summary(attempts)}",
        remediation=(
            f"Option 1 (Raw JSON - Recommended): Set {source} to the entire contents of your service account key file",
            f"Option 2 (Base64): Run 'cat service-account.json | base64 | tr -d \"\\n\"' and set {source} to the output",
            "Ensure there are no extra spaces, line breaks, or special characters in the environment variable",
            "Check that the value was not corrupted during copy/paste (truncated, wrapped or partially selected)",
            "Verify the JSON is valid before encoding: 'cat service-account.json | jq .'",
            REDEPLOY_STEP,
        ),
        source=source,
        attempts=tuple(attempts),
    )
