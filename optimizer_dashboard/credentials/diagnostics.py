"""
Non-sensitive analysis of credential environment variables.

Backs the /api/credentials-debug and /api/config-check endpoints.
Only lengths, format guesses, field presence and email domains are
reported; secret values and key material are never echoed back.
"""

from collections.abc import Mapping
from typing import Any

from optimizer_dashboard.credentials.decoders import DecodedForm, decode
from optimizer_dashboard.credentials.environment import lookup
from optimizer_dashboard.credentials.formats import classify
from optimizer_dashboard.credentials.models import CredentialFailure, FormatKind
from optimizer_dashboard.credentials.sources import (
    BLOB_SOURCES,
    CLIENT_EMAIL_ENV_NAMES,
    PLATFORM_IDENTITY_ENV_NAMES,
    PRIVATE_KEY_ENV_NAMES,
    PRIVATE_KEY_ID_ENV_NAMES,
    PROJECT_ID_ENV_NAMES,
)
from optimizer_dashboard.credentials.validation import SERVICE_ACCOUNT_TYPE, missing_fields


def _email_domain(value: Any) -> str | None:
    if isinstance(value, str) and "@" in value:
        return value.split("@", 1)[1]
    return None


def analyze_value(name: str, value: str) -> dict[str, Any]:
    """Describe how a single credential variable would be interpreted."""
    guess = classify(value)
    analysis: dict[str, Any] = {
        "name": name,
        "set": True,
        "length": len(value),
        "format": guess.kind.value,
        "base64_confidence": round(guess.binary_confidence, 2),
    }

    if guess.kind == FormatKind.FILE_PATH:
        analysis["warning"] = "File paths do not work in serverless environments like Vercel"
        return analysis

    decoded = decode(value, guess, source=name)
    if isinstance(decoded, CredentialFailure):
        analysis["decoded"] = False
        analysis["error_type"] = decoded.kind.value
        analysis["error"] = decoded.message
        analysis["attempts"] = [attempt.describe() for attempt in decoded.attempts]
        return analysis

    analysis.update(_describe_payload(decoded))
    return analysis


def _describe_payload(decoded: DecodedForm) -> dict[str, Any]:
    payload = decoded.payload
    summary: dict[str, Any] = {"decoded": True, "decode_path": decoded.kind.value}
    if not isinstance(payload, Mapping):
        summary["is_object"] = False
        return summary

    summary.update(
        {
            "is_object": True,
            "type_value": payload.get("type"),
            "is_service_account": payload.get("type") == SERVICE_ACCOUNT_TYPE,
            "missing_fields": missing_fields(payload),
            "client_email_domain": _email_domain(payload.get("client_email")),
        }
    )
    project_id = payload.get("project_id")
    if isinstance(project_id, str) and project_id:
        summary["project_id_preview"] = project_id[:10] + "..."
    return summary


def analyze_environment(environ: Mapping[str, str] | None = None) -> list[dict[str, Any]]:
    """Analyze every configured blob variable, including split groups."""
    analyses = []
    for source in BLOB_SOURCES:
        for name in source.names:
            found = lookup((name,), environ)
            if not found:
                continue
            analysis = analyze_value(found.name, found.value)
            analysis["source"] = source.label
            analyses.append(analysis)
    return analyses


def split_credential_summary(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Which component variables would feed the credential assembler."""
    email = lookup(CLIENT_EMAIL_ENV_NAMES, environ)
    key = lookup(PRIVATE_KEY_ENV_NAMES, environ)
    key_id = lookup(PRIVATE_KEY_ID_ENV_NAMES, environ)
    project = lookup(PROJECT_ID_ENV_NAMES, environ)
    return {
        "email_env": email.name if email else None,
        "private_key_env": key.name if key else None,
        "private_key_id_env": key_id.name if key_id else None,
        "project_id_env": project.name if project else None,
        "private_key_contains_escaped_newlines": ("\\n" in key.value) if key else None,
        "ready": bool(email and key),
    }


def running_on_google_platform(environ: Mapping[str, str] | None = None) -> bool:
    """Heuristic for runtimes where Application Default Credentials exist."""
    return lookup(PLATFORM_IDENTITY_ENV_NAMES + PROJECT_ID_ENV_NAMES[:2], environ) is not None
