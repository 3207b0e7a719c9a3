"""
Build a service account credential from individually supplied variables.

Used when no single JSON blob is configured, e.g. GCP_CLIENT_EMAIL plus
GCP_PRIVATE_KEY (plus GCP_PROJECT and GCP_PRIVATE_KEY_ID).
"""

from collections.abc import Mapping
from typing import Any

import structlog

from optimizer_dashboard.credentials.environment import lookup
from optimizer_dashboard.credentials.sources import (
    CLIENT_EMAIL_ENV_NAMES,
    PRIVATE_KEY_ENV_NAMES,
    PRIVATE_KEY_ID_ENV_NAMES,
    PROJECT_ID_ENV_NAMES,
)
from optimizer_dashboard.credentials.validation import SERVICE_ACCOUNT_TYPE

logger = structlog.get_logger(__name__)

ESCAPED_NEWLINE = "\\n"


def normalize_private_key(value: str | None) -> str | None:
    """
    Trim a PEM private key and turn literal ``\\n`` sequences into newlines.

    Many hosting providers only accept single-line values, so keys are
    commonly stored with escaped newlines.
    """
    if not value:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    if ESCAPED_NEWLINE in trimmed:
        return trimmed.replace(ESCAPED_NEWLINE, "\n")
    return trimmed


def describe_parts(environ: Mapping[str, str] | None = None) -> str:
    """Provenance label naming the variables the parts came from."""
    email = lookup(CLIENT_EMAIL_ENV_NAMES, environ)
    key = lookup(PRIVATE_KEY_ENV_NAMES, environ)
    names = [found.name for found in (email, key) if found]
    return f"credential parts ({' + '.join(names) or 'none'})"


def assemble_from_parts(environ: Mapping[str, str] | None = None) -> dict[str, Any] | None:
    """
    Assemble a credential object, or None when email or key is missing.

    project_id and private_key_id are attached when available; if they are
    absent, validation reports them as missing fields.
    """
    email = lookup(CLIENT_EMAIL_ENV_NAMES, environ)
    key = lookup(PRIVATE_KEY_ENV_NAMES, environ)
    private_key = normalize_private_key(key.value if key else None)

    if not email or not private_key:
        logger.debug(
            "credential_parts_incomplete",
            has_client_email=bool(email),
            has_private_key=bool(private_key),
        )
        return None

    credentials: dict[str, Any] = {
        "type": SERVICE_ACCOUNT_TYPE,
        "client_email": email.value,
        "private_key": private_key,
    }

    project = lookup(PROJECT_ID_ENV_NAMES, environ)
    if project:
        credentials["project_id"] = project.value

    key_id = lookup(PRIVATE_KEY_ID_ENV_NAMES, environ)
    if key_id:
        credentials["private_key_id"] = key_id.value

    logger.info(
        "credential_parts_assembled",
        client_email_env=email.name,
        has_project_id="project_id" in credentials,
        has_private_key_id="private_key_id" in credentials,
    )
    return credentials
