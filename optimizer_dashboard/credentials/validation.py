"""
Structural validation of decoded service account credentials.
"""

from collections.abc import Mapping
from typing import Any, Final

import structlog

from optimizer_dashboard.credentials.models import (
    CredentialErrorKind,
    CredentialFailure,
    CredentialSuccess,
)

logger = structlog.get_logger(__name__)

SERVICE_ACCOUNT_TYPE: Final = "service_account"

REQUIRED_FIELDS: Final[tuple[str, ...]] = (
    "type",
    "project_id",
    "private_key_id",
    "private_key",
    "client_email",
)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def missing_fields(credentials: Mapping[str, Any]) -> list[str]:
    """Every mandatory field that is absent or empty, in canonical order."""
    return [name for name in REQUIRED_FIELDS if _is_blank(credentials.get(name))]


def validate(payload: Any, source: str) -> CredentialSuccess | CredentialFailure:
    """
    Check a decoded payload is a complete service account credential.

    Checks run in order and stop at the first failing one:
    1. payload is a JSON object
    2. "type" is "service_account"
    3. all mandatory fields are present (all missing ones reported together)
    """
    if not isinstance(payload, Mapping):
        return CredentialFailure(
            kind=CredentialErrorKind.INVALID_SHAPE,
            message=f"{source} does not contain a valid object",
            details=f"The parsed JSON is a {type(payload).__name__}, not an object",
            remediation=(
                "Ensure you are using the service account key JSON file from Google Cloud Console",
                "The file should be a JSON object with fields like type, project_id, private_key, etc.",
                "Download a fresh service account key from Google Cloud Console if needed",
            ),
            source=source,
        )

    credential_type = payload.get("type")
    if credential_type != SERVICE_ACCOUNT_TYPE:
        return CredentialFailure(
            kind=CredentialErrorKind.INVALID_SHAPE,
            message=f"{source} does not contain a service account credential",
            details=f'Expected "type": "{SERVICE_ACCOUNT_TYPE}" but got "type": "{credential_type or "missing"}"',
            remediation=(
                "Ensure you are using a service account key JSON (not other credential types)",
                "Download the key from: Google Cloud Console > IAM & Admin > Service Accounts > Keys",
                "Create a new key if needed (JSON format)",
            ),
            source=source,
        )

    missing = missing_fields(payload)
    if missing:
        return CredentialFailure(
            kind=CredentialErrorKind.MISSING_FIELDS,
            message=f"{source} is missing required service account fields",
            details=f"Missing fields: {', '.join(missing)}",
            remediation=(
                "Ensure you are using the complete service account key JSON file",
                f"The file should contain: {', '.join(REQUIRED_FIELDS)}",
                "Download a fresh service account key from Google Cloud Console if the file is incomplete",
            ),
            source=source,
        )

    logger.info("credential_structure_valid", source=source)
    return CredentialSuccess(
        credentials=dict(payload),
        project_id=str(payload["project_id"]),
        source=source,
    )
