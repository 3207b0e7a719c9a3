"""
Environment variable names accepted for Google Cloud service account credentials.

These lists are a versioned contract with deployments:
- Appending a new name is backward compatible
- Removing or reordering an existing name is a breaking change

Earlier names win.
"""

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True)
class CandidateSource:
    """A logical credential value and the env vars that may hold it."""

    label: str
    names: tuple[str, ...]


PRIMARY_BLOB: Final = CandidateSource(
    label="primary blob",
    names=(
        "GCP_SERVICE_ACCOUNT_KEY",
        "GCP_SA_KEY",
        "GCP_SERVICE_ACCOUNT_JSON",
        "GCP_SERVICE_ACCOUNT",
        "GCP_SERVICE_KEY",
    ),
)

ALTERNATE_BLOB: Final = CandidateSource(
    label="alternate blob",
    names=(
        "GCP_CREDENTIALS",
        "GOOGLE_CREDENTIALS",
        "GOOGLE_APPLICATION_CREDENTIALS_JSON",
        "GOOGLE_APPLICATION_CREDENTIALS_BASE64",
        "GOOGLE_APPLICATION_CREDENTIALS_B64",
        "SERVICE_ACCOUNT_JSON",
        "BIGQUERY_SERVICE_ACCOUNT_KEY",
        "BIGQUERY_CREDENTIALS",
        "BQ_SERVICE_ACCOUNT_KEY",
    ),
)

# Usually a file path consumed by Google client libraries directly
LEGACY_BLOB: Final = CandidateSource(
    label="legacy blob",
    names=("GOOGLE_APPLICATION_CREDENTIALS",),
)

BLOB_SOURCES: Final[tuple[CandidateSource, ...]] = (PRIMARY_BLOB, ALTERNATE_BLOB, LEGACY_BLOB)

CLIENT_EMAIL_ENV_NAMES: Final[tuple[str, ...]] = (
    "GCP_SERVICE_ACCOUNT_EMAIL",
    "GCP_CLIENT_EMAIL",
    "GOOGLE_CLIENT_EMAIL",
    "BIGQUERY_CLIENT_EMAIL",
    "BQ_CLIENT_EMAIL",
    "SERVICE_ACCOUNT_EMAIL",
    "GOOGLE_SERVICE_ACCOUNT_EMAIL",
    "GCP_SERVICE_ACCOUNT_USER",
)

PRIVATE_KEY_ENV_NAMES: Final[tuple[str, ...]] = (
    "GCP_SERVICE_ACCOUNT_KEY_RAW",
    "GCP_PRIVATE_KEY",
    "GOOGLE_PRIVATE_KEY",
    "BIGQUERY_PRIVATE_KEY",
    "BQ_PRIVATE_KEY",
    "SERVICE_ACCOUNT_PRIVATE_KEY",
    "GOOGLE_SERVICE_ACCOUNT_PRIVATE_KEY",
    "GCP_SERVICE_ACCOUNT_PRIVATE_KEY",
)

PRIVATE_KEY_ID_ENV_NAMES: Final[tuple[str, ...]] = (
    "GCP_PRIVATE_KEY_ID",
    "GOOGLE_PRIVATE_KEY_ID",
    "BIGQUERY_PRIVATE_KEY_ID",
    "BQ_PRIVATE_KEY_ID",
    "SERVICE_ACCOUNT_PRIVATE_KEY_ID",
)

PROJECT_ID_ENV_NAMES: Final[tuple[str, ...]] = (
    "GCP_PROJECT",
    "GOOGLE_CLOUD_PROJECT",
    "GOOGLE_PROJECT_ID",
    "GCP_PROJECT_ID",
    "BIGQUERY_PROJECT_ID",
    "BQ_PROJECT_ID",
    "GOOGLE_PROJECT",
    "GCLOUD_PROJECT",
)

# Set by Google-managed runtimes where Application Default Credentials exist
PLATFORM_IDENTITY_ENV_NAMES: Final[tuple[str, ...]] = (
    "K_SERVICE",
    "FUNCTION_TARGET",
    "GAE_SERVICE",
)
