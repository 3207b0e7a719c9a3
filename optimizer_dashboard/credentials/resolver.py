"""
Entry point for Google Cloud service account credential resolution.

Resolution order (terminal on first success):
1. Blob sources in priority order: primary, alternate, legacy
   (lookup -> classify -> decode -> validate)
2. Individually supplied parts (client email + private key, ...)
3. Failure: the most specific captured error when something was configured
   but malformed, otherwise MISSING, which callers treat as "fall back to
   Application Default Credentials"

Fragments from a failed source are never combined with another source.
The resolver is stateless and safe to call concurrently; callers may
memoize the result for the process lifetime.
"""

from collections.abc import Mapping

import structlog

from optimizer_dashboard.credentials.assembly import assemble_from_parts, describe_parts
from optimizer_dashboard.credentials.decoders import DecodedForm, decode
from optimizer_dashboard.credentials.environment import first_value, lookup
from optimizer_dashboard.credentials.formats import classify
from optimizer_dashboard.credentials.models import (
    CredentialErrorKind,
    CredentialFailure,
    CredentialSuccess,
    FormatKind,
    ResolutionResult,
)
from optimizer_dashboard.credentials.sources import (
    BLOB_SOURCES,
    LEGACY_BLOB,
    PROJECT_ID_ENV_NAMES,
    CandidateSource,
)
from optimizer_dashboard.credentials.validation import validate

logger = structlog.get_logger(__name__)

# Higher wins when choosing which captured failure to report
_SPECIFICITY = {
    CredentialErrorKind.MISSING_FIELDS: 4,
    CredentialErrorKind.INVALID_SHAPE: 3,
    CredentialErrorKind.INVALID_STRUCTURED_DATA: 2,
    CredentialErrorKind.INVALID_ENCODING: 1,
    CredentialErrorKind.MISSING: 0,
}

MISSING_REMEDIATION: tuple[str, ...] = (
    "Option 1: Set GCP_SERVICE_ACCOUNT_KEY with your service account JSON (raw or base64 encoded)",
    "Option 2: Set GOOGLE_CREDENTIALS or GOOGLE_APPLICATION_CREDENTIALS with your service account JSON",
    "Option 3: Set individual variables: GCP_CLIENT_EMAIL + GCP_PRIVATE_KEY (with \\n for newlines), "
    "plus GCP_PROJECT and GCP_PRIVATE_KEY_ID",
    "If your platform limits variable size, split the JSON across GCP_SERVICE_ACCOUNT_KEY_PART1, "
    "GCP_SERVICE_ACCOUNT_KEY_PART2, ...",
    "After setting credentials, redeploy the application",
    "Verify configuration at: /api/config-check",
)


def _provenance(source: CandidateSource, env_name: str, decoded: DecodedForm) -> str:
    return f"{source.label}: {env_name} ({decoded.kind.value})"


def _resolve_blob(
    source: CandidateSource,
    environ: Mapping[str, str] | None,
    notes: list[str],
) -> ResolutionResult | None:
    """Resolve one blob source; None means the source is not configured."""
    found = lookup(source.names, environ)
    if not found:
        return None

    logger.info("credential_source_found", source=source.label, env_name=found.name, split=found.split)
    guess = classify(found.value)

    if guess.kind == FormatKind.FILE_PATH and source == LEGACY_BLOB:
        # Standard ADC usage; the Google client library reads the file itself
        logger.info("credential_file_path_deferred", env_name=found.name)
        notes.append(f"{found.name} points to a file path; Google client libraries will load it directly")
        return None

    decoded = decode(found.value, guess, source=found.name)
    if isinstance(decoded, CredentialFailure):
        return decoded

    result = validate(decoded.payload, found.name)
    if isinstance(result, CredentialSuccess):
        return result.model_copy(update={"source": _provenance(source, found.name, decoded)})
    return result.model_copy(update={"attempts": decoded.attempts})


def _most_specific(failures: list[CredentialFailure]) -> CredentialFailure:
    best = failures[0]
    for failure in failures[1:]:
        if _SPECIFICITY[failure.kind] > _SPECIFICITY[best.kind]:
            best = failure
    return best


def missing_failure(notes: list[str] | None = None) -> CredentialFailure:
    details = "No supported credential environment variables found"
    if notes:
        details += ". " + ". ".join(notes)
    return CredentialFailure(
        kind=CredentialErrorKind.MISSING,
        message="No Google Cloud service account credentials configured",
        details=details,
        remediation=MISSING_REMEDIATION,
    )


def resolve_credentials(environ: Mapping[str, str] | None = None) -> ResolutionResult:
    """
    Resolve service account credentials from the environment.

    Args:
        environ: Mapping to read instead of os.environ (tests, diagnostics)

    Returns:
        CredentialSuccess with provenance, or CredentialFailure. Never raises
        for configuration problems.
    """
    logger.debug("credential_resolution_started")
    failures: list[CredentialFailure] = []
    notes: list[str] = []

    for source in BLOB_SOURCES:
        result = _resolve_blob(source, environ, notes)
        if result is None:
            continue
        if isinstance(result, CredentialSuccess):
            logger.info("credential_resolution_succeeded", source=result.source, project_id=result.project_id)
            return result
        logger.warning(
            "credential_source_rejected",
            source=source.label,
            env_name=result.source,
            kind=result.kind.value,
            message=result.message,
        )
        failures.append(result)

    parts = assemble_from_parts(environ)
    if parts is not None:
        label = describe_parts(environ)
        result = validate(parts, label)
        if isinstance(result, CredentialSuccess):
            logger.info("credential_resolution_succeeded", source=label, project_id=result.project_id)
            return result
        logger.warning("credential_parts_rejected", kind=result.kind.value, details=result.details)
        failures.append(result)

    if failures:
        chosen = _most_specific(failures)
        logger.error(
            "credential_resolution_failed",
            kind=chosen.kind.value,
            source=chosen.source,
            sources_rejected=len(failures),
        )
        return chosen

    logger.warning("credential_resolution_missing")
    return missing_failure(notes)


def resolve_project_id(
    result: ResolutionResult,
    default: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> str | None:
    """
    Project id for the analytics client.

    An explicitly configured project variable wins over the credential's
    own project_id; ``default`` is the last resort.
    """
    explicit = first_value(PROJECT_ID_ENV_NAMES, environ)
    if explicit:
        return explicit
    if isinstance(result, CredentialSuccess):
        return result.project_id
    return default
