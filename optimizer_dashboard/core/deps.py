"""
FastAPI dependencies for dependency injection.

This module provides reusable dependencies for:
- Service account credential resolution
- Analytics store connection settings (project, dataset, location)

Design decisions:
- Credentials are resolved per request; resolution is pure and cheap, so
  configuration changes are picked up without a restart
- A MISSING result is not an error when Application Default Credentials
  are available on the hosting platform
"""

from dataclasses import dataclass
from typing import Annotated, Any

import structlog
from fastapi import Depends

from optimizer_dashboard.config import settings
from optimizer_dashboard.core.exceptions import CredentialsUnavailableError
from optimizer_dashboard.credentials.diagnostics import running_on_google_platform
from optimizer_dashboard.credentials.models import (
    CredentialErrorKind,
    CredentialSuccess,
    ResolutionResult,
)
from optimizer_dashboard.credentials.resolver import resolve_credentials, resolve_project_id

logger = structlog.get_logger(__name__)


def get_credential_result() -> ResolutionResult:
    """Dependency returning the current credential resolution result."""
    return resolve_credentials()


@dataclass(frozen=True)
class AnalyticsConnection:
    """Everything needed to construct an analytics store client."""

    project_id: str
    dataset_id: str
    location: str
    credentials: dict[str, Any] | None
    credential_source: str

    def table_ref(self, table: str) -> str:
        return f"{self.project_id}.{self.dataset_id}.{table}"


def get_analytics_connection(
    result: Annotated[ResolutionResult, Depends(get_credential_result)],
) -> AnalyticsConnection:
    """
    Build analytics connection settings from the credential result.

    Falls back to Application Default Credentials when explicit credentials
    are absent or malformed but the platform provides an identity.

    Raises:
        CredentialsUnavailableError: nothing configured and no platform identity
    """
    project_id = resolve_project_id(result, default=settings.default_project_id)

    if isinstance(result, CredentialSuccess):
        credentials: dict[str, Any] | None = result.credentials
        source = result.source
    else:
        if result.kind != CredentialErrorKind.MISSING:
            logger.error("credential_parsing_issue", kind=result.kind.value, details=result.details)
        elif not running_on_google_platform():
            logger.error("credentials_unavailable", message="No credentials and no platform identity")
            raise CredentialsUnavailableError(result)
        logger.warning("using_application_default_credentials")
        credentials = None
        source = "Application Default Credentials (fallback)"

    return AnalyticsConnection(
        project_id=project_id,
        dataset_id=settings.bq_dataset_id,
        location=settings.bq_location,
        credentials=credentials,
        credential_source=source,
    )


# ===== Type Aliases for Cleaner Endpoint Signatures =====

CredentialResultDep = Annotated[ResolutionResult, Depends(get_credential_result)]
AnalyticsConnectionDep = Annotated[AnalyticsConnection, Depends(get_analytics_connection)]
