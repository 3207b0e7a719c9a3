"""
Diagnostic endpoints for credential and configuration troubleshooting.

These endpoints exist so operators can fix a misconfigured deployment
without reading source code. They report what is configured and how it
was interpreted, but never return secret values.
"""

from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from optimizer_dashboard.config import settings
from optimizer_dashboard.core.deps import AnalyticsConnectionDep, CredentialResultDep
from optimizer_dashboard.credentials.diagnostics import (
    analyze_environment,
    running_on_google_platform,
    split_credential_summary,
)
from optimizer_dashboard.credentials.environment import lookup
from optimizer_dashboard.credentials.models import CredentialErrorKind, CredentialSuccess
from optimizer_dashboard.credentials.sources import PROJECT_ID_ENV_NAMES

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["diagnostics"])

NO_CACHE_HEADERS = {"Cache-Control": "no-cache, no-store, must-revalidate"}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/config-check")
async def config_check(credential_result: CredentialResultDep) -> JSONResponse:
    """
    Summarize configuration and credential health.

    Returns 200 when no errors were found (status "ok" or "warning"),
    500 when credentials are configured but unusable.
    """
    project = lookup(PROJECT_ID_ENV_NAMES)
    split_env = split_credential_summary()
    on_platform = running_on_google_platform()
    diagnosis: list[dict[str, str]] = []
    recommendations: list[str] = []

    if project:
        diagnosis.append({"level": "ok", "message": f"GCP project ID is configured via {project.name}"})
    else:
        diagnosis.append({"level": "warning", "message": "No project variable set - using default fallback"})
        recommendations.append(
            "For production, set GCP_PROJECT or GOOGLE_CLOUD_PROJECT to your Google Cloud project ID"
        )

    if isinstance(credential_result, CredentialSuccess):
        diagnosis.append({"level": "ok", "message": f"Credentials loaded from {credential_result.source}"})
    elif credential_result.kind == CredentialErrorKind.MISSING:
        if on_platform:
            diagnosis.append(
                {"level": "info", "message": "Running on Google Cloud - Application Default Credentials may be used"}
            )
        else:
            diagnosis.append({"level": "warning", "message": credential_result.message})
            recommendations.extend(credential_result.remediation)
    else:
        diagnosis.append({"level": "error", "message": credential_result.message})
        recommendations.extend(credential_result.remediation)

    if split_env["ready"] and split_env["private_key_contains_escaped_newlines"] is False:
        recommendations.append("Ensure your private key uses escaped newlines (\\n) so it loads correctly at runtime")

    if not settings.dashboard_api_key:
        diagnosis.append(
            {"level": "warning", "message": "DASHBOARD_API_KEY is not set (required for optimizer integration)"}
        )
        recommendations.append("Set DASHBOARD_API_KEY to match the key configured for the optimizer")

    has_errors = any(entry["level"] == "error" for entry in diagnosis)
    has_warnings = any(entry["level"] == "warning" for entry in diagnosis)
    status_label = "error" if has_errors else ("warning" if has_warnings else "ok")

    body: dict[str, Any] = {
        "status": status_label,
        "message": (
            "Configuration issues detected - see diagnosis and recommendations"
            if has_errors
            else "Configuration appears correct"
        ),
        "checks": {
            "timestamp": _now(),
            "environment": settings.app_env,
            "configuration": {
                "gcp_project": {
                    "set": project is not None,
                    "source": project.name if project else "default fallback",
                    "value": project.value if project else settings.default_project_id,
                },
                "bq_dataset_id": settings.bq_dataset_id,
                "bq_location": settings.bq_location,
                "credentials": credential_result.to_dict(),
                "split_env": split_env,
                "running_on_google_platform": on_platform,
                "dashboard_api_key": {"set": bool(settings.dashboard_api_key)},
            },
            "diagnosis": diagnosis,
            "recommendations": recommendations,
        },
        "next_steps": recommendations
        or [
            "Check the analytics connection: GET /api/analytics-connection",
            "Verify the optimizer is posting results to /api/optimization-results",
        ],
    }

    logger.info("config_check_completed", status=status_label)
    return JSONResponse(body, status_code=500 if has_errors else 200, headers=NO_CACHE_HEADERS)


@router.get("/credentials-debug")
async def credentials_debug() -> JSONResponse:
    """Per-variable analysis of every configured credential blob."""
    sources = analyze_environment()
    diagnostics: list[str] = []

    if not sources:
        diagnostics.append("No GCP credential environment variables found")
        diagnostics.append("Set GCP_SERVICE_ACCOUNT_KEY with your service account JSON")

    for source in sources:
        name = source["name"]
        if source.get("format") == "file-path":
            diagnostics.append(f"{name}: {source['warning']}")
        elif not source.get("decoded"):
            diagnostics.append(f"{name}: {source['error']}")
        elif not source.get("is_object"):
            diagnostics.append(f"{name}: decoded JSON is not an object")
        elif not source.get("is_service_account"):
            diagnostics.append(
                f"{name}: JSON detected but type is '{source.get('type_value')}' (expected 'service_account')"
            )
        elif source.get("missing_fields"):
            diagnostics.append(f"{name}: missing fields {', '.join(source['missing_fields'])}")
        else:
            diagnostics.append(f"{name}: valid service account JSON detected ({source['decode_path']})")

    return JSONResponse(
        {
            "timestamp": _now(),
            "environment": settings.app_env,
            "diagnostics": diagnostics,
            "credential_sources": sources,
            "split_env": split_credential_summary(),
        },
        headers=NO_CACHE_HEADERS,
    )


@router.get("/setup-guide")
async def setup_guide(credential_result: CredentialResultDep) -> dict[str, Any]:
    """Step-by-step setup instructions with completion status."""
    credentials_ok = isinstance(credential_result, CredentialSuccess)
    project = lookup(PROJECT_ID_ENV_NAMES)

    steps = [
        {
            "step": 1,
            "title": "Google Cloud Service Account Credentials",
            "status": "complete" if credentials_ok else "incomplete",
            "required": True,
            "currentValue": (
                f"Credentials loaded from {credential_result.source}"
                if credentials_ok
                else credential_result.message
            ),
            "instructions": [] if credentials_ok else list(credential_result.remediation),
        },
        {
            "step": 2,
            "title": "Google Cloud Project ID",
            "status": "complete" if project else "warning",
            "required": False,
            "currentValue": (
                f"Using project: {project.value}"
                if project
                else f"Using default project ({settings.default_project_id})"
            ),
            "instructions": [] if project else [
                "Optional: Set GCP_PROJECT or GOOGLE_CLOUD_PROJECT environment variable",
                "If not set, the credential's project_id or the default project will be used",
            ],
        },
        {
            "step": 3,
            "title": "BigQuery Permissions",
            "status": "needs_verification" if credentials_ok else "incomplete",
            "required": True,
            "currentValue": (
                "Credentials loaded - permissions need verification"
                if credentials_ok
                else "Cannot check until credentials are configured"
            ),
            "instructions": [
                "Grant roles/bigquery.dataViewer (to read data)",
                "Grant roles/bigquery.jobUser (to run queries)",
            ] if credentials_ok else ["Configure credentials first (Step 1)"],
        },
        {
            "step": 4,
            "title": "Optimizer Webhook Authentication",
            "status": "complete" if settings.dashboard_api_key else "incomplete",
            "required": True,
            "currentValue": "DASHBOARD_API_KEY is set" if settings.dashboard_api_key else "DASHBOARD_API_KEY is not set",
            "instructions": [] if settings.dashboard_api_key else [
                "Set DASHBOARD_API_KEY to the shared secret used by the optimizer",
                "The optimizer must send it as 'Authorization: Bearer <key>' or 'X-API-Key: <key>'",
            ],
        },
    ]

    all_complete = all(step["status"] != "incomplete" for step in steps if step["required"])
    return {
        "ready": all_complete,
        "steps": steps,
    }


@router.get("/analytics-connection")
async def analytics_connection(connection: AnalyticsConnectionDep) -> dict[str, Any]:
    """
    Connection settings an analytics client would be built with.

    Raises CredentialsUnavailableError (rendered with full remediation)
    when nothing is configured and no platform identity exists.
    """
    return {
        "project_id": connection.project_id,
        "dataset_id": connection.dataset_id,
        "location": connection.location,
        "credential_source": connection.credential_source,
        "explicit_credentials": connection.credentials is not None,
        "results_table": connection.table_ref("optimization_results"),
    }
