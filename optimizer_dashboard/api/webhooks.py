"""
Webhook receivers for the external optimizer process.

The optimizer posts status updates while running, results when a run
finishes and error reports when it fails. Results are normalized into the
optimization_results row shape; writing them to the analytics store is
handled outside this service.
"""

import structlog
from fastapi import APIRouter, Depends

from optimizer_dashboard.config import settings
from optimizer_dashboard.core.deps import CredentialResultDep
from optimizer_dashboard.core.security import require_api_key, verify_api_key
from optimizer_dashboard.credentials.resolver import resolve_project_id
from optimizer_dashboard.schemas.optimizer import (
    OptimizationErrorPayload,
    OptimizationResultsPayload,
    OptimizationStatusPayload,
    WebhookAck,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["optimizer-webhooks"])

RESULTS_TABLE = "optimization_results"


@router.post("/optimization-results", dependencies=[Depends(verify_api_key)])
async def optimization_results(
    payload: OptimizationResultsPayload,
    credential_result: CredentialResultDep,
) -> dict:
    """
    Receive final results for an optimizer run.

    Logs a warning when the enhanced payload fields are absent, which
    usually means the optimizer is running an older version.
    """
    logger.info(
        "optimization_results_received",
        run_id=payload.run_id,
        status=payload.status,
        duration_seconds=payload.duration_seconds,
    )

    missing = payload.missing_enhanced_fields()
    if missing:
        logger.warning(
            "optimization_results_missing_enhanced_fields",
            run_id=payload.run_id,
            missing_fields=missing,
        )

    project_id = resolve_project_id(credential_result, default=settings.default_project_id)
    row = payload.to_row()

    return {
        **WebhookAck(run_id=payload.run_id).model_dump(),
        "destination": f"{project_id}.{settings.bq_dataset_id}.{RESULTS_TABLE}",
        "row": row,
        "missing_enhanced_fields": missing,
    }


@router.post("/optimization-status", dependencies=[Depends(verify_api_key)], response_model=WebhookAck)
async def optimization_status(payload: OptimizationStatusPayload) -> WebhookAck:
    """Receive a progress update for a running optimizer job."""
    logger.info(
        "optimization_status_received",
        run_id=payload.run_id,
        status=payload.status,
        percent_complete=payload.percent_complete,
        message=payload.message,
    )
    return WebhookAck(run_id=payload.run_id)


@router.post("/optimization-error", dependencies=[Depends(require_api_key)], response_model=WebhookAck)
async def optimization_error(payload: OptimizationErrorPayload) -> WebhookAck:
    """Receive an error report; always requires the dashboard API key."""
    logger.error(
        "optimization_error_received",
        run_id=payload.run_id,
        profile_id=payload.profile_id,
        error=payload.error,
        error_type=payload.error_type,
    )
    return WebhookAck(run_id=payload.run_id)
