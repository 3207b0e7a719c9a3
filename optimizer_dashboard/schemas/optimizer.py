"""
Pydantic schemas for webhook payloads posted by the optimizer.

Design decisions:
- Only run_id/status/timestamp are required; the optimizer's enhanced
  payload evolves, so extra fields are allowed and passed through
- Default factories for optional nested objects
"""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Fields the enhanced optimizer payload is expected to carry
ENHANCED_FIELDS = ("summary", "features", "campaigns", "top_performers", "config_snapshot")


class RunSummary(BaseModel):
    """Aggregate counters for one optimizer run."""

    campaigns_analyzed: int = 0
    keywords_optimized: int = 0
    bids_increased: int = 0
    bids_decreased: int = 0
    negative_keywords_added: int = 0
    budget_changes: int = 0
    total_spend: float = 0.0
    total_sales: float = 0.0
    average_acos: float = 0.0

    model_config = ConfigDict(extra="allow")


class ConfigSnapshot(BaseModel):
    """Optimizer configuration in effect for the run."""

    target_acos: float | None = None
    lookback_days: int | None = None
    enabled_features: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")

    @field_validator("enabled_features", mode="before")
    @classmethod
    def coerce_features(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(item) for item in value]


class OptimizationResultsPayload(BaseModel):
    """
    Results posted when an optimizer run finishes.

    Fields:
        run_id: Unique identifier for the run
        status: Run outcome ("success", "partial", ...)
        timestamp: ISO timestamp of completion
    """

    run_id: str = Field(..., min_length=1)
    status: str = Field(..., min_length=1)
    timestamp: str = Field(..., min_length=1)
    profile_id: str = ""
    dry_run: bool = False
    duration_seconds: float = 0.0
    summary: RunSummary | None = None
    config_snapshot: ConfigSnapshot | None = None
    features: dict[str, Any] | None = None
    campaigns: list[Any] | None = None
    top_performers: list[Any] | None = None
    errors: list[Any] = Field(default_factory=list)
    warnings: list[Any] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")

    def missing_enhanced_fields(self) -> list[str]:
        return [name for name in ENHANCED_FIELDS if not getattr(self, name)]

    def to_row(self) -> dict[str, Any]:
        """Flatten into the optimization_results table row shape."""
        summary = self.summary or RunSummary()
        config = self.config_snapshot or ConfigSnapshot()
        return {
            "timestamp": self.timestamp,
            "run_id": self.run_id,
            "status": self.status,
            "profile_id": self.profile_id,
            "dry_run": self.dry_run,
            "duration_seconds": self.duration_seconds,
            "campaigns_analyzed": summary.campaigns_analyzed,
            "keywords_optimized": summary.keywords_optimized,
            "bids_increased": summary.bids_increased,
            "bids_decreased": summary.bids_decreased,
            "negative_keywords_added": summary.negative_keywords_added,
            "budget_changes": summary.budget_changes,
            "total_spend": summary.total_spend,
            "total_sales": summary.total_sales,
            "average_acos": summary.average_acos,
            "target_acos": config.target_acos,
            "lookback_days": config.lookback_days,
            "enabled_features": config.enabled_features,
            "errors": [str(error) for error in self.errors],
            "warnings": [str(warning) for warning in self.warnings],
            "campaigns": json.dumps(self.campaigns or []),
            "top_performers": json.dumps(self.top_performers or []),
            "features": json.dumps(self.features or {}),
            "config_snapshot": json.dumps(config.model_dump()),
        }


class OptimizationStatusPayload(BaseModel):
    """Progress update for a running optimizer job."""

    run_id: str | None = None
    status: str | None = None
    profile_id: str | None = None
    timestamp: str | None = None
    message: str | None = None
    percent_complete: float | None = Field(default=None, ge=0, le=100)

    model_config = ConfigDict(extra="allow")


class OptimizationErrorPayload(BaseModel):
    """Error report for a failed optimizer run."""

    run_id: str | None = None
    status: str = "error"
    profile_id: str | None = None
    timestamp: str | None = None
    error: str | None = None
    error_type: str | None = None

    model_config = ConfigDict(extra="allow")


class WebhookAck(BaseModel):
    success: bool = True
    received: bool = True
    run_id: str | None = None
