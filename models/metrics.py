"""Metrics snapshot model."""

from typing import Dict

from pydantic import BaseModel, Field


class MetricsSnapshot(BaseModel):
    """Snapshot of suggestion engine metrics."""

    totalEvaluations: int = Field(default=0, description="Total evaluation count")
    cacheHits: int = Field(default=0, description="Number of cache hits")
    cacheHitRate: float = Field(default=0.0, description="Cache hit ratio")
    avgResponseTimeMs: float = Field(default=0.0, description="Average evaluation time")
    evaluationsBySource: Dict[str, int] = Field(
        default_factory=dict, description="Evaluations per outcome source"
    )
    errorCount: int = Field(default=0, description="Total error count")
    discardedCount: int = Field(default=0, description="Stale results dropped")
    acceptedCount: int = Field(default=0, description="Suggestions the user accepted")
    dismissedCount: int = Field(default=0, description="Shown suggestions the user dismissed")
    acceptanceRate: float = Field(default=0.0, description="Accepted share of resolved suggestions")
    acceptedBySource: Dict[str, int] = Field(
        default_factory=dict, description="Accepted suggestions per producing source"
    )
