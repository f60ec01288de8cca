"""Reporting, cache and performance schemas."""

from typing import Any

from pydantic import BaseModel, Field


class StatsResponseSchema(BaseModel):
    """Schema for cached statistics."""

    type: str = Field(..., description="Statistics type", examples=["dashboard"])
    stats: dict[str, Any] = Field(..., description="Statistic values; empty when generation failed")


class CacheStatsResponseSchema(BaseModel):
    """Schema for cache statistics."""

    cache_driver: str
    cache_prefix: str
    supports_tags: bool
    entries: int
    last_warmup: str


class CacheClearSchema(BaseModel):
    """Schema for clearing cache entries."""

    tags: list[str] | None = Field(None, description="Tags to flush; everything when omitted")


class CacheWarmupResponseSchema(BaseModel):
    """Schema for cache warmup results."""

    success: bool
    message: str


class MissingFieldSchema(BaseModel):
    """A certificate field without a value."""

    field: str
    label: str
    category: str | None = None


class CertificateValidationResponseSchema(BaseModel):
    """Schema for a member's certificate completeness."""

    member_id: int
    member_name: str
    is_valid: bool
    completeness_score: float
    missing_required: list[MissingFieldSchema]
    missing_optional: list[MissingFieldSchema]
    field_mapping: dict[str, Any]
    warnings: list[str]
    recommendations: list[str]


class CertificateSummaryResponseSchema(BaseModel):
    """Schema for the certificate completeness summary."""

    total_members: int
    valid_certificates: int
    incomplete_certificates: int
    average_completeness: float
    common_missing_fields: dict[str, int]
    recommendations: list[str]


class SlowQuerySchema(BaseModel):
    """A recorded slow query."""

    sql: str
    duration_ms: float
    parameters: Any = None
    connection: str | None = None


class SlowQueryIssueSchema(BaseModel):
    """A problem pattern found in a slow query."""

    type: str = Field(..., examples=["unlimited_order"])
    message: str
    query: str
    time: float
    suggestion: str | None = None


class SlowQueriesResponseSchema(BaseModel):
    """Schema for slow query listings."""

    slow_queries: list[SlowQuerySchema]
    analysis: list[SlowQueryIssueSchema]


class PerformanceMetricsResponseSchema(BaseModel):
    """Schema for performance metrics."""

    queries: dict[str, Any]
    memory: dict[str, Any]
    cache: dict[str, Any]
    storage: dict[str, Any]


class PerformanceReportResponseSchema(BaseModel):
    """Schema for the full performance report."""

    timestamp: str
    metrics: dict[str, Any]
    slow_queries: list[dict[str, Any]]
    recommendations: list[dict[str, Any]]
    database_optimizations: list[dict[str, Any]]
    system_info: dict[str, Any]
