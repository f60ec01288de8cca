"""Reporting endpoints: cached statistics, cache management and certificate checks."""

from dataclasses import asdict

from dependency_injector.wiring import Provide, inject
from flask import Blueprint, request
from spectree import Response as SpectreeResponse

from parish.schemas.report_schema import (
    CacheClearSchema,
    CacheStatsResponseSchema,
    CacheWarmupResponseSchema,
    CertificateSummaryResponseSchema,
    CertificateValidationResponseSchema,
    StatsResponseSchema,
)
from parish.services.cache_service import CacheOptimizationService
from parish.services.certificate_validator import MarriageCertificateValidator
from parish.services.container import ServiceContainer
from parish.services.member_service import MemberService
from parish.utils.spectree_config import api

reports_bp = Blueprint("reports", __name__, url_prefix="/reports")


@reports_bp.route("/stats/<string:stats_type>", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=StatsResponseSchema))
@inject
def get_stats(
    stats_type: str,
    cache_service: CacheOptimizationService = Provide[ServiceContainer.cache_service],
):
    """Cached statistics: dashboard, members, financial or general."""
    stats = cache_service.get_cached_stats(stats_type)
    return StatsResponseSchema(type=stats_type, stats=stats).model_dump(mode="json")


@reports_bp.route("/cache", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=CacheStatsResponseSchema))
@inject
def get_cache_stats(
    cache_service: CacheOptimizationService = Provide[ServiceContainer.cache_service],
):
    """Cache backend, entry count and last warmup time."""
    return CacheStatsResponseSchema(**cache_service.get_cache_stats()).model_dump()


@reports_bp.route("/cache", methods=["DELETE"])
@inject
def clear_cache(
    cache_service: CacheOptimizationService = Provide[ServiceContainer.cache_service],
):
    """Flush cache entries by tag, or the whole cache without tags."""
    payload = request.get_json(silent=True) or {}
    data = CacheClearSchema(**payload)
    cache_service.clear_cache(data.tags)
    return "", 204


@reports_bp.route("/cache/warmup", methods=["POST"])
@api.validate(resp=SpectreeResponse(HTTP_200=CacheWarmupResponseSchema))
@inject
def warmup_cache(
    cache_service: CacheOptimizationService = Provide[ServiceContainer.cache_service],
):
    """Preload the commonly used statistics."""
    success = cache_service.warmup_cache()
    message = "Cache warmed up successfully" if success else "Cache warmup failed"
    return CacheWarmupResponseSchema(success=success, message=message).model_dump()


@reports_bp.route("/certificates/<int:member_id>", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=CertificateValidationResponseSchema))
@inject
def validate_certificate(
    member_id: int,
    member_service: MemberService = Provide[ServiceContainer.member_service],
    validator: MarriageCertificateValidator = Provide[ServiceContainer.certificate_validator],
):
    """Marriage certificate completeness for one member."""
    member = member_service.get_by_id(member_id)
    validation = validator.validate_member_data(member)
    return CertificateValidationResponseSchema(
        member_id=member.id,
        member_name=member.full_name,
        **asdict(validation),
    ).model_dump(mode="json")


@reports_bp.route("/certificates", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=CertificateSummaryResponseSchema))
@inject
def certificate_summary(
    member_service: MemberService = Provide[ServiceContainer.member_service],
    validator: MarriageCertificateValidator = Provide[ServiceContainer.certificate_validator],
):
    """Certificate completeness summary across married members."""
    report = validator.generate_summary_report(member_service.get_married_members())
    return CertificateSummaryResponseSchema(**asdict(report)).model_dump()
