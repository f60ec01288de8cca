"""Tithe API endpoints."""

from datetime import date
from decimal import Decimal

from dependency_injector.wiring import Provide, inject
from flask import Blueprint, request
from spectree import Response as SpectreeResponse

from parish.schemas.tithe_schema import (
    MemberTithesResponseSchema,
    TitheCreateSchema,
    TitheListQuerySchema,
    TitheListResponseSchema,
    TitheReportQuerySchema,
    TitheReportResponseSchema,
    TitheResponseSchema,
    TitheUpdateSchema,
)
from parish.services.container import ServiceContainer
from parish.services.tithe_service import TitheService
from parish.utils.spectree_config import api

tithes_bp = Blueprint("tithes", __name__, url_prefix="/tithes")


@tithes_bp.route("", methods=["GET"])
@api.validate(query=TitheListQuerySchema, resp=SpectreeResponse(HTTP_200=TitheListResponseSchema))
@inject
def list_tithes(
    tithe_service: TitheService = Provide[ServiceContainer.tithe_service],
):
    """List contributions, newest first."""
    query = TitheListQuerySchema.model_validate(request.args.to_dict())
    tithes = tithe_service.list_tithes(**query.model_dump())
    return TitheListResponseSchema(
        items=[TitheResponseSchema.model_validate(tithe) for tithe in tithes],
        total=len(tithes),
        total_amount=sum((tithe.amount for tithe in tithes), Decimal("0.00")),
    ).model_dump(mode="json")


@tithes_bp.route("", methods=["POST"])
@api.validate(json=TitheCreateSchema, resp=SpectreeResponse(HTTP_201=TitheResponseSchema))
@inject
def create_tithe(
    tithe_service: TitheService = Provide[ServiceContainer.tithe_service],
):
    """Record a contribution."""
    data = TitheCreateSchema(**request.get_json())
    tithe = tithe_service.create(data.model_dump())
    return TitheResponseSchema.model_validate(tithe).model_dump(mode="json"), 201


@tithes_bp.route("/<int:tithe_id>", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=TitheResponseSchema))
@inject
def get_tithe(
    tithe_id: int,
    tithe_service: TitheService = Provide[ServiceContainer.tithe_service],
):
    """Get a contribution by ID."""
    return TitheResponseSchema.model_validate(tithe_service.get_by_id(tithe_id)).model_dump(mode="json")


@tithes_bp.route("/<int:tithe_id>", methods=["PUT"])
@api.validate(json=TitheUpdateSchema, resp=SpectreeResponse(HTTP_200=TitheResponseSchema))
@inject
def update_tithe(
    tithe_id: int,
    tithe_service: TitheService = Provide[ServiceContainer.tithe_service],
):
    """Update a contribution."""
    data = TitheUpdateSchema(**request.get_json())
    tithe = tithe_service.update(tithe_id, data.model_dump(exclude_unset=True))
    return TitheResponseSchema.model_validate(tithe).model_dump(mode="json")


@tithes_bp.route("/<int:tithe_id>", methods=["DELETE"])
@inject
def delete_tithe(
    tithe_id: int,
    tithe_service: TitheService = Provide[ServiceContainer.tithe_service],
):
    """Delete a contribution."""
    tithe_service.delete(tithe_id)
    return "", 204


@tithes_bp.route("/member/<int:member_id>", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=MemberTithesResponseSchema))
@inject
def member_tithes(
    member_id: int,
    tithe_service: TitheService = Provide[ServiceContainer.tithe_service],
):
    """A member's contributions with totals for all time, this year and this month."""
    summary = tithe_service.get_member_tithes(member_id)
    return MemberTithesResponseSchema(
        member_id=member_id,
        tithes=[TitheResponseSchema.model_validate(tithe) for tithe in summary["tithes"]],
        total_amount=summary["total_amount"],
        this_year=summary["this_year"],
        this_month=summary["this_month"],
    ).model_dump(mode="json")


@tithes_bp.route("/report", methods=["GET"])
@api.validate(query=TitheReportQuerySchema, resp=SpectreeResponse(HTTP_200=TitheReportResponseSchema))
@inject
def tithe_report(
    tithe_service: TitheService = Provide[ServiceContainer.tithe_service],
):
    """Contribution totals for a year by type, payment method and month."""
    query = TitheReportQuerySchema.model_validate(request.args.to_dict())
    report = tithe_service.get_report(query.year or date.today().year, query.month)
    return TitheReportResponseSchema(**report).model_dump(mode="json")
