"""Sacrament API endpoints."""

from dependency_injector.wiring import Provide, inject
from flask import Blueprint, request
from spectree import Response as SpectreeResponse

from parish.schemas.sacrament_schema import (
    SacramentCreateSchema,
    SacramentListQuerySchema,
    SacramentListResponseSchema,
    SacramentResponseSchema,
    SacramentUpdateSchema,
)
from parish.services.container import ServiceContainer
from parish.services.sacrament_service import SacramentService
from parish.utils.spectree_config import api

sacraments_bp = Blueprint("sacraments", __name__, url_prefix="/sacraments")


def _list_response(sacraments: list) -> dict:
    return SacramentListResponseSchema(
        items=[SacramentResponseSchema.model_validate(s) for s in sacraments],
        total=len(sacraments),
    ).model_dump(mode="json")


@sacraments_bp.route("", methods=["GET"])
@api.validate(query=SacramentListQuerySchema, resp=SpectreeResponse(HTTP_200=SacramentListResponseSchema))
@inject
def list_sacraments(
    sacrament_service: SacramentService = Provide[ServiceContainer.sacrament_service],
):
    """List sacrament records, newest first."""
    query = SacramentListQuerySchema.model_validate(request.args.to_dict())
    return _list_response(sacrament_service.list_sacraments(**query.model_dump()))


@sacraments_bp.route("", methods=["POST"])
@api.validate(json=SacramentCreateSchema, resp=SpectreeResponse(HTTP_201=SacramentResponseSchema))
@inject
def create_sacrament(
    sacrament_service: SacramentService = Provide[ServiceContainer.sacrament_service],
):
    """Record a sacrament for a member."""
    data = SacramentCreateSchema(**request.get_json())
    sacrament = sacrament_service.create(data.model_dump())
    return SacramentResponseSchema.model_validate(sacrament).model_dump(mode="json"), 201


@sacraments_bp.route("/<int:sacrament_id>", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=SacramentResponseSchema))
@inject
def get_sacrament(
    sacrament_id: int,
    sacrament_service: SacramentService = Provide[ServiceContainer.sacrament_service],
):
    """Get a sacrament record by ID."""
    sacrament = sacrament_service.get_by_id(sacrament_id)
    return SacramentResponseSchema.model_validate(sacrament).model_dump(mode="json")


@sacraments_bp.route("/<int:sacrament_id>", methods=["PUT"])
@api.validate(json=SacramentUpdateSchema, resp=SpectreeResponse(HTTP_200=SacramentResponseSchema))
@inject
def update_sacrament(
    sacrament_id: int,
    sacrament_service: SacramentService = Provide[ServiceContainer.sacrament_service],
):
    """Update a sacrament record."""
    data = SacramentUpdateSchema(**request.get_json())
    sacrament = sacrament_service.update(sacrament_id, data.model_dump(exclude_unset=True))
    return SacramentResponseSchema.model_validate(sacrament).model_dump(mode="json")


@sacraments_bp.route("/<int:sacrament_id>", methods=["DELETE"])
@inject
def delete_sacrament(
    sacrament_id: int,
    sacrament_service: SacramentService = Provide[ServiceContainer.sacrament_service],
):
    """Delete a sacrament record."""
    sacrament_service.delete(sacrament_id)
    return "", 204


@sacraments_bp.route("/member/<int:member_id>", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=SacramentListResponseSchema))
@inject
def member_sacraments(
    member_id: int,
    sacrament_service: SacramentService = Provide[ServiceContainer.sacrament_service],
):
    """A member's sacraments in the order they were received."""
    return _list_response(sacrament_service.get_member_sacraments(member_id))
