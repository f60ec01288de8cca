"""Family API endpoints."""

from dependency_injector.wiring import Provide, inject
from flask import Blueprint, request
from spectree import Response as SpectreeResponse

from parish.schemas.family_schema import (
    FamilyCreateSchema,
    FamilyDetailResponseSchema,
    FamilyListQuerySchema,
    FamilyListResponseSchema,
    FamilyMemberSchema,
    FamilyResponseSchema,
    FamilyUpdateSchema,
)
from parish.services.container import ServiceContainer
from parish.services.family_service import FamilyService
from parish.utils.spectree_config import api

families_bp = Blueprint("families", __name__, url_prefix="/families")


@families_bp.route("", methods=["GET"])
@api.validate(query=FamilyListQuerySchema, resp=SpectreeResponse(HTTP_200=FamilyListResponseSchema))
@inject
def list_families(
    family_service: FamilyService = Provide[ServiceContainer.family_service],
):
    """List families, optionally filtered."""
    query = FamilyListQuerySchema.model_validate(request.args.to_dict())
    families = family_service.list_families(**query.model_dump())
    return FamilyListResponseSchema(
        items=[FamilyResponseSchema.model_validate(family) for family in families],
        total=len(families),
    ).model_dump(mode="json")


@families_bp.route("", methods=["POST"])
@api.validate(json=FamilyCreateSchema, resp=SpectreeResponse(HTTP_201=FamilyDetailResponseSchema))
@inject
def create_family(
    family_service: FamilyService = Provide[ServiceContainer.family_service],
):
    """Create a family."""
    data = FamilyCreateSchema(**request.get_json())
    family = family_service.create(data.model_dump())
    return FamilyDetailResponseSchema.model_validate(family).model_dump(mode="json"), 201


@families_bp.route("/<int:family_id>", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=FamilyDetailResponseSchema))
@inject
def get_family(
    family_id: int,
    family_service: FamilyService = Provide[ServiceContainer.family_service],
):
    """Get a family with its members."""
    family = family_service.get_by_id(family_id)
    return FamilyDetailResponseSchema.model_validate(family).model_dump(mode="json")


@families_bp.route("/<int:family_id>", methods=["PUT"])
@api.validate(json=FamilyUpdateSchema, resp=SpectreeResponse(HTTP_200=FamilyDetailResponseSchema))
@inject
def update_family(
    family_id: int,
    family_service: FamilyService = Provide[ServiceContainer.family_service],
):
    """Update a family."""
    data = FamilyUpdateSchema(**request.get_json())
    family = family_service.update(family_id, data.model_dump(exclude_unset=True))
    return FamilyDetailResponseSchema.model_validate(family).model_dump(mode="json")


@families_bp.route("/<int:family_id>", methods=["DELETE"])
@inject
def delete_family(
    family_id: int,
    family_service: FamilyService = Provide[ServiceContainer.family_service],
):
    """Delete a family; its members remain registered."""
    family_service.delete(family_id)
    return "", 204


@families_bp.route("/<int:family_id>/members", methods=["POST"])
@api.validate(json=FamilyMemberSchema, resp=SpectreeResponse(HTTP_200=FamilyDetailResponseSchema))
@inject
def add_family_member(
    family_id: int,
    family_service: FamilyService = Provide[ServiceContainer.family_service],
):
    """Add a member to a family."""
    data = FamilyMemberSchema(**request.get_json())
    family = family_service.add_member(family_id, data.member_id)
    return FamilyDetailResponseSchema.model_validate(family).model_dump(mode="json")


@families_bp.route("/<int:family_id>/members/<int:member_id>", methods=["DELETE"])
@api.validate(resp=SpectreeResponse(HTTP_200=FamilyDetailResponseSchema))
@inject
def remove_family_member(
    family_id: int,
    member_id: int,
    family_service: FamilyService = Provide[ServiceContainer.family_service],
):
    """Remove a member from a family."""
    family = family_service.remove_member(family_id, member_id)
    return FamilyDetailResponseSchema.model_validate(family).model_dump(mode="json")
