"""Activity API endpoints."""

from dependency_injector.wiring import Provide, inject
from flask import Blueprint, request
from spectree import Response as SpectreeResponse

from parish.schemas.activity_schema import (
    ActivityCreateSchema,
    ActivityListQuerySchema,
    ActivityListResponseSchema,
    ActivityResponseSchema,
    ActivitySearchQuerySchema,
    ActivityStatisticsResponseSchema,
    ActivityUpdateSchema,
)
from parish.services.activity_service import ActivityService
from parish.services.container import ServiceContainer
from parish.utils.spectree_config import api

activities_bp = Blueprint("activities", __name__, url_prefix="/activities")


def _list_response(activities: list) -> dict:
    return ActivityListResponseSchema(
        items=[ActivityResponseSchema.model_validate(a) for a in activities],
        total=len(activities),
    ).model_dump(mode="json")


@activities_bp.route("", methods=["GET"])
@api.validate(query=ActivityListQuerySchema, resp=SpectreeResponse(HTTP_200=ActivityListResponseSchema))
@inject
def list_activities(
    activity_service: ActivityService = Provide[ServiceContainer.activity_service],
):
    """List activities, latest start date first."""
    query = ActivityListQuerySchema.model_validate(request.args.to_dict())
    return _list_response(activity_service.list_activities(**query.model_dump()))


@activities_bp.route("", methods=["POST"])
@api.validate(json=ActivityCreateSchema, resp=SpectreeResponse(HTTP_201=ActivityResponseSchema))
@inject
def create_activity(
    activity_service: ActivityService = Provide[ServiceContainer.activity_service],
):
    """Schedule an activity."""
    data = ActivityCreateSchema(**request.get_json())
    activity = activity_service.create(data.model_dump())
    return ActivityResponseSchema.model_validate(activity).model_dump(mode="json"), 201


@activities_bp.route("/<int:activity_id>", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=ActivityResponseSchema))
@inject
def get_activity(
    activity_id: int,
    activity_service: ActivityService = Provide[ServiceContainer.activity_service],
):
    """Get an activity by ID."""
    activity = activity_service.get_by_id(activity_id)
    return ActivityResponseSchema.model_validate(activity).model_dump(mode="json")


@activities_bp.route("/<int:activity_id>", methods=["PUT"])
@api.validate(json=ActivityUpdateSchema, resp=SpectreeResponse(HTTP_200=ActivityResponseSchema))
@inject
def update_activity(
    activity_id: int,
    activity_service: ActivityService = Provide[ServiceContainer.activity_service],
):
    """Update an activity."""
    data = ActivityUpdateSchema(**request.get_json())
    activity = activity_service.update(activity_id, data.model_dump(exclude_unset=True))
    return ActivityResponseSchema.model_validate(activity).model_dump(mode="json")


@activities_bp.route("/<int:activity_id>", methods=["DELETE"])
@inject
def delete_activity(
    activity_id: int,
    activity_service: ActivityService = Provide[ServiceContainer.activity_service],
):
    """Delete an activity."""
    activity_service.delete(activity_id)
    return "", 204


@activities_bp.route("/upcoming", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=ActivityListResponseSchema))
@inject
def upcoming_activities(
    activity_service: ActivityService = Provide[ServiceContainer.activity_service],
):
    """The next open activities, soonest first."""
    return _list_response(activity_service.get_upcoming())


@activities_bp.route("/search", methods=["GET"])
@api.validate(query=ActivitySearchQuerySchema, resp=SpectreeResponse(HTTP_200=ActivityListResponseSchema))
@inject
def search_activities(
    activity_service: ActivityService = Provide[ServiceContainer.activity_service],
):
    """Search activities by title, description or location."""
    query = ActivitySearchQuerySchema.model_validate(request.args.to_dict())
    return _list_response(activity_service.search(query.q))


@activities_bp.route("/statistics", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=ActivityStatisticsResponseSchema))
@inject
def activity_statistics(
    activity_service: ActivityService = Provide[ServiceContainer.activity_service],
):
    """Activity counts by status, type and period."""
    return ActivityStatisticsResponseSchema(**activity_service.get_statistics()).model_dump()
