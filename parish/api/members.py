"""Member API endpoints."""

from typing import Any

from dependency_injector.wiring import Provide, inject
from flask import Blueprint, current_app, request
from spectree import Response as SpectreeResponse

from parish.consts import CHURCH_GROUPS, LOCAL_CHURCHES
from parish.exceptions import ImportFailedException
from parish.schemas.member_schema import (
    FilterOptionsResponseSchema,
    MemberBulkDeleteResponseSchema,
    MemberBulkDeleteSchema,
    MemberCollectionResponseSchema,
    MemberCreateSchema,
    MemberListQuerySchema,
    MemberListResponseSchema,
    MemberResponseSchema,
    MemberSearchQuerySchema,
    MemberSearchResponseSchema,
    MemberStatisticsResponseSchema,
    MemberStatusUpdateSchema,
    MemberSummarySchema,
    MemberUpdateSchema,
    member_response,
)
from parish.schemas.transfer_schema import (
    ExportPreviewResponseSchema,
    MemberExportQuerySchema,
    MemberImportResponseSchema,
)
from parish.services.cache_service import CacheOptimizationService
from parish.services.container import ServiceContainer
from parish.services.member_export_service import MemberExportService
from parish.services.member_import_service import MemberImportService
from parish.services.member_service import MemberService
from parish.utils.spectree_config import api

members_bp = Blueprint("members", __name__, url_prefix="/members")

_TRUE_VALUES = ("1", "true", "yes", "on")


def _form_flag(name: str, default: bool) -> bool:
    value = request.form.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _download(content: str, filename: str, mimetype: str) -> Any:
    body = content.encode("utf-8")
    response = current_app.response_class(body, mimetype=mimetype)
    response.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
    response.headers["Content-Length"] = str(len(body))
    return response


def _collection(members: list[Any]) -> dict[str, Any]:
    return MemberCollectionResponseSchema(
        items=[MemberSummarySchema.model_validate(member) for member in members],
        total=len(members),
    ).model_dump(mode="json")


@members_bp.route("", methods=["GET"])
@api.validate(query=MemberListQuerySchema, resp=SpectreeResponse(HTTP_200=MemberListResponseSchema))
@inject
def list_members(
    member_service: MemberService = Provide[ServiceContainer.member_service],
):
    """List members with search, filters, sorting and pagination."""
    query = MemberListQuerySchema.model_validate(request.args.to_dict())
    page = member_service.list_members(**query.model_dump())
    return MemberListResponseSchema(
        items=[MemberResponseSchema.model_validate(member) for member in page.items],
        total=page.total,
        page=page.page,
        per_page=page.per_page,
        last_page=page.last_page,
    ).model_dump(mode="json")


@members_bp.route("", methods=["POST"])
@api.validate(json=MemberCreateSchema, resp=SpectreeResponse(HTTP_201=MemberResponseSchema))
@inject
def create_member(
    member_service: MemberService = Provide[ServiceContainer.member_service],
):
    """Register a new member."""
    data = MemberCreateSchema(**request.get_json())
    member = member_service.create(data.model_dump())
    return member_response(member), 201


@members_bp.route("/<int:member_id>", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=MemberResponseSchema))
@inject
def get_member(
    member_id: int,
    member_service: MemberService = Provide[ServiceContainer.member_service],
):
    """Get a member by ID."""
    return member_response(member_service.get_by_id(member_id))


@members_bp.route("/<int:member_id>", methods=["PUT"])
@api.validate(json=MemberUpdateSchema, resp=SpectreeResponse(HTTP_200=MemberResponseSchema))
@inject
def update_member(
    member_id: int,
    member_service: MemberService = Provide[ServiceContainer.member_service],
):
    """Update the supplied fields of a member."""
    data = MemberUpdateSchema(**request.get_json())
    member = member_service.update(member_id, data.model_dump(exclude_unset=True))
    return member_response(member)


@members_bp.route("/<int:member_id>", methods=["DELETE"])
@inject
def delete_member(
    member_id: int,
    member_service: MemberService = Provide[ServiceContainer.member_service],
):
    """Delete a member with their sacraments and tithes."""
    member_service.delete(member_id)
    return "", 204


@members_bp.route("/<int:member_id>/toggle-status", methods=["POST"])
@api.validate(resp=SpectreeResponse(HTTP_200=MemberResponseSchema))
@inject
def toggle_member_status(
    member_id: int,
    member_service: MemberService = Provide[ServiceContainer.member_service],
):
    """Switch a member between active and inactive."""
    return member_response(member_service.toggle_status(member_id))


@members_bp.route("/<int:member_id>/status", methods=["PUT"])
@api.validate(json=MemberStatusUpdateSchema, resp=SpectreeResponse(HTTP_200=MemberResponseSchema))
@inject
def set_member_status(
    member_id: int,
    member_service: MemberService = Provide[ServiceContainer.member_service],
):
    """Set a member's membership status."""
    data = MemberStatusUpdateSchema(**request.get_json())
    return member_response(member_service.set_status(member_id, data.status))


@members_bp.route("/bulk-delete", methods=["POST"])
@api.validate(json=MemberBulkDeleteSchema, resp=SpectreeResponse(HTTP_200=MemberBulkDeleteResponseSchema))
@inject
def bulk_delete_members(
    member_service: MemberService = Provide[ServiceContainer.member_service],
):
    """Delete several members; fails without deleting anything if one is missing."""
    data = MemberBulkDeleteSchema(**request.get_json())
    deleted = member_service.bulk_delete(data.member_ids)
    return MemberBulkDeleteResponseSchema(deleted=deleted).model_dump()


@members_bp.route("/search", methods=["GET"])
@api.validate(query=MemberSearchQuerySchema, resp=SpectreeResponse(HTTP_200=MemberSearchResponseSchema))
@inject
def search_members(
    member_service: MemberService = Provide[ServiceContainer.member_service],
):
    """Quick search returning up to ten members."""
    query = MemberSearchQuerySchema.model_validate(request.args.to_dict())
    return MemberSearchResponseSchema(results=member_service.quick_search(query.q)).model_dump()


@members_bp.route("/church/<string:church>", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=MemberCollectionResponseSchema))
@inject
def members_by_church(
    church: str,
    member_service: MemberService = Provide[ServiceContainer.member_service],
):
    """Members of one local church."""
    return _collection(member_service.get_by_church(church))


@members_bp.route("/group/<string:group>", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=MemberCollectionResponseSchema))
@inject
def members_by_group(
    group: str,
    member_service: MemberService = Provide[ServiceContainer.member_service],
):
    """Members of one church group."""
    return _collection(member_service.get_by_group(group))


@members_bp.route("/statistics", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=MemberStatisticsResponseSchema))
@inject
def member_statistics(
    member_service: MemberService = Provide[ServiceContainer.member_service],
):
    """Member counts overall and by church, group and status."""
    return MemberStatisticsResponseSchema(**member_service.get_statistics()).model_dump()


@members_bp.route("/filter-options", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=FilterOptionsResponseSchema))
@inject
def filter_options(
    cache_service: CacheOptimizationService = Provide[ServiceContainer.cache_service],
):
    """Values for the listing filter drop-downs."""
    options = cache_service.get_filter_options()
    return FilterOptionsResponseSchema(
        **options,
        local_churches=list(LOCAL_CHURCHES),
        church_groups=list(CHURCH_GROUPS),
    ).model_dump()


@members_bp.route("/import", methods=["POST"])
@api.validate(resp=SpectreeResponse(HTTP_200=MemberImportResponseSchema))
@inject
def import_members(
    import_service: MemberImportService = Provide[ServiceContainer.member_import_service],
):
    """Import members from an uploaded CSV file.

    Form fields: ``file`` plus the optional flags ``update_existing``,
    ``skip_duplicates`` (default true) and ``validate_families``.
    """
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        raise ImportFailedException("No file was uploaded.")

    result = import_service.import_file(
        upload.filename,
        upload.read(),
        update_existing=_form_flag("update_existing", False),
        skip_duplicates=_form_flag("skip_duplicates", True),
        validate_families=_form_flag("validate_families", False),
    )
    return MemberImportResponseSchema(
        success=True,
        message=result.message,
        imported=result.imported,
        updated=result.updated,
        skipped=result.skipped,
        errors=result.errors,
        warnings=result.warnings,
        total_processed=result.total_processed,
    ).model_dump()


@members_bp.route("/import/template", methods=["GET"])
def import_template() -> Any:
    """Download the CSV import template."""
    return _download(
        MemberImportService.template_csv(),
        "members_import_template.csv",
        "text/csv; charset=utf-8",
    )


@members_bp.route("/export", methods=["GET"])
@api.validate(query=MemberExportQuerySchema)
@inject
def export_members(
    export_service: MemberExportService = Provide[ServiceContainer.member_export_service],
) -> Any:
    """Download the filtered members as CSV."""
    query = MemberExportQuerySchema.model_validate(request.args.to_dict())
    export = export_service.export(
        query.filters(),
        selected_fields=query.selected_fields(),
        export_format=query.format,
    )
    return _download(export.content, export.filename, export.mimetype)


@members_bp.route("/export/preview", methods=["GET"])
@api.validate(query=MemberExportQuerySchema, resp=SpectreeResponse(HTTP_200=ExportPreviewResponseSchema))
@inject
def export_preview(
    export_service: MemberExportService = Provide[ServiceContainer.member_export_service],
):
    """The first ten members an export would contain."""
    query = MemberExportQuerySchema.model_validate(request.args.to_dict())
    return ExportPreviewResponseSchema(**export_service.preview(query.filters())).model_dump()
