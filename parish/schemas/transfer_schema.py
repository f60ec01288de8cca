"""Member import and export schemas."""

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field


class MemberImportResponseSchema(BaseModel):
    """Schema for member import results."""

    success: bool = Field(..., description="Whether the import ran to completion")
    message: str = Field(..., examples=["Import completed: 2 imported, 1 skipped"])
    imported: int
    updated: int
    skipped: int
    errors: list[str]
    warnings: list[str]
    total_processed: int


class MemberExportQuerySchema(BaseModel):
    """Filters, columns and formatting for a member export."""

    format: str = Field("csv", description="Export format; only csv is supported")
    search: str | None = None
    local_church: str | None = None
    church_group: str | None = None
    small_christian_community: str | None = None
    membership_status: str | None = None
    gender: str | None = None
    education_level: str | None = None
    occupation: str | None = Field(None, description="Occupation fragment")
    tribe: str | None = None
    matrimony_status: str | None = None
    marriage_type: str | None = None
    age_min: int | None = Field(None, ge=0)
    age_max: int | None = Field(None, ge=0)
    age_group: str | None = Field(None, description="Named group, N-M or N+", examples=["youth", "25-40", "60+"])
    has_baptism: bool | None = None
    has_confirmation: bool | None = None
    date_range: Literal[
        "all", "this_year", "last_year", "last_6_months", "last_30_days", "custom"
    ] = "all"
    start_date: date | None = Field(None, description="Start of a custom registration range")
    end_date: date | None = Field(None, description="End of a custom registration range")
    sort_by: str | None = Field(None, examples=["last_name"])
    sort_direction: str | None = Field(None, examples=["asc"])
    limit: int | None = Field(None, ge=1)
    date_format: Literal["Y-m-d", "d/m/Y", "m/d/Y"] = "Y-m-d"
    fields: str | None = Field(
        None,
        description="Comma separated export columns; defaults to the standard twelve",
        examples=["first_name,last_name,phone"],
    )

    def filters(self) -> dict:
        return self.model_dump(exclude={"format", "fields"})

    def selected_fields(self) -> list[str]:
        if not self.fields:
            return []
        return [name.strip() for name in self.fields.split(",") if name.strip()]


class ExportPreviewRowSchema(BaseModel):
    """One member in an export preview."""

    id: int
    full_name: str
    age: int | None
    gender: str
    church_group: str
    membership_status: str
    local_church: str
    phone: str | None
    email: str | None
    family_name: str | None


class ExportPreviewResponseSchema(BaseModel):
    """Schema for export previews."""

    preview_data: list[ExportPreviewRowSchema]
    showing: int
    total_count: int
