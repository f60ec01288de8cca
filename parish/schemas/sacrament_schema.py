"""Sacrament API schemas."""

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from parish.schemas.member_schema import reject_null

SacramentType = Literal["baptism", "confirmation", "marriage"]


class SacramentCreateSchema(BaseModel):
    """Schema for recording a sacrament."""

    member_id: int = Field(..., description="Member who received the sacrament")
    sacrament_type: SacramentType = Field(..., description="Sacrament type")
    sacrament_date: date = Field(..., description="Date the sacrament was celebrated")
    location: str | None = Field(None, max_length=200)
    celebrant: str | None = Field(None, max_length=200)
    witness_1: str | None = Field(None, max_length=200)
    witness_2: str | None = Field(None, max_length=200)
    godparent_1: str | None = Field(None, max_length=200)
    godparent_2: str | None = Field(None, max_length=200)
    certificate_number: str | None = Field(None, max_length=50)
    book_number: str | None = Field(None, max_length=50)
    page_number: str | None = Field(None, max_length=50)
    notes: str | None = None


class SacramentUpdateSchema(BaseModel):
    """Schema for updating a sacrament record."""

    member_id: int | None = None
    sacrament_type: SacramentType | None = None
    sacrament_date: date | None = None
    location: str | None = Field(None, max_length=200)
    celebrant: str | None = Field(None, max_length=200)
    witness_1: str | None = Field(None, max_length=200)
    witness_2: str | None = Field(None, max_length=200)
    godparent_1: str | None = Field(None, max_length=200)
    godparent_2: str | None = Field(None, max_length=200)
    certificate_number: str | None = Field(None, max_length=50)
    book_number: str | None = Field(None, max_length=50)
    page_number: str | None = Field(None, max_length=50)
    notes: str | None = None

    @field_validator("member_id", "sacrament_type", "sacrament_date")
    @classmethod
    def check_required_columns(cls, value: Any) -> Any:
        return reject_null(value)


class SacramentResponseSchema(BaseModel):
    """Schema for sacrament responses."""

    id: int
    member_id: int
    sacrament_type: str
    sacrament_date: date
    location: str | None
    celebrant: str | None
    witness_1: str | None
    witness_2: str | None
    godparent_1: str | None
    godparent_2: str | None
    certificate_number: str | None
    book_number: str | None
    page_number: str | None
    notes: str | None
    member_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class SacramentListQuerySchema(BaseModel):
    """Query parameters for the sacrament listing."""

    sacrament_type: SacramentType | None = None
    member_id: int | None = None
    date_from: date | None = None
    date_to: date | None = None
    search: str | None = Field(None, description="Celebrant, location or member name fragment")


class SacramentListResponseSchema(BaseModel):
    """Schema for sacrament list responses."""

    items: list[SacramentResponseSchema]
    total: int
