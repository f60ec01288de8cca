"""Tithe API schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from parish.schemas.member_schema import reject_null

TitheType = Literal[
    "tithe",
    "offering",
    "special_collection",
    "donation",
    "thanksgiving",
    "project_contribution",
]
PaymentMethod = Literal["cash", "check", "mobile_money", "bank_transfer", "card"]


class TitheCreateSchema(BaseModel):
    """Schema for recording a contribution."""

    member_id: int = Field(..., description="Contributing member")
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2, description="Amount given")
    tithe_type: TitheType = Field("tithe", description="Contribution type")
    payment_method: PaymentMethod = Field("cash", description="Payment method")
    date_given: date = Field(..., description="Date of the contribution")
    purpose: str | None = Field(None, max_length=255)
    receipt_number: str | None = Field(None, max_length=50, description="Unique receipt number")
    reference_number: str | None = Field(None, max_length=100, description="Payment reference")
    notes: str | None = None


class TitheUpdateSchema(BaseModel):
    """Schema for updating a contribution."""

    member_id: int | None = None
    amount: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    tithe_type: TitheType | None = None
    payment_method: PaymentMethod | None = None
    date_given: date | None = None
    purpose: str | None = Field(None, max_length=255)
    receipt_number: str | None = Field(None, max_length=50)
    reference_number: str | None = Field(None, max_length=100)
    notes: str | None = None

    @field_validator("member_id", "amount", "tithe_type", "payment_method", "date_given")
    @classmethod
    def check_required_columns(cls, value: Any) -> Any:
        return reject_null(value)


class TitheResponseSchema(BaseModel):
    """Schema for tithe responses."""

    id: int
    member_id: int
    amount: Decimal
    tithe_type: str
    payment_method: str
    date_given: date
    purpose: str | None
    receipt_number: str | None
    reference_number: str | None
    notes: str | None
    member_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class TitheListQuerySchema(BaseModel):
    """Query parameters for the tithe listing."""

    member_id: int | None = None
    tithe_type: TitheType | None = None
    payment_method: PaymentMethod | None = None
    date_from: date | None = None
    date_to: date | None = None
    search: str | None = Field(None, description="Receipt, reference or member name fragment")


class TitheListResponseSchema(BaseModel):
    """Schema for tithe list responses."""

    items: list[TitheResponseSchema]
    total: int
    total_amount: Decimal


class MemberTithesResponseSchema(BaseModel):
    """Schema for a member's contributions with running totals."""

    member_id: int
    tithes: list[TitheResponseSchema]
    total_amount: Decimal
    this_year: Decimal
    this_month: Decimal


class TitheReportQuerySchema(BaseModel):
    """Query parameters for the contribution report."""

    year: int | None = Field(None, ge=1900, le=2999, description="Report year, default current")
    month: int | None = Field(None, ge=1, le=12, description="Restrict to one month")


class TitheGroupTotalSchema(BaseModel):
    """Total and count for one group of contributions."""

    key: str
    total: Decimal
    count: int


class TitheMonthTotalSchema(BaseModel):
    """Total for one month of the report year."""

    month: int
    total: Decimal


class TitheReportResponseSchema(BaseModel):
    """Schema for the contribution report."""

    year: int
    month: int | None
    total_amount: Decimal
    total_records: int
    by_type: list[TitheGroupTotalSchema]
    by_method: list[TitheGroupTotalSchema]
    monthly_totals: list[TitheMonthTotalSchema]
