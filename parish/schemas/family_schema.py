"""Family API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from parish.schemas.member_schema import MemberSummarySchema, reject_null


class FamilyCreateSchema(BaseModel):
    """Schema for creating a family."""

    family_name: str = Field(..., min_length=1, max_length=150, description="Family name")
    family_code: str | None = Field(None, max_length=50, description="Unique family code")
    address: str | None = Field(None, description="Postal or physical address")
    phone: str | None = Field(None, max_length=20, description="Family phone number")
    email: str | None = Field(None, max_length=255, description="Family email address")
    deanery: str | None = Field(None, max_length=100)
    parish: str | None = Field(None, max_length=100)
    parish_section: str | None = Field(None, max_length=100)
    head_of_family_id: int | None = Field(None, description="Member heading the family")


class FamilyUpdateSchema(BaseModel):
    """Schema for updating a family."""

    family_name: str | None = Field(None, min_length=1, max_length=150, description="Family name")
    family_code: str | None = Field(None, max_length=50, description="Unique family code")
    address: str | None = None
    phone: str | None = Field(None, max_length=20)
    email: str | None = Field(None, max_length=255)
    deanery: str | None = Field(None, max_length=100)
    parish: str | None = Field(None, max_length=100)
    parish_section: str | None = Field(None, max_length=100)
    head_of_family_id: int | None = None

    @field_validator("family_name")
    @classmethod
    def check_family_name(cls, value: str | None) -> str:
        return reject_null(value)


class FamilyResponseSchema(BaseModel):
    """Schema for family responses."""

    id: int
    family_name: str
    family_code: str | None
    address: str | None
    phone: str | None
    email: str | None
    deanery: str | None
    parish: str | None
    parish_section: str | None
    head_of_family_id: int | None
    member_count: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class FamilyDetailResponseSchema(FamilyResponseSchema):
    """Schema for a family with its members."""

    members: list[MemberSummarySchema]


class FamilyListQuerySchema(BaseModel):
    """Query parameters for the family listing."""

    search: str | None = Field(None, description="Name, code, address or contact fragment")
    parish_section: str | None = None
    deanery: str | None = None


class FamilyListResponseSchema(BaseModel):
    """Schema for family list responses."""

    items: list[FamilyResponseSchema]
    total: int


class FamilyMemberSchema(BaseModel):
    """Schema naming a member to add to a family."""

    member_id: int = Field(..., description="Member id")
