"""Member API schemas."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from parish.consts import (
    CHURCH_GROUPS,
    EDUCATION_LEVELS,
    GENDERS,
    LOCAL_CHURCHES,
    MARRIAGE_TYPES,
    MATRIMONY_STATUSES,
    MEMBERSHIP_STATUSES,
)


def _check_choice(value: str | None, choices: tuple[str, ...], label: str) -> str | None:
    if value is None:
        return value
    if value not in choices:
        raise ValueError(f"{label} must be one of: {', '.join(choices)}")
    return value


def reject_null(value: Any) -> Any:
    """Reject an explicit null for a column that cannot be cleared."""
    if value is None:
        raise ValueError("This field cannot be null")
    return value


class MemberFieldsSchema(BaseModel):
    """Every member attribute, all optional."""

    # Personal
    first_name: str | None = Field(None, max_length=100, description="First name")
    middle_name: str | None = Field(None, max_length=100, description="Middle name")
    last_name: str | None = Field(None, max_length=100, description="Last name")
    date_of_birth: date | None = Field(None, description="Date of birth")
    gender: str | None = Field(None, description="Male or Female", examples=["Female"])
    id_number: str | None = Field(None, max_length=50, description="National ID number")

    # Contact
    phone: str | None = Field(None, max_length=20, description="Phone number")
    email: str | None = Field(None, max_length=255, description="Email address")
    residence: str | None = Field(None, description="Place of residence")
    emergency_contact: str | None = Field(None, max_length=200)
    emergency_phone: str | None = Field(None, max_length=20)

    # Church
    local_church: str | None = Field(None, description="Local church", examples=["St James Kangemi"])
    small_christian_community: str | None = Field(None, max_length=150)
    church_group: str | None = Field(None, description="Church group", examples=["Youth"])
    membership_status: str | None = Field(None, description="Membership status")
    membership_date: date | None = None
    matrimony_status: str | None = None
    marriage_type: str | None = None
    is_differently_abled: bool | None = None
    disability_description: str | None = None
    occupation: str | None = Field(None, max_length=150)
    education_level: str | None = None
    family_id: int | None = Field(None, description="Family the member belongs to")
    tribe: str | None = Field(None, max_length=100)
    clan: str | None = Field(None, max_length=100)

    # Data-entry names
    parent: str | None = None
    mother_name: str | None = None
    godparent: str | None = None
    minister: str | None = None
    birth_village: str | None = None
    county: str | None = None

    # Sacraments
    baptism_date: date | None = None
    baptism_location: str | None = None
    baptized_by: str | None = None
    sponsor: str | None = None
    father_name: str | None = None
    confirmation_date: date | None = None
    confirmation_location: str | None = None
    eucharist_date: date | None = None
    eucharist_location: str | None = None

    # Marriage
    marriage_date: date | None = None
    marriage_location: str | None = None
    marriage_county: str | None = None
    marriage_sub_county: str | None = None
    marriage_entry_number: str | None = None
    marriage_certificate_number: str | None = None
    marriage_religion: str | None = None
    marriage_license_number: str | None = None
    marriage_officiant_name: str | None = None
    marriage_witness1_name: str | None = None
    marriage_witness2_name: str | None = None
    sub_county: str | None = None
    entry_number: str | None = None
    certificate_number: str | None = None
    religion: str | None = None
    license_number: str | None = None
    officiant_name: str | None = None
    witness1_name: str | None = None
    witness2_name: str | None = None

    # Spouse
    spouse_name: str | None = None
    spouse_age: int | None = Field(None, ge=0, le=150)
    spouse_occupation: str | None = None
    spouse_county: str | None = None
    spouse_father_name: str | None = None
    spouse_mother_name: str | None = None
    spouse_father_occupation: str | None = None
    spouse_mother_occupation: str | None = None

    # Certificate parties
    husband_name: str | None = None
    husband_age: int | None = Field(None, ge=0, le=150)
    husband_occupation: str | None = None
    husband_county: str | None = None
    husband_father_name: str | None = None
    husband_mother_name: str | None = None
    husband_father_occupation: str | None = None
    husband_mother_occupation: str | None = None
    wife_name: str | None = None
    wife_age: int | None = Field(None, ge=0, le=150)
    wife_occupation: str | None = None
    wife_county: str | None = None
    wife_father_name: str | None = None
    wife_mother_name: str | None = None
    wife_father_occupation: str | None = None
    wife_mother_occupation: str | None = None

    # Witnesses, banns and officiation
    witness_1_name: str | None = None
    witness_2_name: str | None = None
    banns_number: str | None = None
    presence_of: str | None = None
    civil_marriage_certificate_number: str | None = None
    male_witness_full_name: str | None = None
    male_witness_father: str | None = None
    female_witness_full_name: str | None = None
    female_witness_father: str | None = None

    notes: str | None = None


class MemberInputSchema(MemberFieldsSchema):
    """Validation shared by member create and update requests."""

    @field_validator("gender")
    @classmethod
    def normalize_gender(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip().capitalize()
        return _check_choice(value, GENDERS, "Gender")

    @field_validator("local_church")
    @classmethod
    def check_local_church(cls, value: str | None) -> str | None:
        return _check_choice(value, LOCAL_CHURCHES, "Local church")

    @field_validator("church_group")
    @classmethod
    def check_church_group(cls, value: str | None) -> str | None:
        return _check_choice(value, CHURCH_GROUPS, "Church group")

    @field_validator("membership_status")
    @classmethod
    def check_membership_status(cls, value: str | None) -> str | None:
        return _check_choice(value, MEMBERSHIP_STATUSES, "Membership status")

    @field_validator("matrimony_status")
    @classmethod
    def check_matrimony_status(cls, value: str | None) -> str | None:
        return _check_choice(value, MATRIMONY_STATUSES, "Matrimony status")

    @field_validator("marriage_type")
    @classmethod
    def check_marriage_type(cls, value: str | None) -> str | None:
        return _check_choice(value, MARRIAGE_TYPES, "Marriage type")

    @field_validator("education_level")
    @classmethod
    def check_education_level(cls, value: str | None) -> str | None:
        return _check_choice(value, EDUCATION_LEVELS, "Education level")

    @field_validator("date_of_birth")
    @classmethod
    def check_date_of_birth(cls, value: date | None) -> date | None:
        if value is not None and value >= date.today():
            raise ValueError("Date of birth must be before today")
        return value

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip().lower()
        if value and ("@" not in value or "." not in value.split("@")[-1]):
            raise ValueError("Email must be a valid email address")
        return value


class MemberCreateSchema(MemberInputSchema):
    """Schema for creating a member."""

    first_name: str = Field(..., min_length=1, max_length=100, description="First name")
    last_name: str = Field(..., min_length=1, max_length=100, description="Last name")
    gender: str = Field(..., description="Male or Female", examples=["Female"])
    local_church: str = Field(..., description="Local church", examples=["St James Kangemi"])
    church_group: str = Field(..., description="Church group", examples=["Youth"])
    is_differently_abled: bool = False


class MemberUpdateSchema(MemberInputSchema):
    """Schema for updating a member; only the supplied fields change."""

    first_name: str | None = Field(None, min_length=1, max_length=100, description="First name")
    last_name: str | None = Field(None, min_length=1, max_length=100, description="Last name")

    @field_validator(
        "first_name",
        "last_name",
        "gender",
        "local_church",
        "church_group",
        "membership_status",
        "is_differently_abled",
    )
    @classmethod
    def check_required_columns(cls, value: Any) -> Any:
        return reject_null(value)


class MemberResponseSchema(MemberFieldsSchema):
    """Schema for member responses."""

    id: int
    first_name: str
    last_name: str
    gender: str
    local_church: str
    church_group: str
    membership_status: str
    full_name: str
    age: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class MemberSummarySchema(BaseModel):
    """Short member representation used in nested responses."""

    id: int
    full_name: str
    gender: str
    local_church: str
    church_group: str
    membership_status: str
    phone: str | None = None
    email: str | None = None

    model_config = ConfigDict(from_attributes=True)


class MemberListQuerySchema(BaseModel):
    """Query parameters for the member listing."""

    search: str | None = Field(None, description="Name, phone, email or ID number fragment")
    local_church: str | None = None
    church_group: str | None = None
    membership_status: str | None = None
    gender: str | None = None
    age_group: str | None = Field(None, description="children, youth, adults or seniors")
    sort: str | None = Field(None, description="Sort column", examples=["last_name"])
    direction: str | None = Field(None, description="asc or desc")
    page: int = Field(1, ge=1)
    per_page: int = Field(15, ge=1, le=100)


class MemberListResponseSchema(BaseModel):
    """Schema for one page of members."""

    items: list[MemberResponseSchema]
    total: int
    page: int
    per_page: int
    last_page: int


class MemberSearchQuerySchema(BaseModel):
    """Query parameters for the quick search."""

    q: str = Field(..., min_length=1, description="Search term")


class MemberSearchResultSchema(BaseModel):
    """A quick search hit."""

    id: int
    full_name: str
    phone: str | None = None
    email: str | None = None
    local_church: str | None = None
    church_group: str | None = None


class MemberSearchResponseSchema(BaseModel):
    """Schema for quick search results."""

    results: list[MemberSearchResultSchema]


class MemberCollectionResponseSchema(BaseModel):
    """Schema for unpaginated member lists."""

    items: list[MemberSummarySchema]
    total: int


class MemberStatusUpdateSchema(BaseModel):
    """Schema for setting a membership status."""

    status: str = Field(..., description="New membership status", examples=["transferred"])


class MemberBulkDeleteSchema(BaseModel):
    """Schema for deleting several members at once."""

    member_ids: list[int] = Field(..., min_length=1, description="Member ids to delete")


class MemberBulkDeleteResponseSchema(BaseModel):
    """Schema for bulk delete results."""

    deleted: int = Field(..., description="Number of members deleted")


class MemberStatisticsResponseSchema(BaseModel):
    """Schema for member statistics."""

    total: int
    active: int
    by_church: dict[str, int]
    by_group: dict[str, int]
    by_status: dict[str, int]


class FilterOptionsResponseSchema(BaseModel):
    """Schema for listing filter options."""

    churches: list[str]
    groups: list[str]
    statuses: list[str]
    local_churches: list[str] = Field(default_factory=list, description="All configured churches")
    church_groups: list[str] = Field(default_factory=list, description="All configured groups")


def member_response(member: Any) -> dict[str, Any]:
    return MemberResponseSchema.model_validate(member).model_dump(mode="json")
