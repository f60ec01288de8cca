"""Activity API schemas."""

from datetime import date, datetime, time
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from parish.schemas.member_schema import reject_null

ActivityType = Literal[
    "mass",
    "meeting",
    "event",
    "workshop",
    "retreat",
    "social",
    "fundraising",
    "community_service",
    "youth",
    "choir",
    "prayer",
    "celebration",
]
ActivityStatus = Literal["planned", "active", "completed", "cancelled", "postponed"]


class ActivityCreateSchema(BaseModel):
    """Schema for creating an activity."""

    title: str = Field(..., min_length=1, max_length=200, description="Activity title")
    description: str | None = None
    activity_type: ActivityType = Field(..., description="Activity type")
    start_date: date = Field(..., description="First day of the activity")
    end_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    location: str | None = Field(None, max_length=200)
    organizer: str | None = Field(None, max_length=200)
    max_participants: int | None = Field(None, ge=1)
    registration_required: bool = False
    registration_deadline: date | None = None
    status: ActivityStatus | None = Field(None, description="Defaults to planned")
    notes: str | None = None


class ActivityUpdateSchema(BaseModel):
    """Schema for updating an activity."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    activity_type: ActivityType | None = None
    start_date: date | None = None
    end_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    location: str | None = Field(None, max_length=200)
    organizer: str | None = Field(None, max_length=200)
    max_participants: int | None = Field(None, ge=1)
    registration_required: bool | None = None
    registration_deadline: date | None = None
    status: ActivityStatus | None = None
    notes: str | None = None

    @field_validator("title", "activity_type", "start_date", "registration_required", "status")
    @classmethod
    def check_required_columns(cls, value: Any) -> Any:
        return reject_null(value)


class ActivityResponseSchema(BaseModel):
    """Schema for activity responses."""

    id: int
    title: str
    description: str | None
    activity_type: str
    start_date: date
    end_date: date | None
    start_time: time | None
    end_time: time | None
    location: str | None
    organizer: str | None
    max_participants: int | None
    registration_required: bool
    registration_deadline: date | None
    status: str
    notes: str | None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ActivityListQuerySchema(BaseModel):
    """Query parameters for the activity listing."""

    activity_type: ActivityType | None = None
    status: ActivityStatus | None = None
    date_from: date | None = None
    date_to: date | None = None
    search: str | None = Field(None, description="Title, description or location fragment")


class ActivitySearchQuerySchema(BaseModel):
    """Query parameters for the activity search."""

    q: str = Field(..., min_length=1, description="Search term")


class ActivityListResponseSchema(BaseModel):
    """Schema for activity list responses."""

    items: list[ActivityResponseSchema]
    total: int


class ActivityStatisticsResponseSchema(BaseModel):
    """Schema for activity statistics."""

    total_activities: int
    upcoming_activities: int
    active_activities: int
    completed_activities: int
    this_month_activities: int
    activities_by_type: dict[str, int]
    activities_by_status: dict[str, int]
