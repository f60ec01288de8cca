"""Member export service producing filtered CSV downloads and previews."""

import csv
import io
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from parish.exceptions import ExportFailedException, ValidationException
from parish.models.family import Family
from parish.models.member import Member
from parish.services.dialect_service import DatabaseCompatibilityService
from parish.services.member_service import (
    apply_member_search,
    validate_sort_direction,
    validate_sort_field,
)

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("csv",)

FIELD_LABELS = {
    "id": "ID",
    "first_name": "First Name",
    "middle_name": "Middle Name",
    "last_name": "Last Name",
    "full_name": "Full Name",
    "date_of_birth": "Date of Birth",
    "age": "Age",
    "gender": "Gender",
    "id_number": "ID Number",
    "phone": "Phone",
    "email": "Email",
    "residence": "Residence",
    "emergency_contact": "Emergency Contact",
    "emergency_phone": "Emergency Phone",
    "is_differently_abled": "Differently Abled",
    "disability_description": "Disability Description",
    "local_church": "Local Church",
    "church_group": "Church Group",
    "small_christian_community": "Small Christian Community",
    "membership_status": "Membership Status",
    "membership_date": "Membership Date",
    "baptism_date": "Baptism Date",
    "confirmation_date": "Confirmation Date",
    "matrimony_status": "Matrimony Status",
    "marriage_type": "Marriage Type",
    "occupation": "Occupation",
    "education_level": "Education Level",
    "family_name": "Family Name",
    "family_head": "Family Head",
    "parent": "Parent",
    "sponsor": "Sponsor",
    "minister": "Minister",
    "tribe": "Tribe",
    "clan": "Clan",
    "notes": "Notes",
    "created_at": "Created At",
    "updated_at": "Updated At",
}

DEFAULT_FIELDS = (
    "id",
    "first_name",
    "last_name",
    "date_of_birth",
    "gender",
    "phone",
    "email",
    "local_church",
    "church_group",
    "membership_status",
    "membership_date",
    "created_at",
)

DATE_FORMATS = {
    "Y-m-d": "%Y-%m-%d",
    "d/m/Y": "%d/%m/%Y",
    "m/d/Y": "%m/%d/%Y",
}

# Inclusive age bounds; None means no upper bound
EXPORT_AGE_GROUPS = {
    "children": (0, 12),
    "0-12": (0, 12),
    "youth": (13, 24),
    "13-24": (13, 24),
    "young_adults": (18, 30),
    "18-30": (18, 30),
    "adults": (25, 59),
    "25-59": (25, 59),
    "31-50": (25, 59),
    "middle_aged": (51, 70),
    "51-70": (51, 70),
    "seniors": (60, None),
    "60+": (60, None),
    "70+": (60, None),
    "elderly": (70, None),
}

DATE_RANGES = ("all", "this_year", "last_year", "last_6_months", "last_30_days", "custom")

PREVIEW_LIMIT = 10

_AGE_RANGE = re.compile(r"^(\d+)-(\d+)$")
_AGE_MIN_ONLY = re.compile(r"^(\d+)\+$")
_PHONE_CHARS = re.compile(r"^[+\-()\s\d]+$")

_DATE_FIELDS = (
    "date_of_birth",
    "membership_date",
    "baptism_date",
    "confirmation_date",
    "created_at",
    "updated_at",
)


def months_before(reference: datetime, months: int) -> datetime:
    """``reference`` shifted back by calendar months, clamped to the month's end."""
    month_index = reference.year * 12 + reference.month - 1 - months
    year, month = divmod(month_index, 12)
    month += 1
    day = reference.day
    while True:
        try:
            return reference.replace(year=year, month=month, day=day)
        except ValueError:
            day -= 1


def resolve_age_group(age_group: str) -> tuple[int, int | None] | None:
    """Inclusive (min, max) bounds for a named group, ``N-M`` or ``N+``."""
    if age_group in EXPORT_AGE_GROUPS:
        return EXPORT_AGE_GROUPS[age_group]
    match = _AGE_RANGE.match(age_group)
    if match:
        return int(match.group(1)), int(match.group(2))
    match = _AGE_MIN_ONLY.match(age_group)
    if match:
        return int(match.group(1)), None
    return None


def _flag(value: Any) -> bool | None:
    if value is True or value == "true":
        return True
    if value is False or value == "false":
        return False
    return None


def format_phone_as_text(phone: str | None) -> str:
    """Prefix phone numbers with ``'`` so spreadsheets keep them as text."""
    if not phone:
        return ""
    phone = phone.strip()
    if _PHONE_CHARS.match(phone):
        return "'" + phone
    return phone


@dataclass
class ExportFile:
    """A rendered export ready to be sent as a download."""

    filename: str
    content: str
    row_count: int
    mimetype: str = "text/csv; charset=utf-8"


class MemberExportService:
    """Builds filtered member exports."""

    def __init__(self, db: Session, dialect: DatabaseCompatibilityService):
        self.db = db
        self.dialect = dialect

    def _age_clause(self, operator_sql: str, **params: int) -> Any:
        age_sql = self.dialect.age_in_years("members.date_of_birth")
        return text(f"{age_sql} {operator_sql}").bindparams(**params)

    def build_query(self, filters: dict[str, Any], now: datetime | None = None) -> Query:
        """Member query with every export filter, ordering and limit applied."""
        now = now or datetime.now()
        query = self.db.query(Member).options(
            joinedload(Member.family).joinedload(Family.head_of_family)
        )

        search = (filters.get("search") or "").strip()
        if search:
            query = apply_member_search(query, search)

        for field in (
            "local_church",
            "church_group",
            "small_christian_community",
            "membership_status",
            "gender",
            "education_level",
            "tribe",
            "matrimony_status",
            "marriage_type",
        ):
            value = filters.get(field)
            if value:
                query = query.filter(getattr(Member, field) == value)

        if filters.get("occupation"):
            query = query.filter(Member.occupation.ilike(f"%{filters['occupation']}%"))

        if filters.get("age_min"):
            query = query.filter(self._age_clause(">= :age_min", age_min=int(filters["age_min"])))
        if filters.get("age_max"):
            query = query.filter(self._age_clause("<= :age_max", age_max=int(filters["age_max"])))
        if filters.get("age_group"):
            bounds = resolve_age_group(filters["age_group"])
            if bounds is not None:
                group_min, group_max = bounds
                if group_max is None:
                    query = query.filter(self._age_clause(">= :group_min", group_min=group_min))
                else:
                    query = query.filter(
                        self._age_clause(
                            "BETWEEN :group_min AND :group_max",
                            group_min=group_min,
                            group_max=group_max,
                        )
                    )

        has_baptism = _flag(filters.get("has_baptism"))
        if has_baptism is True:
            query = query.filter(Member.baptism_date.isnot(None))
        elif has_baptism is False:
            query = query.filter(Member.baptism_date.is_(None))

        has_confirmation = _flag(filters.get("has_confirmation"))
        if has_confirmation is True:
            query = query.filter(Member.confirmation_date.isnot(None))
        elif has_confirmation is False:
            query = query.filter(Member.confirmation_date.is_(None))

        query = self._apply_date_range(query, filters, now)

        column = getattr(Member, validate_sort_field(filters.get("sort_by")))
        direction = validate_sort_direction(filters.get("sort_direction"))
        query = query.order_by(column.desc() if direction == "desc" else column.asc(), Member.id)

        limit = filters.get("limit")
        if limit is not None and str(limit).isdigit() and int(limit) > 0:
            query = query.limit(int(limit))

        return query

    @staticmethod
    def _apply_date_range(query: Query, filters: dict[str, Any], now: datetime) -> Query:
        date_range = filters.get("date_range") or "all"
        start_of_year = datetime(now.year, 1, 1)

        if date_range == "this_year":
            query = query.filter(
                Member.created_at >= start_of_year,
                Member.created_at < datetime(now.year + 1, 1, 1),
            )
        elif date_range == "last_year":
            query = query.filter(
                Member.created_at >= datetime(now.year - 1, 1, 1),
                Member.created_at < start_of_year,
            )
        elif date_range == "last_6_months":
            query = query.filter(Member.created_at >= months_before(now, 6))
        elif date_range == "last_30_days":
            query = query.filter(Member.created_at >= now - timedelta(days=30))
        elif date_range == "custom":
            start_date: date | None = filters.get("start_date")
            end_date: date | None = filters.get("end_date")
            if start_date:
                query = query.filter(
                    Member.created_at >= datetime.combine(start_date, datetime.min.time())
                )
            if end_date:
                query = query.filter(
                    Member.created_at
                    < datetime.combine(end_date + timedelta(days=1), datetime.min.time())
                )
        return query

    @staticmethod
    def resolve_fields(selected_fields: list[str] | None) -> list[str]:
        if not selected_fields:
            return list(DEFAULT_FIELDS)
        unknown = [field for field in selected_fields if field not in FIELD_LABELS]
        if unknown:
            raise ValidationException(f"Unknown export fields: {', '.join(unknown)}")
        return list(selected_fields)

    @staticmethod
    def headings(fields: list[str]) -> list[str]:
        return [FIELD_LABELS[field] for field in fields]

    def field_value(
        self,
        member: Member,
        field: str,
        date_format: str = "Y-m-d",
        today: date | None = None,
    ) -> str:
        """Text rendering of one export column for ``member``."""
        if field in _DATE_FIELDS:
            value = getattr(member, field)
            if value is None:
                return ""
            return value.strftime(DATE_FORMATS.get(date_format, DATE_FORMATS["Y-m-d"]))
        if field == "full_name":
            return member.full_name
        if field == "age":
            age = member.age_on(today or date.today())
            return "" if age is None else f"{age} years"
        if field == "is_differently_abled":
            return "Yes" if member.is_differently_abled else "No"
        if field == "family_name":
            return member.family.family_name if member.family else ""
        if field == "family_head":
            family = member.family
            if family is None or family.head_of_family is None:
                return ""
            return family.head_of_family.full_name

        value = getattr(member, field)
        return "" if value is None else str(value)

    def export(
        self,
        filters: dict[str, Any],
        selected_fields: list[str] | None = None,
        export_format: str = "csv",
        now: datetime | None = None,
    ) -> ExportFile:
        """Render the filtered members as a CSV download."""
        if export_format not in EXPORT_FORMATS:
            raise ValidationException("Invalid export format")

        now = now or datetime.now()
        fields = self.resolve_fields(selected_fields)
        use_defaults = not selected_fields
        date_format = filters.get("date_format") or "Y-m-d"

        try:
            members = self.build_query(filters, now).all()
        except SQLAlchemyError as e:
            logger.error("Member export query failed: %s", e)
            raise ExportFailedException(str(e)) from e

        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(self.headings(fields))
        for member in members:
            row = []
            for field in fields:
                if use_defaults and field == "phone":
                    row.append(format_phone_as_text(member.phone))
                else:
                    row.append(self.field_value(member, field, date_format, now.date()))
            writer.writerow(row)

        filename = f"members_export_{now:%Y-%m-%d_%H-%M-%S}.csv"
        logger.info("Member export generated: %s (%d rows)", filename, len(members))
        return ExportFile(filename=filename, content=buffer.getvalue(), row_count=len(members))

    def preview(self, filters: dict[str, Any], now: datetime | None = None) -> dict[str, Any]:
        """The first few matching members and the total match count."""
        now = now or datetime.now()
        try:
            query = self.build_query({**filters, "limit": None}, now)
            total_count = query.order_by(None).count()
            members = query.limit(PREVIEW_LIMIT).all()
        except SQLAlchemyError as e:
            logger.error("Export preview failed: %s", e)
            raise ExportFailedException(str(e)) from e

        return {
            "preview_data": [
                {
                    "id": member.id,
                    "full_name": member.full_name,
                    "age": member.age_on(now.date()),
                    "gender": member.gender,
                    "church_group": member.church_group,
                    "membership_status": member.membership_status,
                    "local_church": member.local_church,
                    "phone": member.phone,
                    "email": member.email,
                    "family_name": member.family.family_name if member.family else None,
                }
                for member in members
            ],
            "showing": min(PREVIEW_LIMIT, total_count),
            "total_count": total_count,
        }
