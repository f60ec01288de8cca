"""Member service for CRUD, listing and status operations."""

import logging
from dataclasses import dataclass
from datetime import date
from math import ceil
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from parish.consts import AGE_GROUPS, MEMBERSHIP_STATUSES
from parish.exceptions import (
    RecordNotFoundException,
    ResourceConflictException,
    ValidationException,
)
from parish.models.family import Family
from parish.models.member import Member
from parish.services.cache_service import CacheOptimizationService
from parish.utils.member_field_sync import sync_derived_fields

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = (
    "id",
    "first_name",
    "middle_name",
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
    "updated_at",
)

DEFAULT_SORT_COLUMN = "last_name"
DEFAULT_PER_PAGE = 15
MAX_PER_PAGE = 100
QUICK_SEARCH_LIMIT = 10

_INJECTION_MARKERS = ("function", "[native code]", "()")


def validate_sort_field(field: str | None) -> str:
    """Whitelisted sort column, ``last_name`` for anything unexpected."""
    if not field:
        return DEFAULT_SORT_COLUMN
    if any(marker in field for marker in _INJECTION_MARKERS):
        logger.warning("Potential function injection detected in sort field: %r", field)
        return DEFAULT_SORT_COLUMN
    return field if field in SORTABLE_COLUMNS else DEFAULT_SORT_COLUMN


def validate_sort_direction(direction: str | None) -> str:
    direction = (direction or "").lower()
    return direction if direction in ("asc", "desc") else "asc"


def years_before(reference: date, years: int) -> date:
    """``reference`` shifted back by whole years; 29 February becomes the 28th."""
    try:
        return reference.replace(year=reference.year - years)
    except ValueError:
        return reference.replace(year=reference.year - years, day=28)


def apply_member_search(query: Query, search: str) -> Query:
    """Restrict ``query`` to members matching ``search`` in names or contact fields."""
    pattern = f"%{search}%"
    first_last = Member.first_name + " " + Member.last_name
    first_middle_last = (
        Member.first_name + " " + func.coalesce(Member.middle_name, "") + " " + Member.last_name
    )
    return query.filter(
        or_(
            Member.first_name.ilike(pattern),
            Member.last_name.ilike(pattern),
            Member.middle_name.ilike(pattern),
            Member.phone.ilike(pattern),
            Member.email.ilike(pattern),
            Member.id_number.ilike(pattern),
            first_last.ilike(pattern),
            first_middle_last.ilike(pattern),
        )
    )


def apply_age_group(query: Query, age_group: str, today: date) -> Query:
    """Restrict ``query`` to one of the named listing age groups."""
    if age_group not in AGE_GROUPS:
        return query
    min_age, max_age = AGE_GROUPS[age_group]
    if min_age:
        query = query.filter(Member.date_of_birth <= years_before(today, min_age))
    if max_age is not None:
        query = query.filter(Member.date_of_birth > years_before(today, max_age))
    return query


@dataclass
class MemberPage:
    """One page of a member listing."""

    items: list[Member]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(ceil(self.total / self.per_page), 1)


class MemberService:
    """Service for managing members."""

    def __init__(self, db: Session, cache_service: CacheOptimizationService):
        self.db = db
        self.cache_service = cache_service

    def get_by_id(self, member_id: int) -> Member:
        member = self.db.query(Member).filter(Member.id == member_id).first()
        if not member:
            raise RecordNotFoundException("Member", member_id)
        return member

    def list_members(
        self,
        search: str | None = None,
        local_church: str | None = None,
        church_group: str | None = None,
        membership_status: str | None = None,
        gender: str | None = None,
        age_group: str | None = None,
        sort: str | None = None,
        direction: str | None = None,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
        today: date | None = None,
    ) -> MemberPage:
        """Filtered, sorted and paginated member listing."""
        query = self.db.query(Member)

        if search:
            query = apply_member_search(query, search)
        if local_church:
            query = query.filter(Member.local_church == local_church)
        if church_group:
            query = query.filter(Member.church_group == church_group)
        if membership_status:
            query = query.filter(Member.membership_status == membership_status)
        if gender:
            query = query.filter(func.lower(Member.gender) == gender.lower())
        if age_group:
            query = apply_age_group(query, age_group, today or date.today())

        column = getattr(Member, validate_sort_field(sort))
        order = column.desc() if validate_sort_direction(direction) == "desc" else column.asc()

        per_page = min(max(per_page, 1), MAX_PER_PAGE)
        page = max(page, 1)

        total = query.count()
        items = (
            query.order_by(order, Member.id)
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )
        return MemberPage(items=items, total=total, page=page, per_page=per_page)

    def create(self, data: dict[str, Any]) -> Member:
        """Create a member from validated form data."""
        self._check_unique(data)
        self._check_family(data.get("family_id"))

        member = Member(**data)
        if not member.membership_status:
            member.membership_status = "active"
        sync_derived_fields(member)

        self.db.add(member)
        self.db.flush()

        logger.info("New member created: %s (ID: %d)", member.full_name, member.id)
        self.cache_service.invalidate_member_caches()
        return member

    def update(self, member_id: int, data: dict[str, Any]) -> Member:
        member = self.get_by_id(member_id)
        self._check_unique(data, exclude_id=member.id)
        if "family_id" in data:
            self._check_family(data["family_id"])

        previous_status = member.membership_status
        for key, value in data.items():
            setattr(member, key, value)
        sync_derived_fields(member)
        self.db.flush()

        if member.membership_status != previous_status:
            logger.info(
                "Member status updated: %s from %s to %s",
                member.full_name,
                previous_status,
                member.membership_status,
            )
        self.cache_service.invalidate_member_caches()
        return member

    def delete(self, member_id: int) -> None:
        member = self.get_by_id(member_id)
        self._delete_member(member)
        self.db.flush()
        self.cache_service.invalidate_member_caches()

    def bulk_delete(self, member_ids: list[int]) -> int:
        """Delete all listed members; every id must exist."""
        unique_ids = sorted(set(member_ids))
        if not unique_ids:
            raise ValidationException("At least one member id is required")

        members = self.db.query(Member).filter(Member.id.in_(unique_ids)).all()
        found = {member.id for member in members}
        missing = [member_id for member_id in unique_ids if member_id not in found]
        if missing:
            raise RecordNotFoundException("Member", missing[0])

        for member in members:
            self._delete_member(member)
        self.db.flush()
        self.cache_service.invalidate_member_caches()
        return len(members)

    def _delete_member(self, member: Member) -> None:
        self.db.query(Family).filter(Family.head_of_family_id == member.id).update(
            {Family.head_of_family_id: None}, synchronize_session="fetch"
        )
        logger.info("Member deleted: %s (ID: %d)", member.full_name, member.id)
        self.db.delete(member)

    def toggle_status(self, member_id: int) -> Member:
        """Flip between active and inactive."""
        member = self.get_by_id(member_id)
        new_status = "inactive" if member.membership_status == "active" else "active"
        return self.set_status(member_id, new_status)

    def set_status(self, member_id: int, status: str) -> Member:
        if status not in MEMBERSHIP_STATUSES:
            raise ValidationException(
                f"Membership status must be one of {', '.join(MEMBERSHIP_STATUSES)}"
            )
        member = self.get_by_id(member_id)
        previous_status = member.membership_status
        member.membership_status = status
        self.db.flush()

        logger.info(
            "Member status updated: %s from %s to %s", member.full_name, previous_status, status
        )
        self.cache_service.invalidate_member_caches()
        return member

    def quick_search(self, term: str) -> list[dict[str, Any]]:
        """Up to ten lightweight matches, cached briefly per search term."""
        term = term.strip()
        if not term:
            return []

        def run_search() -> list[dict[str, Any]]:
            members = (
                apply_member_search(self.db.query(Member), term)
                .order_by(Member.last_name, Member.first_name)
                .limit(QUICK_SEARCH_LIMIT)
                .all()
            )
            return [
                {
                    "id": m.id,
                    "full_name": m.full_name,
                    "phone": m.phone,
                    "email": m.email,
                    "local_church": m.local_church,
                    "church_group": m.church_group,
                }
                for m in members
            ]

        return self.cache_service.cache_search_results(f"members:{term.lower()}", run_search)

    def get_by_church(self, church: str) -> list[Member]:
        return (
            self.db.query(Member)
            .filter(Member.local_church == church)
            .order_by(Member.last_name, Member.first_name)
            .all()
        )

    def get_by_group(self, group: str) -> list[Member]:
        return (
            self.db.query(Member)
            .filter(Member.church_group == group)
            .order_by(Member.last_name, Member.first_name)
            .all()
        )

    def get_statistics(self) -> dict[str, Any]:
        def grouped(column: Any) -> dict[str, int]:
            rows = self.db.query(column, func.count(Member.id)).group_by(column).all()
            return {key: count for key, count in rows if key is not None}

        return {
            "total": self.db.query(func.count(Member.id)).scalar() or 0,
            "active": self.db.query(func.count(Member.id))
            .filter(Member.membership_status == "active")
            .scalar() or 0,
            "by_church": grouped(Member.local_church),
            "by_group": grouped(Member.church_group),
            "by_status": grouped(Member.membership_status),
        }

    def get_married_members(self) -> list[Member]:
        """Members eligible for a marriage certificate check."""
        return (
            self.db.query(Member)
            .filter(
                or_(
                    Member.matrimony_status == "married",
                    Member.marriage_date.isnot(None),
                    Member.spouse_name.isnot(None),
                    Member.husband_name.isnot(None),
                    Member.wife_name.isnot(None),
                )
            )
            .order_by(Member.id)
            .all()
        )

    def _check_unique(self, data: dict[str, Any], exclude_id: int | None = None) -> None:
        for field in ("id_number", "email"):
            value = data.get(field)
            if not value:
                continue
            query = self.db.query(Member.id).filter(getattr(Member, field) == value)
            if exclude_id is not None:
                query = query.filter(Member.id != exclude_id)
            if query.first():
                raise ResourceConflictException("Member", f"{field.replace('_', ' ')} {value}")

    def _check_family(self, family_id: int | None) -> None:
        if family_id is None:
            return
        if not self.db.query(Family.id).filter(Family.id == family_id).first():
            raise RecordNotFoundException("Family", family_id)
