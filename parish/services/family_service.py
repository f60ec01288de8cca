"""Family service for household records and membership."""

import logging
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from parish.exceptions import (
    InvalidOperationException,
    RecordNotFoundException,
    ResourceConflictException,
)
from parish.models.family import Family
from parish.models.member import Member
from parish.services.cache_service import CacheOptimizationService

logger = logging.getLogger(__name__)


class FamilyService:
    """Service for managing families."""

    def __init__(self, db: Session, cache_service: CacheOptimizationService):
        self.db = db
        self.cache_service = cache_service

    def list_families(
        self,
        search: str | None = None,
        parish_section: str | None = None,
        deanery: str | None = None,
    ) -> list[Family]:
        query = self.db.query(Family)

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Family.family_name.ilike(pattern),
                    Family.family_code.ilike(pattern),
                    Family.address.ilike(pattern),
                    Family.phone.ilike(pattern),
                    Family.email.ilike(pattern),
                    Family.parish_section.ilike(pattern),
                    Family.deanery.ilike(pattern),
                    Family.parish.ilike(pattern),
                )
            )
        if parish_section:
            query = query.filter(Family.parish_section == parish_section)
        if deanery:
            query = query.filter(Family.deanery == deanery)

        return query.order_by(Family.family_name, Family.id).all()

    def get_by_id(self, family_id: int) -> Family:
        family = self.db.query(Family).filter(Family.id == family_id).first()
        if not family:
            raise RecordNotFoundException("Family", family_id)
        return family

    def get_by_name(self, family_name: str) -> Family | None:
        return (
            self.db.query(Family)
            .filter(func.lower(Family.family_name) == family_name.strip().lower())
            .first()
        )

    def create(self, data: dict[str, Any]) -> Family:
        """Create a family; the head of family, if given, joins it."""
        self._check_unique(data)
        head = self._get_head(data.get("head_of_family_id"))

        family = Family(**data)
        self.db.add(family)
        self.db.flush()

        if head is not None:
            head.family_id = family.id
            self.db.flush()

        logger.info("Family created: %s (ID: %d)", family.family_name, family.id)
        self.cache_service.invalidate_member_caches()
        return family

    def update(self, family_id: int, data: dict[str, Any]) -> Family:
        family = self.get_by_id(family_id)
        self._check_unique(data, exclude_id=family.id)
        if "head_of_family_id" in data:
            head = self._get_head(data["head_of_family_id"])
            if head is not None and head.family_id is None:
                head.family_id = family.id

        for key, value in data.items():
            setattr(family, key, value)
        self.db.flush()
        self.cache_service.invalidate_member_caches()
        return family

    def delete(self, family_id: int) -> None:
        """Delete a family; its members stay registered without a family."""
        family = self.get_by_id(family_id)
        self.db.query(Member).filter(Member.family_id == family.id).update(
            {Member.family_id: None}, synchronize_session="fetch"
        )
        family.head_of_family_id = None
        self.db.flush()
        self.db.delete(family)
        self.db.flush()

        logger.info("Family deleted: %s (ID: %d)", family.family_name, family_id)
        self.cache_service.invalidate_member_caches()

    def add_member(self, family_id: int, member_id: int) -> Family:
        family = self.get_by_id(family_id)
        member = self._get_member(member_id)

        if member.family_id == family.id:
            return family
        if member.family_id is not None:
            raise InvalidOperationException(
                f"add member {member_id} to family {family_id}",
                "the member is already part of another family",
            )

        member.family_id = family.id
        self.db.flush()
        self.db.refresh(family)
        self.cache_service.invalidate_member_caches()
        return family

    def remove_member(self, family_id: int, member_id: int) -> Family:
        family = self.get_by_id(family_id)
        member = self._get_member(member_id)

        if member.family_id != family.id:
            raise InvalidOperationException(
                f"remove member {member_id} from family {family_id}",
                "the member does not belong to this family",
            )

        if family.head_of_family_id == member.id:
            family.head_of_family_id = None
        member.family_id = None
        self.db.flush()
        self.db.refresh(family)
        self.cache_service.invalidate_member_caches()
        return family

    def _get_member(self, member_id: int) -> Member:
        member = self.db.query(Member).filter(Member.id == member_id).first()
        if not member:
            raise RecordNotFoundException("Member", member_id)
        return member

    def _get_head(self, member_id: int | None) -> Member | None:
        if member_id is None:
            return None
        return self._get_member(member_id)

    def _check_unique(self, data: dict[str, Any], exclude_id: int | None = None) -> None:
        for field in ("family_code", "email"):
            value = data.get(field)
            if not value:
                continue
            query = self.db.query(Family.id).filter(getattr(Family, field) == value)
            if exclude_id is not None:
                query = query.filter(Family.id != exclude_id)
            if query.first():
                raise ResourceConflictException("Family", f"{field.replace('_', ' ')} {value}")
