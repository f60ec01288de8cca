"""Sacrament service for baptism, confirmation and marriage records."""

import logging
from datetime import date
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from parish.exceptions import (
    RecordNotFoundException,
    ResourceConflictException,
    ValidationException,
)
from parish.models.member import Member
from parish.models.sacrament import Sacrament
from parish.services.cache_service import CacheOptimizationService

logger = logging.getLogger(__name__)


class SacramentService:
    """Service for managing sacrament records."""

    def __init__(self, db: Session, cache_service: CacheOptimizationService):
        self.db = db
        self.cache_service = cache_service

    def list_sacraments(
        self,
        sacrament_type: str | None = None,
        member_id: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        search: str | None = None,
    ) -> list[Sacrament]:
        query = self.db.query(Sacrament).join(Sacrament.member)

        if sacrament_type:
            query = query.filter(Sacrament.sacrament_type == sacrament_type)
        if member_id is not None:
            query = query.filter(Sacrament.member_id == member_id)
        if date_from:
            query = query.filter(Sacrament.sacrament_date >= date_from)
        if date_to:
            query = query.filter(Sacrament.sacrament_date <= date_to)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Sacrament.celebrant.ilike(pattern),
                    Sacrament.location.ilike(pattern),
                    Member.first_name.ilike(pattern),
                    Member.last_name.ilike(pattern),
                )
            )

        return query.order_by(Sacrament.sacrament_date.desc(), Sacrament.id.desc()).all()

    def get_by_id(self, sacrament_id: int) -> Sacrament:
        sacrament = self.db.query(Sacrament).filter(Sacrament.id == sacrament_id).first()
        if not sacrament:
            raise RecordNotFoundException("Sacrament", sacrament_id)
        return sacrament

    def get_member_sacraments(self, member_id: int) -> list[Sacrament]:
        self._get_member(member_id)
        return (
            self.db.query(Sacrament)
            .filter(Sacrament.member_id == member_id)
            .order_by(Sacrament.sacrament_date)
            .all()
        )

    def create(self, data: dict[str, Any], today: date | None = None) -> Sacrament:
        member = self._get_member(data["member_id"])
        self._check_date(data["sacrament_date"], today)
        self._check_duplicate(member.id, data["sacrament_type"])

        sacrament = Sacrament(**data)
        self.db.add(sacrament)
        self.db.flush()

        logger.info(
            "Sacrament recorded: %s for %s (ID: %d)",
            sacrament.sacrament_type,
            member.full_name,
            sacrament.id,
        )
        self.cache_service.invalidate_member_caches()
        return sacrament

    def update(self, sacrament_id: int, data: dict[str, Any], today: date | None = None) -> Sacrament:
        sacrament = self.get_by_id(sacrament_id)

        member_id = data.get("member_id", sacrament.member_id)
        sacrament_type = data.get("sacrament_type", sacrament.sacrament_type)
        if "member_id" in data:
            self._get_member(member_id)
        if "sacrament_date" in data:
            self._check_date(data["sacrament_date"], today)
        if member_id != sacrament.member_id or sacrament_type != sacrament.sacrament_type:
            self._check_duplicate(member_id, sacrament_type, exclude_id=sacrament.id)

        for key, value in data.items():
            setattr(sacrament, key, value)
        self.db.flush()
        self.cache_service.invalidate_member_caches()
        return sacrament

    def delete(self, sacrament_id: int) -> None:
        sacrament = self.get_by_id(sacrament_id)
        self.db.delete(sacrament)
        self.db.flush()
        self.cache_service.invalidate_member_caches()

    def _get_member(self, member_id: int) -> Member:
        member = self.db.query(Member).filter(Member.id == member_id).first()
        if not member:
            raise RecordNotFoundException("Member", member_id)
        return member

    @staticmethod
    def _check_date(sacrament_date: date, today: date | None) -> None:
        if sacrament_date > (today or date.today()):
            raise ValidationException("Sacrament date cannot be in the future")

    def _check_duplicate(self, member_id: int, sacrament_type: str, exclude_id: int | None = None) -> None:
        query = self.db.query(Sacrament.id).filter(
            Sacrament.member_id == member_id,
            Sacrament.sacrament_type == sacrament_type,
        )
        if exclude_id is not None:
            query = query.filter(Sacrament.id != exclude_id)
        if query.first():
            raise ResourceConflictException("Sacrament", f"type {sacrament_type} for member {member_id}")
