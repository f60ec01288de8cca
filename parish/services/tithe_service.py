"""Tithe service for contribution records and financial reports."""

import logging
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import func, or_, text
from sqlalchemy.orm import Query, Session

from parish.exceptions import RecordNotFoundException, ResourceConflictException
from parish.models.member import Member
from parish.models.tithe import Tithe
from parish.services.cache_service import CacheOptimizationService
from parish.services.dialect_service import DatabaseCompatibilityService

logger = logging.getLogger(__name__)


def _money(value: Any) -> Decimal:
    return Decimal(str(value or 0)).quantize(Decimal("0.01"))


class TitheService:
    """Service for managing tithes and offerings."""

    def __init__(
        self,
        db: Session,
        cache_service: CacheOptimizationService,
        dialect: DatabaseCompatibilityService,
    ):
        self.db = db
        self.cache_service = cache_service
        self.dialect = dialect

    def _filter_year_month(self, query: Query, year: int | None, month: int | None) -> Query:
        if year is not None:
            query = query.filter(
                text(f"{self.dialect.extract_year('tithes.date_given')} = :year").bindparams(year=year)
            )
        if month is not None:
            query = query.filter(
                text(f"{self.dialect.extract_month('tithes.date_given')} = :month").bindparams(month=month)
            )
        return query

    def list_tithes(
        self,
        member_id: int | None = None,
        tithe_type: str | None = None,
        payment_method: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        search: str | None = None,
    ) -> list[Tithe]:
        query = self.db.query(Tithe).join(Tithe.member)

        if member_id is not None:
            query = query.filter(Tithe.member_id == member_id)
        if tithe_type:
            query = query.filter(Tithe.tithe_type == tithe_type)
        if payment_method:
            query = query.filter(Tithe.payment_method == payment_method)
        if date_from:
            query = query.filter(Tithe.date_given >= date_from)
        if date_to:
            query = query.filter(Tithe.date_given <= date_to)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Tithe.receipt_number.ilike(pattern),
                    Tithe.reference_number.ilike(pattern),
                    Member.first_name.ilike(pattern),
                    Member.last_name.ilike(pattern),
                )
            )

        return query.order_by(Tithe.date_given.desc(), Tithe.id.desc()).all()

    def get_by_id(self, tithe_id: int) -> Tithe:
        tithe = self.db.query(Tithe).filter(Tithe.id == tithe_id).first()
        if not tithe:
            raise RecordNotFoundException("Tithe", tithe_id)
        return tithe

    def create(self, data: dict[str, Any]) -> Tithe:
        member = self._get_member(data["member_id"])
        self._check_receipt(data.get("receipt_number"))

        tithe = Tithe(**data)
        self.db.add(tithe)
        self.db.flush()

        logger.info(
            "Tithe recorded: %s %s from %s (ID: %d)",
            tithe.amount,
            tithe.tithe_type,
            member.full_name,
            tithe.id,
        )
        self.cache_service.invalidate_member_caches()
        return tithe

    def update(self, tithe_id: int, data: dict[str, Any]) -> Tithe:
        tithe = self.get_by_id(tithe_id)
        if "member_id" in data:
            self._get_member(data["member_id"])
        if "receipt_number" in data:
            self._check_receipt(data["receipt_number"], exclude_id=tithe.id)

        for key, value in data.items():
            setattr(tithe, key, value)
        self.db.flush()
        self.cache_service.invalidate_member_caches()
        return tithe

    def delete(self, tithe_id: int) -> None:
        tithe = self.get_by_id(tithe_id)
        self.db.delete(tithe)
        self.db.flush()
        self.cache_service.invalidate_member_caches()

    def get_member_tithes(self, member_id: int, today: date | None = None) -> dict[str, Any]:
        """A member's contributions, newest first, with running totals."""
        self._get_member(member_id)
        today = today or date.today()

        base = self.db.query(Tithe).filter(Tithe.member_id == member_id)
        tithes = base.order_by(Tithe.date_given.desc(), Tithe.id.desc()).all()

        def total(query: Query) -> Decimal:
            return _money(query.with_entities(func.sum(Tithe.amount)).scalar())

        return {
            "tithes": tithes,
            "total_amount": total(base),
            "this_year": total(self._filter_year_month(base, today.year, None)),
            "this_month": total(self._filter_year_month(base, today.year, today.month)),
        }

    def get_report(self, year: int, month: int | None = None) -> dict[str, Any]:
        """Totals for ``year`` (optionally one month) by type, method and month."""
        query = self._filter_year_month(self.db.query(Tithe), year, month)

        def grouped(column: Any) -> list[dict[str, Any]]:
            rows = (
                query.with_entities(column, func.sum(Tithe.amount), func.count(Tithe.id))
                .group_by(column)
                .order_by(column)
                .all()
            )
            return [
                {"key": key, "total": _money(amount), "count": count}
                for key, amount, count in rows
            ]

        month_expr = self.dialect.extract_month("date_given")
        year_expr = self.dialect.extract_year("date_given")
        monthly_rows = self.db.execute(
            text(
                f"SELECT {month_expr} AS month, SUM(amount) AS total FROM tithes "
                f"WHERE {year_expr} = :year GROUP BY {month_expr} ORDER BY month"
            ),
            {"year": year},
        ).all()

        return {
            "year": year,
            "month": month,
            "total_amount": _money(query.with_entities(func.sum(Tithe.amount)).scalar()),
            "total_records": query.count(),
            "by_type": grouped(Tithe.tithe_type),
            "by_method": grouped(Tithe.payment_method),
            "monthly_totals": [
                {"month": int(row.month), "total": _money(row.total)} for row in monthly_rows
            ],
        }

    def _get_member(self, member_id: int) -> Member:
        member = self.db.query(Member).filter(Member.id == member_id).first()
        if not member:
            raise RecordNotFoundException("Member", member_id)
        return member

    def _check_receipt(self, receipt_number: str | None, exclude_id: int | None = None) -> None:
        if not receipt_number:
            return
        query = self.db.query(Tithe.id).filter(Tithe.receipt_number == receipt_number)
        if exclude_id is not None:
            query = query.filter(Tithe.id != exclude_id)
        if query.first():
            raise ResourceConflictException("Tithe", f"receipt number {receipt_number}")
