"""Activity service for parish events and their statistics."""

import logging
from datetime import date
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from parish.exceptions import RecordNotFoundException, ValidationException
from parish.models.activity import Activity
from parish.services.cache_service import CacheOptimizationService

logger = logging.getLogger(__name__)

UPCOMING_LIMIT = 10
SEARCH_LIMIT = 20
_CLOSED_STATUSES = ("cancelled", "completed")


class ActivityService:
    """Service for managing activities."""

    def __init__(self, db: Session, cache_service: CacheOptimizationService):
        self.db = db
        self.cache_service = cache_service

    def list_activities(
        self,
        activity_type: str | None = None,
        status: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        search: str | None = None,
    ) -> list[Activity]:
        query = self.db.query(Activity)

        if activity_type:
            query = query.filter(Activity.activity_type == activity_type)
        if status:
            query = query.filter(Activity.status == status)
        if date_from:
            query = query.filter(Activity.start_date >= date_from)
        if date_to:
            query = query.filter(Activity.start_date <= date_to)
        if search:
            query = query.filter(self._search_clause(search))

        return query.order_by(Activity.start_date.desc(), Activity.id.desc()).all()

    def get_by_id(self, activity_id: int) -> Activity:
        activity = self.db.query(Activity).filter(Activity.id == activity_id).first()
        if not activity:
            raise RecordNotFoundException("Activity", activity_id)
        return activity

    def create(self, data: dict[str, Any]) -> Activity:
        activity = Activity(**data)
        if not activity.status:
            activity.status = "planned"
        self._check_schedule(activity)

        self.db.add(activity)
        self.db.flush()

        logger.info("Activity created: %s on %s (ID: %d)", activity.title, activity.start_date, activity.id)
        self.cache_service.invalidate_member_caches()
        return activity

    def update(self, activity_id: int, data: dict[str, Any]) -> Activity:
        activity = self.get_by_id(activity_id)
        for key, value in data.items():
            setattr(activity, key, value)
        self._check_schedule(activity)
        self.db.flush()
        self.cache_service.invalidate_member_caches()
        return activity

    def delete(self, activity_id: int) -> None:
        activity = self.get_by_id(activity_id)
        self.db.delete(activity)
        self.db.flush()
        self.cache_service.invalidate_member_caches()

    def get_upcoming(self, today: date | None = None, limit: int = UPCOMING_LIMIT) -> list[Activity]:
        """Open activities starting today or later, soonest first."""
        return (
            self._upcoming_query(today or date.today())
            .order_by(Activity.start_date, Activity.start_time, Activity.id)
            .limit(limit)
            .all()
        )

    def search(self, term: str) -> list[Activity]:
        return (
            self.db.query(Activity)
            .filter(self._search_clause(term))
            .order_by(Activity.start_date.desc())
            .limit(SEARCH_LIMIT)
            .all()
        )

    def get_statistics(self, today: date | None = None) -> dict[str, Any]:
        today = today or date.today()

        def count_status(status: str) -> int:
            return self.db.query(func.count(Activity.id)).filter(Activity.status == status).scalar() or 0

        month_start = today.replace(day=1)
        next_month = (
            month_start.replace(year=month_start.year + 1, month=1)
            if month_start.month == 12
            else month_start.replace(month=month_start.month + 1)
        )

        by_type = (
            self.db.query(Activity.activity_type, func.count(Activity.id))
            .group_by(Activity.activity_type)
            .all()
        )
        by_status = (
            self.db.query(Activity.status, func.count(Activity.id))
            .group_by(Activity.status)
            .all()
        )

        return {
            "total_activities": self.db.query(func.count(Activity.id)).scalar() or 0,
            "upcoming_activities": self._upcoming_query(today).count(),
            "active_activities": count_status("active"),
            "completed_activities": count_status("completed"),
            "this_month_activities": self.db.query(func.count(Activity.id))
            .filter(Activity.start_date >= month_start, Activity.start_date < next_month)
            .scalar() or 0,
            "activities_by_type": {key: count for key, count in by_type},
            "activities_by_status": {key: count for key, count in by_status},
        }

    def _upcoming_query(self, today: date):
        return self.db.query(Activity).filter(
            Activity.start_date >= today,
            Activity.status.notin_(_CLOSED_STATUSES),
        )

    @staticmethod
    def _search_clause(term: str) -> Any:
        pattern = f"%{term}%"
        return or_(
            Activity.title.ilike(pattern),
            Activity.description.ilike(pattern),
            Activity.location.ilike(pattern),
        )

    @staticmethod
    def _check_schedule(activity: Activity) -> None:
        if activity.end_date and activity.end_date < activity.start_date:
            raise ValidationException("End date cannot be before the start date")
        if (
            activity.start_time
            and activity.end_time
            and (activity.end_date is None or activity.end_date == activity.start_date)
            and activity.end_time <= activity.start_time
        ):
            raise ValidationException("End time must be after the start time")
        if activity.registration_deadline and activity.registration_deadline > activity.start_date:
            raise ValidationException("Registration deadline cannot be after the start date")
