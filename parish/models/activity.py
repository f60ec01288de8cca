"""Activity model."""

from datetime import date, datetime, time

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from parish.extensions import db


class Activity(db.Model):  # type: ignore[name-defined]
    """A parish event, meeting or mass."""

    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    activity_type: Mapped[str] = mapped_column(sa.String(30), nullable=False, index=True)
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False, index=True)
    end_date: Mapped[date | None] = mapped_column(sa.Date, nullable=True)
    start_time: Mapped[time | None] = mapped_column(sa.Time, nullable=True)
    end_time: Mapped[time | None] = mapped_column(sa.Time, nullable=True)
    location: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    organizer: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    max_participants: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    registration_required: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    registration_deadline: Mapped[date | None] = mapped_column(sa.Date, nullable=True)
    status: Mapped[str] = mapped_column(sa.String(20), nullable=False, default="planned", index=True)
    notes: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Activity id={self.id} title={self.title!r}>"
