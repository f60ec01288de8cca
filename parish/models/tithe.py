"""Tithe model."""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parish.extensions import db

if TYPE_CHECKING:
    from parish.models.member import Member


class Tithe(db.Model):  # type: ignore[name-defined]
    """A financial contribution made by a member."""

    __tablename__ = "tithes"
    __table_args__ = (
        sa.Index("ix_tithes_member_date", "member_id", "date_given"),
    )

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(sa.Numeric(10, 2), nullable=False)
    tithe_type: Mapped[str] = mapped_column(sa.String(30), nullable=False, default="tithe")
    payment_method: Mapped[str] = mapped_column(sa.String(20), nullable=False, default="cash")
    date_given: Mapped[date] = mapped_column(sa.Date, nullable=False, index=True)
    purpose: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    receipt_number: Mapped[str | None] = mapped_column(sa.String(50), nullable=True, unique=True)
    reference_number: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
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

    member: Mapped["Member"] = relationship("Member", back_populates="tithes")

    @property
    def member_name(self) -> str | None:
        return self.member.full_name if self.member else None

    def __repr__(self) -> str:
        return f"<Tithe id={self.id} amount={self.amount} member_id={self.member_id}>"
