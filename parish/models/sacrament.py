"""Sacrament model."""

from datetime import date, datetime
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parish.extensions import db

if TYPE_CHECKING:
    from parish.models.member import Member


class Sacrament(db.Model):  # type: ignore[name-defined]
    """A recorded baptism, confirmation or marriage."""

    __tablename__ = "sacraments"
    __table_args__ = (
        sa.Index("ix_sacraments_member_type", "member_id", "sacrament_type"),
    )

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    sacrament_type: Mapped[str] = mapped_column(sa.String(20), nullable=False, index=True)
    sacrament_date: Mapped[date] = mapped_column(sa.Date, nullable=False, index=True)
    location: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    celebrant: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    witness_1: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    witness_2: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    godparent_1: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    godparent_2: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    certificate_number: Mapped[str | None] = mapped_column(sa.String(50), nullable=True)
    book_number: Mapped[str | None] = mapped_column(sa.String(50), nullable=True)
    page_number: Mapped[str | None] = mapped_column(sa.String(50), nullable=True)
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

    member: Mapped["Member"] = relationship("Member", back_populates="sacraments")

    @property
    def member_name(self) -> str | None:
        return self.member.full_name if self.member else None

    def __repr__(self) -> str:
        return f"<Sacrament id={self.id} type={self.sacrament_type!r} member_id={self.member_id}>"
