"""Family model."""

from datetime import datetime
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parish.extensions import db

if TYPE_CHECKING:
    from parish.models.member import Member


class Family(db.Model):  # type: ignore[name-defined]
    """A household grouping of members."""

    __tablename__ = "families"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    family_name: Mapped[str] = mapped_column(sa.String(150), nullable=False, index=True)
    family_code: Mapped[str | None] = mapped_column(sa.String(50), nullable=True, unique=True)
    address: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(sa.String(20), nullable=True)
    email: Mapped[str | None] = mapped_column(sa.String(255), nullable=True, unique=True)
    deanery: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    parish: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    parish_section: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    head_of_family_id: Mapped[int | None] = mapped_column(
        sa.Integer,
        sa.ForeignKey("members.id", ondelete="SET NULL", use_alter=True),
        nullable=True,
    )
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

    members: Mapped[list["Member"]] = relationship(
        "Member", back_populates="family", foreign_keys="Member.family_id"
    )
    head_of_family: Mapped["Member | None"] = relationship(
        "Member", foreign_keys=[head_of_family_id], post_update=True
    )

    @property
    def member_count(self) -> int:
        return len(self.members)

    def __repr__(self) -> str:
        return f"<Family id={self.id} name={self.family_name!r}>"
