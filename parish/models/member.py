"""Member model."""

from datetime import date, datetime
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parish.extensions import db

if TYPE_CHECKING:
    from parish.models.family import Family
    from parish.models.sacrament import Sacrament
    from parish.models.tithe import Tithe


class Member(db.Model):  # type: ignore[name-defined]
    """A registered parishioner."""

    __tablename__ = "members"
    __table_args__ = (
        sa.Index("ix_members_name", "last_name", "first_name"),
        sa.Index("ix_members_church_status", "local_church", "membership_status"),
    )

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)

    # Personal
    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    middle_name: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(sa.Date, nullable=True)
    gender: Mapped[str] = mapped_column(sa.String(10), nullable=False)
    id_number: Mapped[str | None] = mapped_column(sa.String(50), nullable=True, unique=True)

    # Contact
    phone: Mapped[str | None] = mapped_column(sa.String(20), nullable=True)
    email: Mapped[str | None] = mapped_column(sa.String(255), nullable=True, unique=True)
    residence: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    emergency_contact: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    emergency_phone: Mapped[str | None] = mapped_column(sa.String(20), nullable=True)

    # Church
    local_church: Mapped[str] = mapped_column(sa.String(100), nullable=False, index=True)
    small_christian_community: Mapped[str | None] = mapped_column(sa.String(150), nullable=True)
    church_group: Mapped[str] = mapped_column(sa.String(50), nullable=False, index=True)
    membership_status: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default="active", index=True
    )
    membership_date: Mapped[date | None] = mapped_column(sa.Date, nullable=True)
    matrimony_status: Mapped[str | None] = mapped_column(sa.String(20), nullable=True)
    marriage_type: Mapped[str | None] = mapped_column(sa.String(20), nullable=True)
    is_differently_abled: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    disability_description: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    occupation: Mapped[str | None] = mapped_column(sa.String(150), nullable=True)
    education_level: Mapped[str | None] = mapped_column(sa.String(20), nullable=True)
    family_id: Mapped[int | None] = mapped_column(
        sa.Integer, sa.ForeignKey("families.id", ondelete="SET NULL"), nullable=True, index=True
    )
    tribe: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    clan: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)

    # Names entered on the data-entry forms
    parent: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    mother_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    godparent: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    minister: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)

    # Birth place
    birth_village: Mapped[str | None] = mapped_column(sa.String(150), nullable=True)
    county: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)

    # Baptism / confirmation / eucharist
    baptism_date: Mapped[date | None] = mapped_column(sa.Date, nullable=True)
    baptism_location: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    baptized_by: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    sponsor: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    father_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    confirmation_date: Mapped[date | None] = mapped_column(sa.Date, nullable=True)
    confirmation_location: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    eucharist_date: Mapped[date | None] = mapped_column(sa.Date, nullable=True)
    eucharist_location: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)

    # Marriage
    marriage_date: Mapped[date | None] = mapped_column(sa.Date, nullable=True)
    marriage_location: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    marriage_county: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    marriage_sub_county: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    marriage_entry_number: Mapped[str | None] = mapped_column(sa.String(50), nullable=True)
    marriage_certificate_number: Mapped[str | None] = mapped_column(sa.String(50), nullable=True)
    marriage_religion: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    marriage_license_number: Mapped[str | None] = mapped_column(sa.String(50), nullable=True)
    marriage_officiant_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    marriage_witness1_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    marriage_witness2_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)

    # Certificate mirrors of the marriage fields
    sub_county: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    entry_number: Mapped[str | None] = mapped_column(sa.String(50), nullable=True)
    certificate_number: Mapped[str | None] = mapped_column(sa.String(50), nullable=True)
    religion: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    license_number: Mapped[str | None] = mapped_column(sa.String(50), nullable=True)
    officiant_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    witness1_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    witness2_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)

    # Spouse
    spouse_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    spouse_age: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    spouse_occupation: Mapped[str | None] = mapped_column(sa.String(150), nullable=True)
    spouse_county: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    spouse_father_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    spouse_mother_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    spouse_father_occupation: Mapped[str | None] = mapped_column(sa.String(150), nullable=True)
    spouse_mother_occupation: Mapped[str | None] = mapped_column(sa.String(150), nullable=True)

    # Husband (certificate)
    husband_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    husband_age: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    husband_occupation: Mapped[str | None] = mapped_column(sa.String(150), nullable=True)
    husband_county: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    husband_father_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    husband_mother_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    husband_father_occupation: Mapped[str | None] = mapped_column(sa.String(150), nullable=True)
    husband_mother_occupation: Mapped[str | None] = mapped_column(sa.String(150), nullable=True)

    # Wife (certificate)
    wife_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    wife_age: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    wife_occupation: Mapped[str | None] = mapped_column(sa.String(150), nullable=True)
    wife_county: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    wife_father_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    wife_mother_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    wife_father_occupation: Mapped[str | None] = mapped_column(sa.String(150), nullable=True)
    wife_mother_occupation: Mapped[str | None] = mapped_column(sa.String(150), nullable=True)

    # Legacy witness columns
    witness_1_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    witness_2_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)

    # Banns, officiation and extended witnesses
    banns_number: Mapped[str | None] = mapped_column(sa.String(50), nullable=True)
    presence_of: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    civil_marriage_certificate_number: Mapped[str | None] = mapped_column(
        sa.String(50), nullable=True
    )
    male_witness_full_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    male_witness_father: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    female_witness_full_name: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    female_witness_father: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)

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

    family: Mapped["Family | None"] = relationship(
        "Family", back_populates="members", foreign_keys=[family_id]
    )
    sacraments: Mapped[list["Sacrament"]] = relationship(
        "Sacrament", back_populates="member", cascade="all, delete-orphan"
    )
    tithes: Mapped[list["Tithe"]] = relationship(
        "Tithe", back_populates="member", cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return " ".join(
            part for part in (self.first_name, self.middle_name, self.last_name) if part
        )

    def age_on(self, reference: date) -> int | None:
        """Whole years between date of birth and ``reference``."""
        if self.date_of_birth is None:
            return None
        dob = self.date_of_birth
        years = reference.year - dob.year
        if (reference.month, reference.day) < (dob.month, dob.day):
            years -= 1
        return years

    @property
    def age(self) -> int | None:
        return self.age_on(date.today())

    def __repr__(self) -> str:
        return f"<Member id={self.id} name={self.full_name!r}>"
