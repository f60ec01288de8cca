"""Create parish registry schema.

Revision ID: 001
Create Date: 2025-01-15 00:00:00.000000
"""

import sqlalchemy as sa
from alembic import op

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _optional_strings(*columns: tuple[str, int]) -> list[sa.Column]:
    return [sa.Column(name, sa.String(length=length), nullable=True) for name, length in columns]


def upgrade() -> None:
    op.create_table(
        "families",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("family_name", sa.String(length=150), nullable=False),
        sa.Column("family_code", sa.String(length=50), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("deanery", sa.String(length=100), nullable=True),
        sa.Column("parish", sa.String(length=100), nullable=True),
        sa.Column("parish_section", sa.String(length=100), nullable=True),
        sa.Column("head_of_family_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("family_code"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_families_family_name", "families", ["family_name"])
    op.create_index("ix_families_created_at", "families", ["created_at"])

    op.create_table(
        "members",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("middle_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(length=10), nullable=False),
        sa.Column("id_number", sa.String(length=50), nullable=True),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("residence", sa.Text(), nullable=True),
        sa.Column("emergency_contact", sa.String(length=200), nullable=True),
        sa.Column("emergency_phone", sa.String(length=20), nullable=True),
        sa.Column("local_church", sa.String(length=100), nullable=False),
        sa.Column("small_christian_community", sa.String(length=150), nullable=True),
        sa.Column("church_group", sa.String(length=50), nullable=False),
        sa.Column("membership_status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("membership_date", sa.Date(), nullable=True),
        sa.Column("matrimony_status", sa.String(length=20), nullable=True),
        sa.Column("marriage_type", sa.String(length=20), nullable=True),
        sa.Column("is_differently_abled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("disability_description", sa.Text(), nullable=True),
        sa.Column("occupation", sa.String(length=150), nullable=True),
        sa.Column("education_level", sa.String(length=20), nullable=True),
        sa.Column("family_id", sa.Integer(), nullable=True),
        *_optional_strings(
            ("tribe", 100),
            ("clan", 100),
            ("parent", 200),
            ("mother_name", 200),
            ("godparent", 200),
            ("minister", 200),
            ("birth_village", 150),
            ("county", 100),
        ),
        sa.Column("baptism_date", sa.Date(), nullable=True),
        *_optional_strings(
            ("baptism_location", 200),
            ("baptized_by", 200),
            ("sponsor", 200),
            ("father_name", 200),
        ),
        sa.Column("confirmation_date", sa.Date(), nullable=True),
        sa.Column("confirmation_location", sa.String(length=200), nullable=True),
        sa.Column("eucharist_date", sa.Date(), nullable=True),
        sa.Column("eucharist_location", sa.String(length=200), nullable=True),
        sa.Column("marriage_date", sa.Date(), nullable=True),
        *_optional_strings(
            ("marriage_location", 200),
            ("marriage_county", 100),
            ("marriage_sub_county", 100),
            ("marriage_entry_number", 50),
            ("marriage_certificate_number", 50),
            ("marriage_religion", 100),
            ("marriage_license_number", 50),
            ("marriage_officiant_name", 200),
            ("marriage_witness1_name", 200),
            ("marriage_witness2_name", 200),
            ("sub_county", 100),
            ("entry_number", 50),
            ("certificate_number", 50),
            ("religion", 100),
            ("license_number", 50),
            ("officiant_name", 200),
            ("witness1_name", 200),
            ("witness2_name", 200),
            ("spouse_name", 200),
        ),
        sa.Column("spouse_age", sa.Integer(), nullable=True),
        *_optional_strings(
            ("spouse_occupation", 150),
            ("spouse_county", 100),
            ("spouse_father_name", 200),
            ("spouse_mother_name", 200),
            ("spouse_father_occupation", 150),
            ("spouse_mother_occupation", 150),
            ("husband_name", 200),
        ),
        sa.Column("husband_age", sa.Integer(), nullable=True),
        *_optional_strings(
            ("husband_occupation", 150),
            ("husband_county", 100),
            ("husband_father_name", 200),
            ("husband_mother_name", 200),
            ("husband_father_occupation", 150),
            ("husband_mother_occupation", 150),
            ("wife_name", 200),
        ),
        sa.Column("wife_age", sa.Integer(), nullable=True),
        *_optional_strings(
            ("wife_occupation", 150),
            ("wife_county", 100),
            ("wife_father_name", 200),
            ("wife_mother_name", 200),
            ("wife_father_occupation", 150),
            ("wife_mother_occupation", 150),
            ("witness_1_name", 200),
            ("witness_2_name", 200),
            ("banns_number", 50),
            ("presence_of", 200),
            ("civil_marriage_certificate_number", 50),
            ("male_witness_full_name", 200),
            ("male_witness_father", 200),
            ("female_witness_full_name", 200),
            ("female_witness_father", 200),
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["family_id"], ["families.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("id_number"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_members_name", "members", ["last_name", "first_name"])
    op.create_index("ix_members_church_status", "members", ["local_church", "membership_status"])
    op.create_index("ix_members_local_church", "members", ["local_church"])
    op.create_index("ix_members_church_group", "members", ["church_group"])
    op.create_index("ix_members_membership_status", "members", ["membership_status"])
    op.create_index("ix_members_family_id", "members", ["family_id"])
    op.create_index("ix_members_created_at", "members", ["created_at"])

    with op.batch_alter_table("families") as batch_op:
        batch_op.create_foreign_key(
            "fk_families_head_of_family_id_members",
            "members",
            ["head_of_family_id"],
            ["id"],
            ondelete="SET NULL",
        )

    op.create_table(
        "sacraments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("member_id", sa.Integer(), nullable=False),
        sa.Column("sacrament_type", sa.String(length=20), nullable=False),
        sa.Column("sacrament_date", sa.Date(), nullable=False),
        *_optional_strings(
            ("location", 200),
            ("celebrant", 200),
            ("witness_1", 200),
            ("witness_2", 200),
            ("godparent_1", 200),
            ("godparent_2", 200),
            ("certificate_number", 50),
            ("book_number", 50),
            ("page_number", 50),
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_sacraments_member_type", "sacraments", ["member_id", "sacrament_type"])
    op.create_index("ix_sacraments_sacrament_type", "sacraments", ["sacrament_type"])
    op.create_index("ix_sacraments_sacrament_date", "sacraments", ["sacrament_date"])
    op.create_index("ix_sacraments_created_at", "sacraments", ["created_at"])

    op.create_table(
        "tithes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("member_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("tithe_type", sa.String(length=30), nullable=False, server_default="tithe"),
        sa.Column("payment_method", sa.String(length=20), nullable=False, server_default="cash"),
        sa.Column("date_given", sa.Date(), nullable=False),
        sa.Column("purpose", sa.String(length=255), nullable=True),
        sa.Column("receipt_number", sa.String(length=50), nullable=True),
        sa.Column("reference_number", sa.String(length=100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["member_id"], ["members.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("receipt_number"),
    )
    op.create_index("ix_tithes_member_date", "tithes", ["member_id", "date_given"])
    op.create_index("ix_tithes_date_given", "tithes", ["date_given"])
    op.create_index("ix_tithes_created_at", "tithes", ["created_at"])

    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("activity_type", sa.String(length=30), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("organizer", sa.String(length=200), nullable=True),
        sa.Column("max_participants", sa.Integer(), nullable=True),
        sa.Column("registration_required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("registration_deadline", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="planned"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_activities_activity_type", "activities", ["activity_type"])
    op.create_index("ix_activities_start_date", "activities", ["start_date"])
    op.create_index("ix_activities_status", "activities", ["status"])
    op.create_index("ix_activities_created_at", "activities", ["created_at"])


def downgrade() -> None:
    op.drop_table("activities")
    op.drop_table("tithes")
    op.drop_table("sacraments")
    with op.batch_alter_table("families") as batch_op:
        batch_op.drop_constraint("fk_families_head_of_family_id_members", type_="foreignkey")
    op.drop_table("members")
    op.drop_table("families")
