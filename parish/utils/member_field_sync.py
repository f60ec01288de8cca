"""Synchronisation of derived member fields.

The data-entry forms collect a name once and reuse it on several records:
the parent doubles as the father on the baptism card, the marriage block
feeds the certificate columns, and the husband/wife columns are derived
from the member and spouse according to gender. Derived fields are only
filled when blank so explicit values are never overwritten.
"""

from datetime import date
from typing import Any

from parish.models.member import Member

# target <- source
FIELD_MIRRORS: tuple[tuple[str, str], ...] = (
    ("father_name", "parent"),
    ("baptized_by", "minister"),
    ("sponsor", "godparent"),
    ("sub_county", "marriage_sub_county"),
    ("entry_number", "marriage_entry_number"),
    ("certificate_number", "marriage_certificate_number"),
    ("officiant_name", "marriage_officiant_name"),
    ("witness1_name", "marriage_witness1_name"),
    ("witness2_name", "marriage_witness2_name"),
    ("religion", "marriage_religion"),
    ("license_number", "marriage_license_number"),
)

# certificate suffix -> (member attribute, spouse attribute)
PARTNER_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("occupation", "occupation", "spouse_occupation"),
    ("county", "county", "spouse_county"),
    ("father_name", "father_name", "spouse_father_name"),
    ("mother_name", "mother_name", "spouse_mother_name"),
    ("father_occupation", "", "spouse_father_occupation"),
    ("mother_occupation", "", "spouse_mother_occupation"),
)


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _fill(member: Member, target: str, value: Any) -> bool:
    if is_blank(getattr(member, target)) and not is_blank(value):
        setattr(member, target, value)
        return True
    return False


def sync_derived_fields(member: Member, today: date | None = None) -> list[str]:
    """Fill blank derived fields on ``member``; returns the names that were set."""
    changed: list[str] = []

    for target, source in FIELD_MIRRORS:
        if _fill(member, target, getattr(member, source)):
            changed.append(target)

    if member.matrimony_status != "married":
        return changed

    gender = (member.gender or "").lower()
    if gender not in ("male", "female"):
        return changed

    own_prefix, partner_prefix = ("husband", "wife") if gender == "male" else ("wife", "husband")

    if _fill(member, f"{own_prefix}_name", member.full_name):
        changed.append(f"{own_prefix}_name")
    if _fill(member, f"{own_prefix}_age", member.age_on(today or date.today())):
        changed.append(f"{own_prefix}_age")
    if _fill(member, f"{partner_prefix}_name", member.spouse_name):
        changed.append(f"{partner_prefix}_name")
    if _fill(member, f"{partner_prefix}_age", member.spouse_age):
        changed.append(f"{partner_prefix}_age")

    for suffix, own_attr, spouse_attr in PARTNER_FIELDS:
        if own_attr and _fill(member, f"{own_prefix}_{suffix}", getattr(member, own_attr)):
            changed.append(f"{own_prefix}_{suffix}")
        if _fill(member, f"{partner_prefix}_{suffix}", getattr(member, spouse_attr)):
            changed.append(f"{partner_prefix}_{suffix}")

    return changed
