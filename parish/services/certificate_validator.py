"""Marriage certificate data completeness validation.

Scores how complete a member's marriage record is before a certificate is
produced. Required fields carry 50% of the score, recommended fields 35% and
optional fields 15%. A record is valid once every required field resolves,
either directly or through the fallback chain in ``resolve_field``.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from parish.models.member import Member

logger = logging.getLogger(__name__)

REQUIRED_FIELDS: dict[str, dict[str, str]] = {
    "basic_info": {
        "marriage_date": "Marriage Date",
        "marriage_location": "Marriage Location",
    },
    "husband_details": {
        "husband_name": "Husband's Full Name",
        "husband_age": "Husband's Age",
    },
    "wife_details": {
        "wife_name": "Wife's Full Name",
        "wife_age": "Wife's Age",
    },
    "ceremony_details": {
        "presence_of": "Officiant/Priest Name",
    },
}

RECOMMENDED_FIELDS: dict[str, str] = {
    "husband_occupation": "Husband's Occupation",
    "husband_father_name": "Husband's Father's Name",
    "husband_mother_name": "Husband's Mother's Name",
    "wife_occupation": "Wife's Occupation",
    "wife_father_name": "Wife's Father's Name",
    "wife_mother_name": "Wife's Mother's Name",
    "male_witness_full_name": "Male Witness Name",
    "female_witness_full_name": "Female Witness Name",
    "religion": "Religion/Ceremony Type",
}

OPTIONAL_FIELDS: tuple[str, ...] = (
    "civil_marriage_certificate_number",
    "banns_number",
    "husband_county",
    "wife_county",
    "husband_father_occupation",
    "husband_mother_occupation",
    "wife_father_occupation",
    "wife_mother_occupation",
    "male_witness_father",
    "female_witness_father",
)

REQUIRED_WEIGHT = 50
RECOMMENDED_WEIGHT = 35
OPTIONAL_WEIGHT = 15

NO_MARRIAGE_DATA_WARNING = "Member has no marriage data recorded"


def is_empty(value: Any) -> bool:
    """Emptiness as the data-entry forms understand it: None, '', '0' and 0."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value.strip() in ("", "0")
    if isinstance(value, int | float | Decimal):
        return value == 0
    return False


def round_half_up(value: float, places: int = 1) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


@dataclass
class MissingField:
    field: str
    label: str
    category: str | None = None


@dataclass
class CertificateValidation:
    """Outcome of validating one member's marriage record."""

    is_valid: bool = True
    completeness_score: float = 0.0
    missing_required: list[MissingField] = field(default_factory=list)
    missing_optional: list[MissingField] = field(default_factory=list)
    field_mapping: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass
class CertificateSummaryReport:
    total_members: int = 0
    valid_certificates: int = 0
    incomplete_certificates: int = 0
    average_completeness: float = 0.0
    common_missing_fields: dict[str, int] = field(default_factory=dict)
    recommendations: list[str] = field(default_factory=list)


class MarriageCertificateValidator:
    """Validates member data for marriage certificate generation."""

    def __init__(
        self,
        default_location: str = "Sacred Heart Kandara Parish",
        default_officiant: str = "Rev. Parish Priest",
        default_religion: str = "Catholic",
        today: date | None = None,
    ):
        self.default_location = default_location
        self.default_officiant = default_officiant
        self.default_religion = default_religion
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    @staticmethod
    def has_marriage_data(member: Member) -> bool:
        return (
            member.matrimony_status == "married"
            or not is_empty(member.marriage_date)
            or not is_empty(member.spouse_name)
            or not is_empty(member.husband_name)
            or not is_empty(member.wife_name)
        )

    def validate_member_data(self, member: Member) -> CertificateValidation:
        validation = CertificateValidation()

        if not self.has_marriage_data(member):
            validation.is_valid = False
            validation.warnings.append(NO_MARRIAGE_DATA_WARNING)
            return validation

        total_required = 0
        found_required = 0
        for category, fields in REQUIRED_FIELDS.items():
            for name, label in fields.items():
                total_required += 1
                value = self.resolve_field(member, name)
                if is_empty(value):
                    validation.missing_required.append(MissingField(name, label, category))
                else:
                    found_required += 1
                    validation.field_mapping[name] = value

        found_recommended = 0
        for name, label in RECOMMENDED_FIELDS.items():
            value = self.resolve_field(member, name)
            if is_empty(value):
                validation.missing_optional.append(MissingField(name, label))
            else:
                found_recommended += 1
                validation.field_mapping[name] = value

        found_optional = 0
        for name in OPTIONAL_FIELDS:
            value = self.resolve_field(member, name)
            if not is_empty(value):
                found_optional += 1
                validation.field_mapping[name] = value

        score = (
            found_required / max(total_required, 1) * REQUIRED_WEIGHT
            + found_recommended / max(len(RECOMMENDED_FIELDS), 1) * RECOMMENDED_WEIGHT
            + found_optional / max(len(OPTIONAL_FIELDS), 1) * OPTIONAL_WEIGHT
        )
        validation.completeness_score = round_half_up(score, 1)
        validation.is_valid = not validation.missing_required

        self._add_recommendations(member, validation)
        return validation

    def resolve_field(self, member: Member, name: str) -> Any:
        """Value of certificate field ``name``, falling back to related member data."""
        direct = getattr(member, name, None)
        if not is_empty(direct):
            return direct

        gender = (member.gender or "").lower()
        is_male = gender == "male"
        is_female = gender == "female"

        if name == "marriage_location":
            return self.default_location

        if name in ("husband_name", "wife_name"):
            own = is_male if name == "husband_name" else is_female
            return member.full_name if own else member.spouse_name

        if name in ("husband_age", "wife_age"):
            own = is_male if name == "husband_age" else is_female
            if own and member.date_of_birth is not None:
                return member.age_on(self.today)
            return member.spouse_age

        for prefix, own in (("husband_", is_male), ("wife_", is_female)):
            if not name.startswith(prefix):
                continue
            suffix = name[len(prefix):]
            if suffix in ("occupation", "father_name", "mother_name"):
                return getattr(member, suffix) if own else getattr(member, f"spouse_{suffix}")

        if name == "religion":
            return member.marriage_religion or self.default_religion
        if name == "presence_of":
            return member.marriage_officiant_name or self.default_officiant
        if name == "male_witness_full_name":
            return member.marriage_witness1_name or member.witness_1_name
        if name == "female_witness_full_name":
            return member.marriage_witness2_name or member.witness_2_name
        if name == "civil_marriage_certificate_number":
            return member.marriage_certificate_number

        return None

    def _add_recommendations(self, member: Member, validation: CertificateValidation) -> None:
        recommendations = validation.recommendations

        if validation.completeness_score < 50:
            recommendations.append(
                "Critical: Certificate data is severely incomplete. Please update member marriage records."
            )
        elif validation.completeness_score < 75:
            recommendations.append(
                "Warning: Certificate may have missing information. Consider updating member details."
            )

        if is_empty(member.marriage_date):
            recommendations.append("Add marriage date for accurate certificate generation.")

        if is_empty(member.husband_name) and is_empty(member.wife_name):
            recommendations.append("Add spouse details for complete marriage record.")

        if is_empty(member.male_witness_full_name) or is_empty(member.female_witness_full_name):
            recommendations.append("Add witness information for official certificate compliance.")

        gender = (member.gender or "").lower()
        if gender == "male" and is_empty(member.husband_age) and member.date_of_birth is None:
            recommendations.append("Add date of birth or husband age for certificate accuracy.")
        if gender == "female" and is_empty(member.wife_age) and member.date_of_birth is None:
            recommendations.append("Add date of birth or wife age for certificate accuracy.")

    def generate_summary_report(self, members: Iterable[Member]) -> CertificateSummaryReport:
        report = CertificateSummaryReport()
        total_completeness = 0.0
        missing_counts: dict[str, int] = {}

        for member in members:
            report.total_members += 1
            validation = self.validate_member_data(member)
            if validation.is_valid:
                report.valid_certificates += 1
            else:
                report.incomplete_certificates += 1
            total_completeness += validation.completeness_score
            for missing in validation.missing_required:
                missing_counts[missing.field] = missing_counts.get(missing.field, 0) + 1

        report.average_completeness = round_half_up(
            total_completeness / max(report.total_members, 1), 1
        )
        ranked = sorted(missing_counts.items(), key=lambda item: item[1], reverse=True)
        report.common_missing_fields = dict(ranked[:10])

        if report.average_completeness < 60:
            report.recommendations.append(
                "System-wide data quality issue detected. Review member data entry processes."
            )
        if report.incomplete_certificates > report.valid_certificates:
            report.recommendations.append(
                "Majority of marriage records are incomplete. Prioritize data completion."
            )

        logger.info(
            "Certificate summary: %d members, %d valid, %d incomplete, %.1f%% average",
            report.total_members,
            report.valid_certificates,
            report.incomplete_certificates,
            report.average_completeness,
        )
        return report
