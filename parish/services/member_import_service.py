"""CSV member import.

Rows are validated one by one and each row is written inside its own
savepoint, so a failing row is reported and skipped while the rest of the
file is still imported. Existing members are matched by email, phone or ID
number and are updated, skipped with a warning, or reported as errors
depending on the import options.
"""

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from parish.config import Settings
from parish.consts import (
    CHURCH_GROUPS,
    GENDERS,
    LOCAL_CHURCH_ALIASES,
    LOCAL_CHURCHES,
    MEMBERSHIP_STATUSES,
    OCCUPATIONS,
)
from parish.exceptions import ImportFailedException
from parish.models.family import Family
from parish.models.member import Member
from parish.services.cache_service import CacheOptimizationService
from parish.utils.member_field_sync import sync_derived_fields
from parish.utils.phone import normalize_phone

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = ("csv", "txt")

TEMPLATE_HEADERS = (
    "first_name",
    "middle_name",
    "last_name",
    "date_of_birth",
    "gender",
    "phone",
    "email",
    "id_number",
    "local_church",
    "church_group",
    "membership_status",
    "membership_date",
    "residence",
    "occupation",
    "family_name",
    "emergency_contact",
    "emergency_phone",
    "baptism_date",
    "confirmation_date",
    "matrimony_status",
    "notes",
)

TEMPLATE_ROWS = (
    (
        "John", "Mwangi", "Doe", "1990-01-15", "Male",
        "+254712345678", "john.doe@email.com", "12345678", "Kangemi", "CMA",
        "active", "2024-01-01", "Kangemi Estate House 123", "employed",
        "Doe Family", "Jane Doe", "+254798765432", "2010-05-20",
        "2015-08-15", "married", "Sample member record",
    ),
    (
        "Mary", "Wanjiku", "Smith", "1985-05-20", "Female",
        "+254798765432", "mary.smith@email.com", "87654321", "Cathedral", "C.W.A",
        "active", "2024-01-01", "Cathedral Area Apt 45", "self_employed",
        "Smith Family", "Peter Smith", "+254723456789", "2005-03-10",
        "2012-12-08", "married", "Another sample record",
    ),
)

# Copied verbatim when present; blank values become NULL
_OPTIONAL_TEXT_FIELDS = (
    "id_number",
    "occupation",
    "residence",
    "sponsor",
    "parent",
    "minister",
    "tribe",
    "clan",
    "education_level",
    "matrimony_status",
    "emergency_contact",
    "notes",
)

_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%Y/%m/%d", "%d-%m-%Y", "%d.%m.%Y")
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_MAX_NAME_LENGTH = 255
_MAX_PHONE_LENGTH = 20
_MAX_ID_NUMBER_LENGTH = 20
_MAX_RESIDENCE_LENGTH = 500


def parse_date(value: str) -> date | None:
    """Parse the date spellings accepted in import files."""
    value = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def resolve_local_church(value: str) -> str | None:
    """Full church name for either a full name or its short alias."""
    value = value.strip()
    if value in LOCAL_CHURCHES:
        return value
    return LOCAL_CHURCH_ALIASES.get(value.lower())


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_csv(content: bytes) -> list[dict[str, str]]:
    """Rows of ``content`` keyed by normalised header names.

    Blank rows are ignored and rows whose column count differs from the
    header are skipped with a warning.
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ImportFailedException("Unable to read the uploaded file. Please save it as UTF-8.") from e

    reader = csv.reader(io.StringIO(text))
    headers = next(reader, None)
    if not headers or not any(h.strip() for h in headers):
        raise ImportFailedException("Invalid CSV file format - no headers found.")
    headers = [h.strip().lower() for h in headers]

    rows: list[dict[str, str]] = []
    for line_number, row in enumerate(reader, start=2):
        if not any(cell.strip() for cell in row):
            continue
        if len(row) != len(headers):
            logger.warning("Row %d: Column count mismatch", line_number)
            continue
        rows.append(dict(zip(headers, row)))
    return rows


@dataclass
class ImportResult:
    imported: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    total_processed: int = 0

    @property
    def message(self) -> str:
        parts = []
        if self.imported:
            parts.append(f"{self.imported} imported")
        if self.updated:
            parts.append(f"{self.updated} updated")
        if self.skipped:
            parts.append(f"{self.skipped} skipped")
        return "Import completed: " + (", ".join(parts) if parts else "no records changed")


class MemberImportService:
    """Imports members from CSV uploads."""

    def __init__(self, db: Session, cache_service: CacheOptimizationService, settings: Settings):
        self.db = db
        self.cache_service = cache_service
        self.max_rows = settings.import_max_rows

    def import_file(
        self,
        filename: str,
        content: bytes,
        update_existing: bool = False,
        skip_duplicates: bool = True,
        validate_families: bool = False,
        today: date | None = None,
    ) -> ImportResult:
        extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        if extension not in ALLOWED_EXTENSIONS:
            raise ImportFailedException(f"Unsupported file format: {extension or 'unknown'}")

        rows = parse_csv(content)
        if not rows:
            raise ImportFailedException("No valid data found in the uploaded file.")
        if len(rows) > self.max_rows:
            raise ImportFailedException(
                f"File contains too many records. Maximum allowed is {self.max_rows} records."
            )

        result = self.process_rows(
            rows,
            update_existing=update_existing,
            skip_duplicates=skip_duplicates,
            validate_families=validate_families,
            today=today,
        )

        logger.info(
            "Member import from %s: %d imported, %d updated, %d skipped, %d errors",
            filename,
            result.imported,
            result.updated,
            result.skipped,
            len(result.errors),
        )
        if result.imported or result.updated:
            self.cache_service.invalidate_member_caches()
        return result

    def process_rows(
        self,
        rows: list[dict[str, str]],
        update_existing: bool = False,
        skip_duplicates: bool = True,
        validate_families: bool = False,
        today: date | None = None,
    ) -> ImportResult:
        today = today or date.today()
        result = ImportResult()

        families: dict[str, int] = {}
        if validate_families:
            families = {name: family_id for family_id, name in self.db.query(Family.id, Family.family_name)}

        for index, row in enumerate(rows):
            result.total_processed += 1
            row_number = index + 2

            errors = self.validate_row(row, row_number, today)
            if errors:
                result.errors.extend(errors)
                result.skipped += 1
                continue

            data = self.prepare_member_data(row, families, validate_families, today)
            label = f"{data['first_name']} {data['last_name']}"

            try:
                with self.db.begin_nested():
                    existing = self.find_existing_member(data)
                    if existing is None:
                        member = Member(**data)
                        sync_derived_fields(member, today)
                        self.db.add(member)
                        self.db.flush()
                        result.imported += 1
                    elif update_existing:
                        for key, value in data.items():
                            setattr(existing, key, value)
                        sync_derived_fields(existing, today)
                        self.db.flush()
                        result.updated += 1
                    elif skip_duplicates:
                        result.warnings.append(f"Row {row_number}: Member '{label}' already exists - skipped")
                        result.skipped += 1
                    else:
                        result.errors.append(f"Row {row_number}: Member '{label}' already exists")
                        result.skipped += 1
            except SQLAlchemyError as e:
                logger.warning("Row %d: import failed: %s", row_number, e)
                result.errors.append(f"Row {row_number}: {getattr(e, 'orig', None) or e}")
                result.skipped += 1

        return result

    def validate_row(self, row: dict[str, str], row_number: int, today: date) -> list[str]:
        """Validation messages for one row, formatted ``Row N: field - message``."""
        errors: list[str] = []

        def error(field_name: str, message: str) -> None:
            errors.append(f"Row {row_number}: {field_name} - {message}")

        for name in ("first_name", "last_name"):
            value = _clean(row.get(name))
            if value is None:
                error(name, f"The {name.replace('_', ' ')} field is required.")
            elif len(value) > _MAX_NAME_LENGTH:
                error(name, f"The {name.replace('_', ' ')} must not be greater than {_MAX_NAME_LENGTH} characters.")

        dob_raw = _clean(row.get("date_of_birth"))
        if dob_raw is None:
            error("date_of_birth", "The date of birth field is required.")
        else:
            dob = parse_date(dob_raw)
            if dob is None:
                error("date_of_birth", "The date of birth is not a valid date.")
            elif dob >= today:
                error("date_of_birth", "The date of birth must be a date before today.")

        gender = _clean(row.get("gender"))
        if gender is None:
            error("gender", "The gender field is required.")
        elif gender.capitalize() not in GENDERS:
            error("gender", "The selected gender is invalid.")

        church = _clean(row.get("local_church"))
        if church is None:
            error("local_church", "The local church field is required.")
        elif resolve_local_church(church) is None:
            error("local_church", "The selected local church is invalid.")

        group = _clean(row.get("church_group"))
        if group is None:
            error("church_group", "The church group field is required.")
        elif group not in CHURCH_GROUPS:
            error("church_group", "The selected church group is invalid.")

        middle_name = _clean(row.get("middle_name"))
        if middle_name and len(middle_name) > _MAX_NAME_LENGTH:
            error("middle_name", f"The middle name must not be greater than {_MAX_NAME_LENGTH} characters.")

        email = _clean(row.get("email"))
        if email and not _EMAIL_PATTERN.match(email):
            error("email", "The email must be a valid email address.")

        phone = _clean(row.get("phone"))
        if phone and len(phone) > _MAX_PHONE_LENGTH:
            error("phone", f"The phone must not be greater than {_MAX_PHONE_LENGTH} characters.")

        id_number = _clean(row.get("id_number"))
        if id_number and len(id_number) > _MAX_ID_NUMBER_LENGTH:
            error("id_number", f"The id number must not be greater than {_MAX_ID_NUMBER_LENGTH} characters.")

        status = _clean(row.get("membership_status"))
        if status and status not in MEMBERSHIP_STATUSES:
            error("membership_status", "The selected membership status is invalid.")

        occupation = _clean(row.get("occupation"))
        if occupation and occupation not in OCCUPATIONS:
            error("occupation", "The selected occupation is invalid.")

        residence = _clean(row.get("residence"))
        if residence and len(residence) > _MAX_RESIDENCE_LENGTH:
            error("residence", f"The residence must not be greater than {_MAX_RESIDENCE_LENGTH} characters.")

        for name in ("membership_date", "baptism_date", "confirmation_date"):
            value = _clean(row.get(name))
            if value and parse_date(value) is None:
                error(name, f"The {name.replace('_', ' ')} is not a valid date.")

        return errors

    def prepare_member_data(
        self,
        row: dict[str, str],
        families: dict[str, int],
        validate_families: bool,
        today: date,
    ) -> dict[str, Any]:
        """Column values for a validated row."""
        data: dict[str, Any] = {
            "first_name": _clean(row["first_name"]),
            "middle_name": _clean(row.get("middle_name")),
            "last_name": _clean(row["last_name"]),
            "date_of_birth": parse_date(row["date_of_birth"]),
            "gender": row["gender"].strip().capitalize(),
            "local_church": resolve_local_church(row["local_church"]),
            "church_group": row["church_group"].strip(),
            "membership_status": _clean(row.get("membership_status")) or "active",
        }

        membership_date = _clean(row.get("membership_date"))
        data["membership_date"] = parse_date(membership_date) if membership_date else today

        phone = _clean(row.get("phone"))
        data["phone"] = normalize_phone(phone) if phone else None
        email = _clean(row.get("email"))
        data["email"] = email.lower() if email else None

        for name in _OPTIONAL_TEXT_FIELDS:
            data[name] = _clean(row.get(name))

        for name in ("baptism_date", "confirmation_date"):
            value = _clean(row.get(name))
            data[name] = parse_date(value) if value else None

        emergency_phone = _clean(row.get("emergency_phone"))
        data["emergency_phone"] = normalize_phone(emergency_phone) if emergency_phone else None

        family_name = _clean(row.get("family_name"))
        if family_name and validate_families and family_name in families:
            data["family_id"] = families[family_name]

        return data

    def find_existing_member(self, data: dict[str, Any]) -> Member | None:
        """Existing member sharing the email, phone or ID number, if any."""
        conditions = [
            getattr(Member, name) == data[name]
            for name in ("email", "phone", "id_number")
            if data.get(name)
        ]
        if not conditions:
            return None
        return self.db.query(Member).filter(or_(*conditions)).order_by(Member.id).first()

    @staticmethod
    def template_csv() -> str:
        """Import template: header plus two sample rows, with a UTF-8 BOM."""
        buffer = io.StringIO()
        buffer.write("\ufeff")
        writer = csv.writer(buffer)
        writer.writerow(TEMPLATE_HEADERS)
        writer.writerows(TEMPLATE_ROWS)
        return buffer.getvalue()
