"""SQL dialect compatibility shim.

Produces raw SQL fragments for date, string and numeric operations that
differ between SQLite (development), MySQL (production) and PostgreSQL.
Callers embed the fragments with ``sqlalchemy.text`` or ``literal_column``.
"""

import re

_SQLITE_FORMAT_MAP = {
    "%Y": "%Y",
    "%y": "%Y",
    "%m": "%m",
    "%d": "%d",
    "%H": "%H",
    "%h": "%H",
    "%i": "%M",
    "%s": "%S",
}

_POSTGRES_FORMAT_MAP = {
    "%Y": "YYYY",
    "%y": "YY",
    "%m": "MM",
    "%d": "DD",
    "%H": "HH24",
    "%h": "HH12",
    "%i": "MI",
    "%s": "SS",
}

_FORMAT_TOKEN = re.compile(r"%[A-Za-z]")


class DatabaseCompatibilityService:
    """Dialect-specific SQL fragments for the configured database driver."""

    def __init__(self, driver: str):
        self.driver = driver.lower()

    def is_sqlite(self) -> bool:
        return self.driver == "sqlite"

    def is_mysql(self) -> bool:
        return self.driver in ("mysql", "mariadb")

    def is_postgresql(self) -> bool:
        return self.driver in ("postgresql", "postgres", "pgsql")

    def current_date(self) -> str:
        if self.is_sqlite():
            return "date('now')"
        if self.is_postgresql():
            return "CURRENT_DATE"
        return "CURDATE()"

    def current_timestamp(self) -> str:
        if self.is_sqlite():
            return "datetime('now')"
        return "NOW()"

    def extract_month(self, column: str) -> str:
        if self.is_sqlite():
            return f"CAST(strftime('%m', {column}) AS INTEGER)"
        if self.is_postgresql():
            return f"CAST(EXTRACT(MONTH FROM {column}) AS INTEGER)"
        return f"MONTH({column})"

    def extract_year(self, column: str) -> str:
        if self.is_sqlite():
            return f"CAST(strftime('%Y', {column}) AS INTEGER)"
        if self.is_postgresql():
            return f"CAST(EXTRACT(YEAR FROM {column}) AS INTEGER)"
        return f"YEAR({column})"

    def format_date(self, column: str, mysql_format: str) -> str:
        """Format ``column`` using a MySQL ``DATE_FORMAT`` pattern."""
        if self.is_sqlite():
            fmt = _FORMAT_TOKEN.sub(
                lambda m: _SQLITE_FORMAT_MAP.get(m.group(0), m.group(0)), mysql_format
            )
            return f"strftime('{fmt}', {column})"
        if self.is_postgresql():
            fmt = _FORMAT_TOKEN.sub(
                lambda m: _POSTGRES_FORMAT_MAP.get(m.group(0), m.group(0)), mysql_format
            )
            return f"to_char({column}, '{fmt}')"
        return f"DATE_FORMAT({column}, '{mysql_format}')"

    def substring(self, column: str, start: int, length: int | None = None) -> str:
        func = "substr" if self.is_sqlite() else "SUBSTRING"
        if length is None:
            return f"{func}({column}, {start})"
        return f"{func}({column}, {start}, {length})"

    def cast_as_integer(self, expression: str) -> str:
        if self.is_sqlite() or self.is_postgresql():
            return f"CAST({expression} AS INTEGER)"
        return f"CAST({expression} AS UNSIGNED)"

    def order_by_numeric_part(self, column: str, prefix: str, direction: str = "asc") -> str:
        """ORDER BY fragment sorting codes like ``FAM-12`` by their numeric suffix."""
        direction = direction.upper()
        if direction not in ("ASC", "DESC"):
            direction = "ASC"
        numeric_part = self.substring(column, len(prefix) + 1)
        return f"{self.cast_as_integer(numeric_part)} {direction}"

    def age_in_years(self, column: str = "date_of_birth", reference: str | None = None) -> str:
        """Whole years elapsed between ``column`` and ``reference`` (default today)."""
        if self.is_mysql():
            ref = reference or "CURDATE()"
            return f"TIMESTAMPDIFF(YEAR, {column}, {ref})"
        if self.is_postgresql():
            ref = reference or "CURRENT_DATE"
            return f"CAST(EXTRACT(YEAR FROM AGE({ref}, {column})) AS INTEGER)"
        ref = reference or "date('now')"
        return f"CAST((julianday({ref}) - julianday({column})) / 365.25 AS INTEGER)"
