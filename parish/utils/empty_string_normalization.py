"""
Empty string to NULL normalization.

SQLAlchemy event handlers that convert empty and whitespace-only strings to
NULL before parish records are written, so "no value" is always stored as
NULL and unique columns such as email and id_number never collide on ''.
"""

from typing import Any

from sqlalchemy import event, inspect
from sqlalchemy.sql.sqltypes import String, Text

from parish.extensions import db


def normalize_empty_strings(mapper: Any, connection: Any, target: Any) -> None:
    """Set empty or whitespace-only String/Text attributes of ``target`` to None."""
    for column in inspect(mapper.class_).columns:
        if not isinstance(column.type, String | Text):
            continue
        value = getattr(target, column.key, None)
        if isinstance(value, str) and value.strip() == "":
            setattr(target, column.key, None)


@event.listens_for(db.Model, "before_insert", propagate=True)
def normalize_empty_strings_on_insert(mapper: Any, connection: Any, target: Any) -> None:
    normalize_empty_strings(mapper, connection, target)


@event.listens_for(db.Model, "before_update", propagate=True)
def normalize_empty_strings_on_update(mapper: Any, connection: Any, target: Any) -> None:
    normalize_empty_strings(mapper, connection, target)
