"""
Custom column types.

``PydanticJSON`` stores a typed Python value (lists, dicts, pydantic
models, or any combination) in a JSON column and hands back the same
typed value on load. PostgreSQL gets JSONB; everything else, including
the SQLite databases used locally and in tests, gets the generic JSON
type.

Mutation tracking: SQLAlchemy only notices a change when the attribute
is reassigned with a value that compares unequal to the loaded one.
The nested models are frozen, so callers build a new value and assign
it; in-place edits of a loaded list or dict would be silently lost.
"""

from typing import Any

from pydantic import TypeAdapter
from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import TypeDecorator


class PydanticJSON(TypeDecorator):
    """
    JSON column validated through a pydantic ``TypeAdapter``.

    Usage:
        weekly: Mapped[dict[str, WeeklyPlayerPoints]] = mapped_column(
            PydanticJSON(dict[str, WeeklyPlayerPoints]), default=dict
        )
    """

    impl = JSON
    cache_ok = True

    def __init__(self, annotation: Any):
        super().__init__()
        self.annotation = annotation
        self._adapter = TypeAdapter(annotation)

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return self._adapter.dump_python(value, mode="json")

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return self._adapter.validate_python(value)
