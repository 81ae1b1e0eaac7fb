"""
db/row.py
---------
Structured query result rows.

A Row maps column names to the values decoded by the driver and offers
typed accessors, so callers state the kind they expect instead of relying
on whatever Python type the backend happens to return (MySQL returns
BOOLEAN columns as 0/1 and JSON columns as text, for example).
"""

import json
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator, Optional, Sequence

from db.errors import ValueTypeError


class ValueKind(str, Enum):
    """Tag describing the decoded type of a column value."""

    NULL = "null"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    NUMBER = "number"
    TEXT = "text"
    JSON = "json"
    BYTES = "bytes"
    TEMPORAL = "temporal"
    OTHER = "other"

    @classmethod
    def of(cls, value: Any) -> "ValueKind":
        if value is None:
            return cls.NULL
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return cls.BOOLEAN
        if isinstance(value, int):
            return cls.INTEGER
        if isinstance(value, (float, Decimal)):
            return cls.NUMBER
        if isinstance(value, str):
            return cls.TEXT
        if isinstance(value, (dict, list)):
            return cls.JSON
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls.BYTES
        if isinstance(value, (date, datetime, time, timedelta)):
            return cls.TEMPORAL
        return cls.OTHER


class Row(Mapping):
    """
    One record of a query result.

    Behaves as a read-only mapping in column order. ``row["name"]`` returns
    the raw decoded value; the ``text``/``integer``/``boolean``/``json``
    accessors check the kind and raise ValueTypeError on a mismatch.
    """

    __slots__ = ("_values",)

    def __init__(self, columns: Sequence[str], values: Sequence[Any]):
        if len(columns) != len(values):
            raise ValueError(f"{len(columns)} columns but {len(values)} values")
        self._values = dict(zip(columns, values))

    def __getitem__(self, column: str) -> Any:
        return self._values[column]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Row({self._values!r})"

    def kind(self, column: str) -> ValueKind:
        return ValueKind.of(self[column])

    def is_null(self, column: str) -> bool:
        return self[column] is None

    def _fail(self, column: str, expected: str) -> ValueTypeError:
        return ValueTypeError(
            f"column {column!r} holds {self.kind(column).value}, not {expected}"
        )

    def text(self, column: str) -> Optional[str]:
        value = self[column]
        if value is None or isinstance(value, str):
            return value
        raise self._fail(column, "text")

    def integer(self, column: str) -> Optional[int]:
        value = self[column]
        if value is None or (isinstance(value, int) and not isinstance(value, bool)):
            return value
        raise self._fail(column, "integer")

    def boolean(self, column: str) -> Optional[bool]:
        """Read a boolean column, accepting MySQL's TINYINT(1) encoding (0/1)."""
        value = self[column]
        if value is None or isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        raise self._fail(column, "boolean")

    def json(self, column: str) -> Any:
        """
        Read a JSON column.

        Postgres drivers decode json/jsonb themselves; MySQL hands back the
        document text, which is parsed here.
        """
        value = self[column]
        if value is None or isinstance(value, (dict, list)):
            return value
        if isinstance(value, (bytes, bytearray)):
            value = value.decode("utf-8")
        if isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError:
                raise self._fail(column, "json") from None
        raise self._fail(column, "json")
