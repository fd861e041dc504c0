"""Cell values produced by projecting one accessor on one record."""

from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass
from typing import Any

from typed_sheets.types import EnumValue

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class CellKind(enum.Enum):
    """The kinds of value a cell can hold."""

    TEXT = "text"
    INT64 = "int64"
    INT32 = "int32"
    FLOAT = "float"
    DATE = "date"
    ENUM = "enum"
    EMPTY = "empty"
    UNSUPPORTED = "unsupported"

    @property
    def is_written(self) -> bool:
        """Return whether a cell of this kind puts content in the sink."""
        return self not in (CellKind.EMPTY, CellKind.UNSUPPORTED)


@dataclass(frozen=True)
class CellValue:
    """A classified accessor result.

    ``payload`` is what the sink receives: ``str`` for TEXT, DATE and ENUM,
    ``int`` for INT64 and INT32, ``float`` for FLOAT and ``None`` otherwise.
    ``source`` keeps the value the accessor returned.
    """

    kind: CellKind
    payload: str | int | float | None = None
    source: Any = None

    @property
    def is_empty(self) -> bool:
        return not self.kind.is_written

    @classmethod
    def empty(cls) -> CellValue:
        return cls(CellKind.EMPTY)

    @classmethod
    def of(cls, value: Any) -> CellValue:
        """Classify a value by its runtime kind.

        Precedence: text, 64-bit integer, 32-bit integer, float, date, enum.
        Enum members are tested first so that ``str`` and ``int`` mixin
        enums still render by their symbolic name. ``bool`` and integers
        outside the signed 64-bit range are not integer kinds, and a
        ``datetime`` is not a calendar date.
        """
        if value is None:
            return cls.empty()
        if isinstance(value, enum.Enum):
            return cls(CellKind.ENUM, value.name, value)
        if isinstance(value, EnumValue):
            return cls(CellKind.ENUM, value.variant_name, value)
        if isinstance(value, str):
            return cls(CellKind.TEXT, value, value)
        if isinstance(value, int) and not isinstance(value, bool):
            if INT32_MIN <= value <= INT32_MAX:
                return cls(CellKind.INT32, int(value), value)
            if INT64_MIN <= value <= INT64_MAX:
                return cls(CellKind.INT64, int(value), value)
            return cls(CellKind.UNSUPPORTED, None, value)
        if isinstance(value, float):
            return cls(CellKind.FLOAT, value, value)
        if isinstance(value, datetime.date) and not isinstance(value, datetime.datetime):
            return cls(CellKind.DATE, value.isoformat(), value)
        return cls(CellKind.UNSUPPORTED, None, value)
