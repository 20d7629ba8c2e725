"""
app/domain/filters.py

Filter selection passed by value into every dashboard recompute.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping


@dataclass(frozen=True)
class DateRange:
    """
    Inclusive range of canonical ``YYYY-MM-DD`` strings.
    """

    start: str
    end: str

    def contains(self, value: str) -> bool:
        return self.start <= value <= self.end


@dataclass(frozen=True)
class FilterSelection:
    """
    Optional user-chosen constraints applied before aggregation.

    ``None`` means "no selection". An empty string is a real value and
    filters like any other.
    """

    date_range: DateRange | None = None
    city: str | None = None
    financer: str | None = None
    store: str | None = None
    store_code: str | None = None
    model: str | None = None

    @classmethod
    def reset(cls) -> "FilterSelection":
        return cls()

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "FilterSelection":
        """
        Build a selection from loosely typed UI input.

        A date range only becomes active once both ends are set; a
        half-filled range is ignored.
        """

        date_range = _as_date_range(raw.get("date_range"))
        values: dict[str, str | None] = {}
        for name in ("city", "financer", "store", "store_code", "model"):
            value = raw.get(name)
            values[name] = None if value is None else str(value)
        return cls(date_range=date_range, **values)

    def with_changes(self, **changes: Any) -> "FilterSelection":
        return replace(self, **changes)

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


def _as_date_range(value: Any) -> DateRange | None:
    if value is None:
        return None
    if isinstance(value, DateRange):
        return value
    if isinstance(value, Mapping):
        start, end = value.get("start"), value.get("end")
    else:
        try:
            start, end = value
        except (TypeError, ValueError):
            return None
    if not start or not end:
        return None
    return DateRange(start=str(start), end=str(end))
