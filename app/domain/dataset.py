"""
app/domain/dataset.py

Domain models used by the CSV normalization flow.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Union

CellValue = Union[int, float, str]
"""One normalized cell: a number, a canonical ``YYYY-MM-DD`` date string, or text."""

Record = Mapping[str, CellValue]

_NUMERIC_LITERAL = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_INTEGER_LITERAL = re.compile(r"^[+-]?\d+$")
CANONICAL_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class DatasetKind(str, Enum):
    """
    Source kind of an uploaded CSV export.
    """

    SALES = "sales"
    FUNNEL = "funnel"


class StoreColumn(str, Enum):
    """
    Which store-identifying column a dataset exposes.
    """

    CHANNEL_NAME = "Channel_Name"
    STORE_NAME = "Store_Name"


@dataclass(frozen=True)
class RowIssue:
    """
    One skipped or partially coerced CSV line.
    """

    line_number: int
    message: str
    column: str | None = None
    value: str | None = None


@dataclass(frozen=True)
class ParseDiagnostics:
    """
    End-of-run normalization counters.
    """

    rows_parsed: int = 0
    rows_skipped: int = 0
    date_failures: int = 0
    ambiguous_dates: int = 0
    header_columns: int = 0
    missing_date_column: bool = False
    issues: tuple[RowIssue, ...] = ()

    @property
    def has_warnings(self) -> bool:
        return bool(self.rows_skipped or self.date_failures or self.missing_date_column)


@dataclass(frozen=True)
class Dataset:
    """
    Full, unfiltered ordered sequence of normalized records from one file.

    Datasets are replaced wholesale on re-upload and never mutated.
    """

    kind: DatasetKind
    records: tuple[Record, ...] = ()
    columns: tuple[str, ...] = ()
    date_column: str | None = None
    store_column: StoreColumn | None = None
    diagnostics: ParseDiagnostics = field(default_factory=ParseDiagnostics)
    source_name: str | None = None

    @classmethod
    def empty(cls, kind: DatasetKind) -> "Dataset":
        return cls(kind=kind)

    def __len__(self) -> int:
        return len(self.records)

    @property
    def is_empty(self) -> bool:
        return not self.records


def freeze_record(values: Mapping[str, CellValue]) -> Record:
    """
    Wrap a freshly built row in a read-only mapping.
    """

    return MappingProxyType(dict(values))


def classify_store_column(
    columns: tuple[str, ...],
    records: tuple[Record, ...],
) -> StoreColumn | None:
    """
    Decide once which store-identifying column a dataset carries.

    A populated ``Channel_Name`` on the first record wins; otherwise the
    header decides, preferring ``Store_Name``.
    """

    if records and not is_blank(records[0].get(StoreColumn.CHANNEL_NAME.value)):
        return StoreColumn.CHANNEL_NAME
    if StoreColumn.STORE_NAME.value in columns:
        return StoreColumn.STORE_NAME
    if StoreColumn.CHANNEL_NAME.value in columns:
        return StoreColumn.CHANNEL_NAME
    return None


# ---------------------------------------------------------------------------
# Cell helpers shared by filtering and aggregation
# ---------------------------------------------------------------------------


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return str(value).strip() == ""


def parse_number_literal(raw: str) -> int | float | None:
    """
    Parse a plain decimal literal; ``None`` for anything else.

    Thousands separators, ``nan``/``inf`` and underscores are rejected.
    """

    text = raw.strip()
    if not text or not _NUMERIC_LITERAL.match(text):
        return None
    if _INTEGER_LITERAL.match(text):
        return int(text)
    number = float(text)
    if not math.isfinite(number):
        return None
    return number


def numeric_value(value: Any) -> float | None:
    """
    Return *value* as a finite float, or ``None`` when it is not numeric.
    """

    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    if value is None:
        return None
    text = str(value).strip()
    if text == "":
        return 0.0
    parsed = parse_number_literal(text)
    return float(parsed) if parsed is not None else None


def amount_value(value: Any) -> float:
    """
    Numeric contribution of a cell to a sum; non-numeric cells add zero.
    """

    number = numeric_value(value)
    return number if number is not None else 0.0


def text_value(value: Any) -> str:
    """
    Render a cell as text for equality filters and grouping keys.
    """

    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_canonical_date(value: Any) -> bool:
    """
    True for a real calendar date in ``YYYY-MM-DD`` form.

    Raw text kept from a failed parse, such as ``2023-02-29``, is not canonical.
    """

    if not isinstance(value, str) or not CANONICAL_DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True
