"""
app/validators/csv_validator.py

Cell-level type parsing for CSV normalization.
"""

from __future__ import annotations

import re
import warnings
from datetime import date

import pandas as pd

from app.domain.dataset import CellValue, RowIssue, parse_number_literal

ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
SLASH_DATE_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

DATE_COLUMN_SYNONYMS: tuple[str, ...] = (
    "Financed_Date",
    "financed_date",
    "FinancedDate",
    "Date",
)
CANONICAL_DATE_COLUMN = "Financed_Date"


class CSVCellCoercer:
    """
    Coerces trimmed CSV cells into numbers, canonical dates, or text.

    Coercion never raises. A date that cannot be read keeps its raw text
    and is reported as a :class:`RowIssue`.
    """

    def __init__(self, *, month_first: bool = True) -> None:
        self._month_first = month_first

    @property
    def month_first(self) -> bool:
        return self._month_first

    def coerce(
        self,
        *,
        raw: str,
        column: str,
        is_date_column: bool,
        line_number: int,
    ) -> tuple[CellValue, RowIssue | None]:
        """
        Apply the coercion precedence to one cell: date, then number, then text.
        """

        value = self.clean(raw)

        if is_date_column and value:
            canonical = self.parse_date(value)
            if canonical is None:
                return value, RowIssue(
                    line_number=line_number,
                    column=column,
                    message="Invalid date format.",
                    value=value,
                )
            return canonical, None

        number = parse_number_literal(value)
        if number is not None:
            return number, None

        return value, None

    @staticmethod
    def clean(raw: str) -> str:
        """
        Trim whitespace and strip one layer of wrapping double quotes.
        """

        value = raw.strip()
        if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
            value = value[1:-1]
        return value

    def parse_date(self, value: str) -> str | None:
        """
        Return *value* as a canonical ``YYYY-MM-DD`` string, or ``None``.

        Order: strict ISO, then ``M/D/YYYY`` (or ``D/M/YYYY`` when
        month-first is disabled), then pandas' generic parser.
        """

        iso_match = ISO_DATE_PATTERN.match(value)
        if iso_match:
            year, month, day = (int(part) for part in iso_match.groups())
            return _format_date(year, month, day)

        slash_match = SLASH_DATE_PATTERN.match(value)
        if slash_match:
            first, second, year = (int(part) for part in slash_match.groups())
            month, day = (first, second) if self._month_first else (second, first)
            return _format_date(year, month, day)

        return self._parse_generic(value)

    def is_ambiguous_date(self, raw: str) -> bool:
        """
        True for slash dates that are valid in both month/day orders, e.g. ``4/9/2024``.
        """

        slash_match = SLASH_DATE_PATTERN.match(self.clean(raw))
        if not slash_match:
            return False
        first, second, _ = (int(part) for part in slash_match.groups())
        return first != second and first <= 12 and second <= 12

    def _parse_generic(self, value: str) -> str | None:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            try:
                parsed = pd.to_datetime(value, errors="coerce", dayfirst=not self._month_first)
            except (ValueError, TypeError, OverflowError):
                return None
        if parsed is None or pd.isna(parsed):
            return None
        return _format_date(parsed.year, parsed.month, parsed.day)


def find_date_column(headers: list[str]) -> int | None:
    """
    Return the position of the first header matching a date synonym.
    """

    for index, header in enumerate(headers):
        if header in DATE_COLUMN_SYNONYMS:
            return index
    return None


def _format_date(year: int, month: int, day: int) -> str | None:
    try:
        parsed = date(year, month, day)
    except ValueError:
        return None
    return f"{parsed.year:04d}-{parsed.month:02d}-{parsed.day:02d}"
