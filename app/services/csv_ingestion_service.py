"""
app/services/csv_ingestion_service.py

Service layer for CSV normalization.

Turns the raw text of a ``Daily_Sales_Dump`` or ``Daily_Sales_Funnel``
export into an ordered tuple of typed records. Upstream systems differ in
delimiter, line ending and date convention, so the normalizer degrades
gracefully: malformed rows are skipped and counted, unreadable dates keep
their raw text, and parsing always runs to completion.

Steps
-----
    1. Line splitting     — CRLF when present anywhere, otherwise LF.
    2. Delimiter          — sniffed from the header only (comma, else semicolon).
    3. Header             — trimmed names; date column located by synonym.
    4. Field splitting    — quote-aware scanner, backslash-escaped quotes kept.
    5. Row validation     — field count must equal the header's.
    6. Cell coercion      — date, then number, then text (see CSVCellCoercer).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from app.config import get_csv_normalizer_settings
from app.domain.dataset import (
    Dataset,
    DatasetKind,
    ParseDiagnostics,
    Record,
    RowIssue,
    classify_store_column,
    freeze_record,
)
from app.validators.csv_validator import CANONICAL_DATE_COLUMN, CSVCellCoercer, find_date_column

logger = logging.getLogger(__name__)

_SALES_FILE_MARKERS: tuple[str, ...] = ("Daily_Sales_Dump",)
_FUNNEL_FILE_MARKERS: tuple[str, ...] = ("Daily_Sales_Funnel", "Daily_SalesFunnel")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class CSVDecodeError(ValueError):
    """
    Raised when uploaded bytes cannot be decoded as text.
    """


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParseResult:
    """
    Records plus diagnostics from one normalization run.
    """

    records: tuple[Record, ...]
    columns: tuple[str, ...]
    date_column: str | None
    diagnostics: ParseDiagnostics


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def detect_line_ending(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def detect_delimiter(header_line: str) -> str:
    if "," in header_line:
        return ","
    if ";" in header_line:
        return ";"
    return ","


def split_fields(line: str, delimiter: str) -> list[str]:
    """
    Split one line on *delimiter*, ignoring delimiters inside double quotes.

    A quote preceded by a backslash is literal text. An unterminated quote
    runs to the end of the line.
    """

    values: list[str] = []
    current: list[str] = []
    in_quotes = False

    for index, char in enumerate(line):
        if char == '"' and (index == 0 or line[index - 1] != "\\"):
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            values.append("".join(current))
            current = []
        else:
            current.append(char)

    values.append("".join(current))
    return values


def classify_file(filename: str) -> DatasetKind | None:
    """
    Map an upload filename to its dataset kind by substring match.
    """

    if any(marker in filename for marker in _SALES_FILE_MARKERS):
        return DatasetKind.SALES
    if any(marker in filename for marker in _FUNNEL_FILE_MARKERS):
        return DatasetKind.FUNNEL
    return None


def decode_upload(data: bytes) -> str:
    """
    Decode uploaded bytes, stripping a UTF-8 BOM and falling back to latin-1.
    """

    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.warning("CSV upload is not valid UTF-8; decoding as latin-1.")
    try:
        return data.decode("latin-1")
    except UnicodeDecodeError as exc:  # pragma: no cover - latin-1 maps every byte
        raise CSVDecodeError("CSV upload could not be decoded.") from exc


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CSVNormalizer:
    """
    Parses raw CSV text into normalized records.

    Stateless between calls; counters live on the returned diagnostics.
    """

    def __init__(
        self,
        *,
        max_row_issues: int = 500,
        log_row_issues: bool = False,
        coercer: CSVCellCoercer | None = None,
    ) -> None:
        self._max_row_issues = max(1, max_row_issues)
        self._log_row_issues = log_row_issues
        self._coercer = coercer or CSVCellCoercer()

    def parse(self, raw_text: str, *, source_name: str | None = None) -> ParseResult:
        """
        Normalize *raw_text* and return every row that survived validation.

        Never raises for malformed input. Skipped rows and date failures are
        counted on :class:`ParseDiagnostics`.
        """

        label = source_name or "<csv>"
        lines = raw_text.split(detect_line_ending(raw_text))
        header_line = lines[0] if lines else ""

        if not header_line.strip():
            logger.warning("CSV %s has no header row; nothing to parse.", label)
            return ParseResult(
                records=(),
                columns=(),
                date_column=None,
                diagnostics=ParseDiagnostics(missing_date_column=True),
            )

        delimiter = detect_delimiter(header_line)
        headers = [name.strip() for name in header_line.split(delimiter)]
        date_index = find_date_column(headers)
        date_column = headers[date_index] if date_index is not None else None

        if date_column is None:
            logger.warning("No date column found in %s. Headers: %s", label, headers)
        else:
            logger.debug("Found date column %r at index %d in %s", date_column, date_index, label)

        records: list[Record] = []
        issues: list[RowIssue] = []
        rows_skipped = 0
        date_failures = 0
        ambiguous_dates = 0

        for line_number, raw_line in enumerate(lines[1:], start=2):
            line = raw_line.strip()
            if not line:
                continue

            values = split_fields(line, delimiter)
            if len(values) != len(headers):
                rows_skipped += 1
                self._record_issue(
                    issues,
                    RowIssue(
                        line_number=line_number,
                        message=(
                            f"Row has {len(values)} columns but header has {len(headers)}."
                        ),
                    ),
                )
                continue

            row: dict[str, object] = {}
            for index, header in enumerate(headers):
                is_date = header == CANONICAL_DATE_COLUMN or index == date_index
                value, issue = self._coercer.coerce(
                    raw=values[index],
                    column=header,
                    is_date_column=is_date,
                    line_number=line_number,
                )
                if is_date and self._coercer.is_ambiguous_date(values[index]):
                    ambiguous_dates += 1
                if issue is not None:
                    date_failures += 1
                    self._record_issue(issues, issue)
                row[header] = value
            records.append(freeze_record(row))

        if date_failures:
            logger.warning("Found %d date format issues in %s", date_failures, label)
        if rows_skipped:
            logger.warning("Skipped %d rows in %s due to column count mismatch", rows_skipped, label)
        if ambiguous_dates:
            logger.warning(
                "%d slash dates in %s read either way; interpreted as %s-first",
                ambiguous_dates,
                label,
                "month" if self._coercer.month_first else "day",
            )
        logger.info(
            "Processed %d rows successfully from %s (%d lines)",
            len(records),
            label,
            len(lines),
        )

        return ParseResult(
            records=tuple(records),
            columns=tuple(headers),
            date_column=date_column,
            diagnostics=ParseDiagnostics(
                rows_parsed=len(records),
                rows_skipped=rows_skipped,
                date_failures=date_failures,
                ambiguous_dates=ambiguous_dates,
                header_columns=len(headers),
                missing_date_column=date_column is None,
                issues=tuple(issues),
            ),
        )

    def parse_bytes(self, data: bytes, *, source_name: str | None = None) -> ParseResult:
        return self.parse(decode_upload(data), source_name=source_name)

    def load_dataset(
        self,
        raw_text: str,
        kind: DatasetKind,
        *,
        source_name: str | None = None,
    ) -> Dataset:
        """
        Parse *raw_text* into a :class:`Dataset` with its store column classified.
        """

        result = self.parse(raw_text, source_name=source_name)
        return Dataset(
            kind=kind,
            records=result.records,
            columns=result.columns,
            date_column=result.date_column,
            store_column=classify_store_column(result.columns, result.records),
            diagnostics=result.diagnostics,
            source_name=source_name,
        )

    def _record_issue(self, issues: list[RowIssue], issue: RowIssue) -> None:
        if self._log_row_issues:
            logger.warning(
                "CSV row issue line=%s column=%s message=%s value=%r",
                issue.line_number,
                issue.column,
                issue.message,
                issue.value,
            )

        if len(issues) < self._max_row_issues:
            issues.append(issue)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_csv_normalizer() -> CSVNormalizer:
    """
    Build and cache the normalizer with env-driven settings.
    """

    settings = get_csv_normalizer_settings()
    return CSVNormalizer(
        max_row_issues=settings.max_row_issues,
        log_row_issues=settings.log_row_issues,
        coercer=CSVCellCoercer(month_first=settings.month_first),
    )
